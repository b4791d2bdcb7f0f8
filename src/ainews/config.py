import os

from dotenv import load_dotenv

load_dotenv()

# Search provider
GNEWS_API_KEY: str = os.environ.get("GNEWS_API_KEY", "")
GNEWS_BASE_URL: str = os.environ.get("GNEWS_BASE_URL", "https://gnews.io/api/v4")

# Storage
DB_PATH: str = os.environ.get("DB_PATH", "data/ainews.db")

# LLM (OpenRouter by default; any one provider key is enough)
LLM_PROVIDER: str = os.environ.get("LLM_PROVIDER", "")  # openrouter | openai | anthropic | google
LLM_MODEL: str = os.environ.get("LLM_MODEL", "")  # empty = provider default
LLM_API_KEY: str = os.environ.get("LLM_API_KEY", "")

OPENROUTER_API_KEY: str = os.environ.get("OPENROUTER_API_KEY", "")
OPENAI_API_KEY: str = os.environ.get("OPENAI_API_KEY", "")
ANTHROPIC_API_KEY: str = os.environ.get("ANTHROPIC_API_KEY", "")
GEMINI_API_KEY: str = os.environ.get("GEMINI_API_KEY", "")

OPENROUTER_SITE_URL: str = os.environ.get("OPENROUTER_SITE_URL", "http://localhost:3000")
OPENROUTER_SITE_NAME: str = os.environ.get("OPENROUTER_SITE_NAME", "Your AI News")

# Map provider name → env var value
_PROVIDER_KEYS: dict[str, str] = {
    "openrouter": OPENROUTER_API_KEY,
    "openai": OPENAI_API_KEY,
    "anthropic": ANTHROPIC_API_KEY,
    "google": GEMINI_API_KEY,
}


def resolve_llm() -> tuple[str, str, str]:
    """Resolve the best available LLM provider, API key, and model.

    Priority:
    1. LLM_API_KEY + LLM_PROVIDER env vars (explicit single-provider config)
    2. LLM_PROVIDER's own key (OPENROUTER_API_KEY, OPENAI_API_KEY, ...)
    3. First provider with a key, in OpenRouter > OpenAI > Anthropic > Google order

    Returns (provider, api_key, model). All empty strings if nothing configured.
    """
    if LLM_API_KEY:
        return LLM_PROVIDER or "openrouter", LLM_API_KEY, LLM_MODEL

    if LLM_PROVIDER and _PROVIDER_KEYS.get(LLM_PROVIDER):
        return LLM_PROVIDER, _PROVIDER_KEYS[LLM_PROVIDER], LLM_MODEL

    for prov, key in _PROVIDER_KEYS.items():
        if key:
            return prov, key, LLM_MODEL

    return "", "", LLM_MODEL


# Email (SMTP submission, e.g. Brevo relay)
SMTP_HOST: str = os.environ.get("SMTP_HOST", "smtp-relay.brevo.com")
SMTP_PORT: int = int(os.environ.get("SMTP_PORT", "587"))
SMTP_USER: str = os.environ.get("SMTP_USER", "")
SMTP_PASSWORD: str = os.environ.get("SMTP_PASSWORD", "")
EMAIL_FROM: str = os.environ.get("EMAIL_FROM", "noreply@example.com")
EMAIL_FROM_NAME: str = os.environ.get("EMAIL_FROM_NAME", "Your AI News")

APP_URL: str = os.environ.get("APP_URL", "http://localhost:3000")

# Manual-trigger API
API_PORT: int = int(os.environ.get("API_PORT", "3000"))
