"""LLM enrichment: category classification plus zh-TW/zh-CN translation.

Supports OpenRouter (default, via the OpenAI-compatible endpoint), OpenAI,
Anthropic, and Google Gemini. Each provider only returns raw text; parsing
and retries live in ``Enricher`` so every provider gets the same recovery.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from ainews.errors import EnrichmentError, RateLimitedError
from ainews.news import Candidate, EnrichmentResult
from ainews.news.parsing import parse_enrichment

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are an AI news editor. Analyze the given article and return ONLY a valid JSON object with these exact keys:
{
  "category": one of ["ai-business","ai-technology","ai-ethics","ai-research"],
  "title_zh_tw": "Traditional Chinese (繁體中文) translation of the title",
  "title_zh_cn": "Simplified Chinese (简体中文) translation of the title",
  "summary_en": "2-3 sentence English summary of the article",
  "summary_zh_tw": "2-3 sentence Traditional Chinese (繁體中文) summary",
  "summary_zh_cn": "2-3 sentence Simplified Chinese (简体中文) summary"
}

Category definitions:
- ai-business: AI company news, funding, acquisitions, enterprise AI, market analysis, AI products
- ai-technology: AI tools, models, frameworks, technical releases, product launches, engineering
- ai-ethics: AI safety, bias, regulation, policy, societal impact, privacy, governance
- ai-research: AI papers, academic research, benchmarks, scientific discoveries, datasets

Return ONLY the JSON object, no markdown, no explanation, no extra text."""

MAX_CONTENT_CHARS = 1500
MAX_TOKENS = 700
TEMPERATURE = 0.3
REQUEST_TIMEOUT = 45.0

# Delay before retry N (index 0 = before the 2nd attempt)
RATE_LIMIT_DELAYS: tuple[float, ...] = (30.0, 60.0)
ERROR_DELAYS: tuple[float, ...] = (2.0, 4.0)
ITEM_DELAY = 1.5

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


# ---------------------------------------------------------------------------
# Provider interface
# ---------------------------------------------------------------------------


class LLMProvider(ABC):
    """Abstract chat-completion provider."""

    @abstractmethod
    async def complete(self, system: str, user: str) -> str:
        """Return the model's raw text.

        Raises:
            RateLimitedError: the provider throttled the call.
            EnrichmentError: any other failure (timeout, HTTP error, empty reply).
        """


# ---------------------------------------------------------------------------
# OpenAI / OpenRouter
# ---------------------------------------------------------------------------


class OpenAIProvider(LLMProvider):
    default_model = "gpt-4o-mini"

    def __init__(self, api_key: str, model: str = "", **client_kwargs) -> None:
        from openai import AsyncOpenAI

        self.client = AsyncOpenAI(
            api_key=api_key, timeout=REQUEST_TIMEOUT, **client_kwargs
        )
        self.model = model or self.default_model

    async def complete(self, system: str, user: str) -> str:
        import openai

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
            )
        except openai.RateLimitError as exc:
            raise RateLimitedError(str(exc)) from exc
        except openai.APIError as exc:
            raise EnrichmentError(str(exc)) from exc

        if not response.choices or not response.choices[0].message.content:
            raise EnrichmentError("Empty completion")
        return response.choices[0].message.content


class OpenRouterProvider(OpenAIProvider):
    """OpenRouter speaks the OpenAI chat-completions protocol."""

    default_model = "qwen/qwen-2.5-72b-instruct:free"

    def __init__(self, api_key: str, model: str = "") -> None:
        from ainews.config import OPENROUTER_SITE_NAME, OPENROUTER_SITE_URL

        super().__init__(
            api_key,
            model,
            base_url=OPENROUTER_BASE_URL,
            default_headers={
                "HTTP-Referer": OPENROUTER_SITE_URL,
                "X-Title": OPENROUTER_SITE_NAME,
            },
        )


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


class AnthropicProvider(LLMProvider):
    def __init__(self, api_key: str, model: str = "") -> None:
        from anthropic import AsyncAnthropic

        self.client = AsyncAnthropic(api_key=api_key, timeout=REQUEST_TIMEOUT)
        self.model = model or "claude-3-5-haiku-latest"

    async def complete(self, system: str, user: str) -> str:
        import anthropic

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
        except anthropic.RateLimitError as exc:
            raise RateLimitedError(str(exc)) from exc
        except anthropic.APIError as exc:
            raise EnrichmentError(str(exc)) from exc

        text = "".join(
            block.text for block in response.content if getattr(block, "text", None)
        )
        if not text:
            raise EnrichmentError("Empty completion")
        return text


# ---------------------------------------------------------------------------
# Google Gemini
# ---------------------------------------------------------------------------


class GoogleProvider(LLMProvider):
    def __init__(self, api_key: str, model: str = "") -> None:
        from google import genai

        self.client = genai.Client(api_key=api_key)
        self.model = model or "gemini-2.0-flash"

    async def complete(self, system: str, user: str) -> str:
        import httpx
        from google.genai import errors, types

        # The SDK retries transport failures itself and then re-raises the
        # raw httpx exception.
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=user,
                    config=types.GenerateContentConfig(
                        system_instruction=system,
                        max_output_tokens=MAX_TOKENS,
                        temperature=TEMPERATURE,
                    ),
                ),
                timeout=REQUEST_TIMEOUT,
            )
        except errors.APIError as exc:
            if exc.code == 429:
                raise RateLimitedError(str(exc)) from exc
            raise EnrichmentError(str(exc)) from exc
        except asyncio.TimeoutError as exc:
            raise EnrichmentError(f"Gemini timed out after {REQUEST_TIMEOUT}s") from exc
        except httpx.HTTPError as exc:
            raise EnrichmentError(f"Gemini transport error: {exc}") from exc

        if not response.text:
            raise EnrichmentError("Empty completion")
        return response.text


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_PROVIDERS: dict[str, type[LLMProvider]] = {
    "openrouter": OpenRouterProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "google": GoogleProvider,
}


def get_provider(provider_name: str, api_key: str, model: str = "") -> LLMProvider:
    """Create an LLM provider by name."""
    cls = _PROVIDERS.get(provider_name)
    if cls is None:
        raise ValueError(
            f"Unknown LLM provider: {provider_name!r}. "
            f"Choose from: {', '.join(_PROVIDERS)}"
        )
    return cls(api_key, model=model)


# ---------------------------------------------------------------------------
# Enricher
# ---------------------------------------------------------------------------


class Enricher:
    """Enriches candidates one at a time with bounded, typed retries.

    The provider's rate limit is shared with every other caller, so items
    are never sent concurrently; ``item_delay`` spaces successive items.
    """

    def __init__(
        self,
        provider: LLMProvider,
        item_delay: float = ITEM_DELAY,
        rate_limit_delays: tuple[float, ...] = RATE_LIMIT_DELAYS,
        error_delays: tuple[float, ...] = ERROR_DELAYS,
    ) -> None:
        if len(rate_limit_delays) != len(error_delays):
            raise ValueError("Retry delay tables must be the same length")
        self.provider = provider
        self.item_delay = item_delay
        self.rate_limit_delays = rate_limit_delays
        self.error_delays = error_delays

    @property
    def max_attempts(self) -> int:
        return len(self.error_delays) + 1

    async def enrich(self, candidate: Candidate) -> EnrichmentResult | None:
        """Return the enrichment, or None once every attempt has failed."""
        user_prompt = candidate.to_llm_text(MAX_CONTENT_CHARS)
        last_error: EnrichmentError | None = None

        for attempt in range(self.max_attempts):
            try:
                raw = await self.provider.complete(SYSTEM_PROMPT, user_prompt)
                return parse_enrichment(raw)
            except RateLimitedError as exc:
                last_error = exc
                delays = self.rate_limit_delays
            except EnrichmentError as exc:
                last_error = exc
                delays = self.error_delays
            except Exception as exc:
                logger.exception(
                    "Unexpected LLM error for %r (attempt %d/%d)",
                    candidate.title_en,
                    attempt + 1,
                    self.max_attempts,
                )
                last_error = EnrichmentError(str(exc))
                delays = self.error_delays

            if attempt + 1 >= self.max_attempts:
                break
            delay = delays[attempt]
            logger.warning(
                "LLM attempt %d/%d failed for %r (%s), retrying in %.0fs",
                attempt + 1,
                self.max_attempts,
                candidate.title_en,
                last_error,
                delay,
            )
            await asyncio.sleep(delay)

        logger.error(
            "LLM failed after %d attempts for %r: %s",
            self.max_attempts,
            candidate.title_en,
            last_error,
        )
        return None

    async def enrich_batch(
        self, candidates: list[Candidate]
    ) -> list[EnrichmentResult | None]:
        """Enrich sequentially; result ``i`` belongs to ``candidates[i]``."""
        results: list[EnrichmentResult | None] = []
        for i, candidate in enumerate(candidates):
            if i > 0 and self.item_delay:
                await asyncio.sleep(self.item_delay)
            results.append(await self.enrich(candidate))

        failed = sum(1 for r in results if r is None)
        logger.info(
            "LLM enrichment: %d ok, %d failed", len(results) - failed, failed
        )
        return results
