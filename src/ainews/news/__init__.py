"""AI news pipeline — data models."""

from __future__ import annotations

from dataclasses import dataclass, field

from ainews.catalog import ALL_CATEGORIES, Category, Language


@dataclass(frozen=True)
class Candidate:
    """A search result considered for ingestion."""

    source_url: str  # unique key across all batches
    title_en: str
    batch_id: str
    source_name: str | None = None
    source_url_host: str | None = None  # publisher homepage, e.g. https://techcrunch.com
    image_url: str | None = None
    published_at: str | None = None  # ISO-8601 as returned by the provider
    raw_content: str = ""

    def to_llm_text(self, max_chars: int = 1500) -> str:
        """Format for LLM input."""
        return f"Title: {self.title_en}\nContent: {(self.raw_content or '')[:max_chars]}"


@dataclass
class EnrichmentResult:
    """Fields produced by the generation model for one candidate.

    ``category`` is kept as the raw model string; it is validated when the
    record is assembled.
    """

    category: str | None = None
    title_zh_tw: str | None = None
    title_zh_cn: str | None = None
    summary_en: str | None = None
    summary_zh_tw: str | None = None
    summary_zh_cn: str | None = None


@dataclass
class ArticleRecord:
    """Candidate merged with enrichment output — the unit persisted."""

    source_url: str
    title_en: str
    batch_id: str
    category: Category
    source_name: str | None = None
    source_url_host: str | None = None
    image_url: str | None = None
    published_at: str | None = None
    title_zh_tw: str | None = None
    title_zh_cn: str | None = None
    summary_en: str | None = None
    summary_zh_tw: str | None = None
    summary_zh_cn: str | None = None

    def title(self, lang: Language) -> str:
        """Title in ``lang``, falling back to English."""
        if lang is Language.ZH_TW and self.title_zh_tw:
            return self.title_zh_tw
        if lang is Language.ZH_CN and self.title_zh_cn:
            return self.title_zh_cn
        return self.title_en

    def summary(self, lang: Language) -> str:
        """Summary in ``lang``, falling back to English."""
        if lang is Language.ZH_TW and self.summary_zh_tw:
            return self.summary_zh_tw
        if lang is Language.ZH_CN and self.summary_zh_cn:
            return self.summary_zh_cn
        return self.summary_en or ""

    @property
    def link(self) -> str:
        """Link for the digest (article URL, then publisher homepage)."""
        return self.source_url or self.source_url_host or "#"


@dataclass
class Subscriber:
    """A verified user with digest preferences."""

    user_id: int
    email: str
    display_name: str | None = None
    languages: list[Language] = field(default_factory=lambda: [Language.EN])
    categories: list[Category] = field(default_factory=lambda: list(ALL_CATEGORIES))
    email_digest: bool = True

    @property
    def primary_language(self) -> Language:
        return self.languages[0] if self.languages else Language.EN


@dataclass
class PipelineResult:
    """Summary returned to the trigger."""

    batch_id: str
    articles_added: int

    def to_dict(self) -> dict:
        return {"batchId": self.batch_id, "articlesAdded": self.articles_added}
