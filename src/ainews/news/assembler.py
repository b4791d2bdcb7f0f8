"""Merge raw candidates with enrichment output into persistable records."""

from __future__ import annotations

from ainews.catalog import DEFAULT_CATEGORY, Category
from ainews.news import ArticleRecord, Candidate, EnrichmentResult

FALLBACK_SUMMARY_CHARS = 300


def assemble_record(
    candidate: Candidate, enrichment: EnrichmentResult | None
) -> ArticleRecord:
    base = dict(
        source_url=candidate.source_url,
        title_en=candidate.title_en,
        batch_id=candidate.batch_id,
        source_name=candidate.source_name,
        source_url_host=candidate.source_url_host,
        image_url=candidate.image_url,
        published_at=candidate.published_at,
    )
    if enrichment is None:
        # LLM failed — untranslated, raw content as the English summary
        return ArticleRecord(
            **base,
            category=DEFAULT_CATEGORY,
            summary_en=(candidate.raw_content or "")[:FALLBACK_SUMMARY_CHARS] or None,
        )

    return ArticleRecord(
        **base,
        category=Category.parse(enrichment.category),
        title_zh_tw=enrichment.title_zh_tw or None,
        title_zh_cn=enrichment.title_zh_cn or None,
        summary_en=enrichment.summary_en or None,
        summary_zh_tw=enrichment.summary_zh_tw or None,
        summary_zh_cn=enrichment.summary_zh_cn or None,
    )


def assemble_batch(
    candidates: list[Candidate],
    enrichments: list[EnrichmentResult | None],
) -> list[ArticleRecord]:
    """One record per candidate, in candidate order."""
    if len(candidates) != len(enrichments):
        raise ValueError(
            f"{len(candidates)} candidates but {len(enrichments)} enrichment results"
        )
    return [assemble_record(c, e) for c, e in zip(candidates, enrichments)]
