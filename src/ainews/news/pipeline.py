"""News pipeline: fetch → dedup → enrich → persist → digest.

One call is one batch. Re-running with the same search results is a no-op
because ``source_url`` is unique in storage.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from ainews.mail.digest import DigestDispatcher
from ainews.news import PipelineResult
from ainews.news.assembler import assemble_batch
from ainews.news.batch import generate_batch_id
from ainews.news.gnews import GNewsClient, filter_new_articles
from ainews.news.llm import Enricher
from ainews.storage.store import NewsStore

logger = logging.getLogger(__name__)

TRIGGERS = ("scheduler", "manual")


class NewsPipeline:
    """Sequences one ingestion run and owns the error boundaries between stages."""

    def __init__(
        self,
        store: NewsStore,
        source: GNewsClient,
        enricher: Enricher | None,
        dispatcher: DigestDispatcher | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.source = source
        self.enricher = enricher
        self.dispatcher = dispatcher
        self.clock = clock
        # Serialises runs within this process; other processes rely on the
        # unique constraint on source_url.
        self._lock = asyncio.Lock()

    async def run(self, triggered_by: str = "scheduler") -> PipelineResult:
        if triggered_by not in TRIGGERS:
            raise ValueError(f"Unknown trigger: {triggered_by!r}")
        if self._lock.locked():
            logger.info("Pipeline already running, waiting for it to finish")
        async with self._lock:
            return await self._run(triggered_by)

    async def _run(self, triggered_by: str) -> PipelineResult:
        batch_id = generate_batch_id(self.clock() if self.clock else None)
        logger.info("Starting batch %s, triggered by: %s", batch_id, triggered_by)

        try:
            # Step 1: Fetch candidates (blocking HTTP)
            raw = await asyncio.to_thread(self.source.fetch_batch, batch_id)
            logger.info("Fetched %d raw articles", len(raw))

            # Step 2: Drop already-stored URLs
            novel = await filter_new_articles(raw, self.store)
            logger.info("%d new articles after dedup", len(novel))
            if not novel:
                return PipelineResult(batch_id, 0)

            # Step 3: LLM enrichment (sequential)
            if self.enricher is not None:
                enrichments = await self.enricher.enrich_batch(novel)
            else:
                logger.warning("No LLM configured, storing untranslated articles")
                enrichments = [None] * len(novel)

            # Step 4: Merge and persist atomically
            records = assemble_batch(novel, enrichments)
            inserted = await self.store.bulk_insert(records)
            logger.info("Inserted %d articles", inserted)
        except Exception:
            logger.exception("Fatal error in batch %s", batch_id)
            raise

        # Step 5: Digests (scheduled runs only)
        if triggered_by == "scheduler" and inserted > 0 and self.dispatcher is not None:
            await self._send_digests(batch_id)

        logger.info("Batch %s complete. %d articles added.", batch_id, inserted)
        return PipelineResult(batch_id, inserted)

    async def _send_digests(self, batch_id: str) -> None:
        try:
            articles = await self.store.get_by_batch_id(batch_id)
            subscribers = await self.store.get_digest_subscribers()
            await self.dispatcher.dispatch(batch_id, articles, subscribers)
        except Exception:
            logger.exception("Email digest error for batch %s (non-fatal)", batch_id)


def build_pipeline() -> NewsPipeline:
    """Wire a pipeline from environment configuration."""
    from ainews.config import APP_URL, DB_PATH, GNEWS_API_KEY, GNEWS_BASE_URL, resolve_llm
    from ainews.mail.templates import TemplateCache
    from ainews.mail.transport import SMTPTransport
    from ainews.news.llm import get_provider

    provider_name, api_key, model = resolve_llm()
    enricher = None
    if api_key:
        enricher = Enricher(get_provider(provider_name, api_key, model=model))
    else:
        logger.info("No LLM API key configured (env), enrichment disabled")

    return NewsPipeline(
        store=NewsStore(DB_PATH),
        source=GNewsClient(GNEWS_API_KEY, base_url=GNEWS_BASE_URL),
        enricher=enricher,
        dispatcher=DigestDispatcher(
            SMTPTransport.from_config(), TemplateCache(), app_url=APP_URL
        ),
    )


_pipeline: NewsPipeline | None = None


def _get_pipeline() -> NewsPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline()
    return _pipeline


async def run_news_pipeline(triggered_by: str = "scheduler") -> dict:
    """Entry point for the scheduler and the manual trigger.

    Returns ``{"batchId": ..., "articlesAdded": ...}``.
    """
    result = await _get_pipeline().run(triggered_by)
    return result.to_dict()
