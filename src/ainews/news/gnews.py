"""GNews search client and novelty filter.

Three topic queries × 10 results = up to 30 candidates per batch, which
keeps two scheduled runs a day well inside the free-tier request quota.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import requests

from ainews.errors import SearchError
from ainews.news import Candidate

if TYPE_CHECKING:
    from ainews.storage.store import NewsStore

logger = logging.getLogger(__name__)

SEARCH_QUERIES: tuple[str, ...] = (
    "artificial intelligence",
    "machine learning",
    "AI regulation",
)

# Open-access sources (no paywall) — used to prioritise results, not to exclude.
# WSJ, NYT, WaPo and Bloomberg are left out: they redirect non-subscribers
# to their homepage.
OPEN_ACCESS_DOMAINS: frozenset[str] = frozenset({
    "techcrunch.com", "theverge.com", "wired.com", "venturebeat.com",
    "arstechnica.com", "engadget.com", "zdnet.com", "cnet.com",
    "cnbc.com", "reuters.com", "apnews.com", "axios.com",
    "fortune.com", "forbes.com", "businessinsider.com", "gizmodo.com",
    "technologyreview.com", "ieee.org", "theatlantic.com",
    "openai.com", "anthropic.com", "deepmind.com", "nvidia.com",
    "towardsdatascience.com", "machinelearningmastery.com",
})

# Paths this short ("/", "/ai/") are section fronts, not articles
MIN_ARTICLE_PATH_LEN = 10

QUERY_DELAY = 0.6  # seconds between queries
REQUEST_TIMEOUT = 15
RESULTS_PER_QUERY = 10


def _text(value: object) -> str | None:
    """Keep string fields; anything else in the payload is treated as missing."""
    return value if isinstance(value, str) and value else None


def is_open_access(host_url: str | None) -> bool:
    """True if the publisher host is on the no-paywall allowlist."""
    if not host_url:
        return False
    try:
        host = urlparse(host_url).hostname or ""
    except ValueError:
        return False
    if host.startswith("www."):
        host = host[4:]
    return host in OPEN_ACCESS_DOMAINS


def is_article_url(url: str | None) -> bool:
    """Reject root-level or near-root URLs (source homepages)."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if not parsed.scheme or not parsed.netloc:
        return False
    return len(parsed.path) > MIN_ARTICLE_PATH_LEN


class GNewsClient:
    """Queries the GNews search API for the configured topics."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://gnews.io/api/v4",
        queries: tuple[str, ...] = SEARCH_QUERIES,
        query_delay: float = QUERY_DELAY,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.queries = queries
        self.query_delay = query_delay
        self.session = session or requests.Session()

    def _search(self, query: str) -> list[dict]:
        resp = self.session.get(
            f"{self.base_url}/search",
            params={
                "q": query,
                "lang": "en",
                "country": "us",
                "max": RESULTS_PER_QUERY,
                "sortby": "publishedAt",
                "apikey": self.api_key,
            },
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
        payload = resp.json()
        if not isinstance(payload, dict):
            raise SearchError(f"Unexpected GNews payload: {type(payload).__name__}")
        articles = payload.get("articles") or []
        if not isinstance(articles, list):
            raise SearchError(f"Unexpected GNews articles: {type(articles).__name__}")
        return articles

    @staticmethod
    def _to_candidate(item: object, batch_id: str) -> Candidate | None:
        """Build a candidate from one result item, or None if it is unusable."""
        if not isinstance(item, dict):
            return None
        url = item.get("url")
        if not isinstance(url, str) or not is_article_url(url):
            return None
        source = item.get("source")
        if not isinstance(source, dict):
            source = {}
        return Candidate(
            source_url=url,
            title_en=_text(item.get("title")) or "",
            batch_id=batch_id,
            source_name=_text(source.get("name")),
            source_url_host=_text(source.get("url")),
            image_url=_text(item.get("image")),
            published_at=_text(item.get("publishedAt")),
            raw_content=_text(item.get("content")) or _text(item.get("description")) or "",
        )

    def fetch_batch(self, batch_id: str) -> list[Candidate]:
        """Fetch candidates for ``batch_id``: open-access sources first.

        A failed query is logged and skipped; the remaining queries still run.
        """
        if not self.api_key:
            logger.warning("GNEWS_API_KEY not configured, skipping fetch")
            return []

        seen: set[str] = set()
        preferred: list[Candidate] = []
        fallback: list[Candidate] = []

        for i, query in enumerate(self.queries):
            if i > 0 and self.query_delay:
                time.sleep(self.query_delay)
            try:
                items = self._search(query)
            except (requests.RequestException, ValueError, SearchError):
                logger.exception("GNews query %r failed", query)
                continue

            logger.info("GNews query %r → %d results", query, len(items))

            for item in items:
                candidate = self._to_candidate(item, batch_id)
                if candidate is None:
                    logger.debug("Skipping unusable GNews item: %r", item)
                    continue
                if candidate.source_url in seen:
                    continue
                seen.add(candidate.source_url)
                if is_open_access(candidate.source_url_host):
                    preferred.append(candidate)
                else:
                    fallback.append(candidate)

        logger.info(
            "GNews: %d open-access + %d other = %d candidates",
            len(preferred),
            len(fallback),
            len(preferred) + len(fallback),
        )
        return preferred + fallback


async def filter_new_articles(
    candidates: list[Candidate], store: NewsStore
) -> list[Candidate]:
    """Drop candidates whose URL is already stored (one bulk lookup)."""
    if not candidates:
        return []
    existing = await store.get_existing_urls([c.source_url for c in candidates])
    return [c for c in candidates if c.source_url not in existing]
