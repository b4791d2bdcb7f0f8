"""Shared fakes for the news pipeline tests."""

from __future__ import annotations

from dataclasses import replace

import pytest

from ainews.catalog import Category
from ainews.errors import EnrichmentError
from ainews.news import ArticleRecord, Candidate
from ainews.storage.store import NewsStore

VALID_JSON = (
    '{"category": "ai-research", '
    '"title_zh_tw": "繁體標題", "title_zh_cn": "简体标题", '
    '"summary_en": "An English summary.", '
    '"summary_zh_tw": "繁體摘要。", "summary_zh_cn": "简体摘要。"}'
)


def make_candidate(n: int = 1, batch_id: str = "2024-03-05-08", **overrides) -> Candidate:
    fields = dict(
        source_url=f"https://techcrunch.com/2024/03/05/story-number-{n}",
        title_en=f"Story {n}",
        batch_id=batch_id,
        source_name="TechCrunch",
        source_url_host="https://techcrunch.com",
        image_url=None,
        published_at=f"2024-03-05T0{n % 10}:00:00Z",
        raw_content=f"Raw content of story {n}. " * 40,
    )
    fields.update(overrides)
    return Candidate(**fields)


def make_record(
    n: int = 1,
    category: Category = Category.TECHNOLOGY,
    batch_id: str = "2024-03-05-08",
    **overrides,
) -> ArticleRecord:
    fields = dict(
        source_url=f"https://www.theverge.com/ai/2024/story-{n}",
        title_en=f"Title {n}",
        batch_id=batch_id,
        category=category,
        source_name="The Verge",
        source_url_host="https://www.theverge.com",
        published_at=f"2024-03-05T{n:02d}:00:00Z",
        summary_en=f"Summary {n}",
    )
    fields.update(overrides)
    return ArticleRecord(**fields)


class FakeProvider:
    """Replays scripted responses; an Exception instance is raised instead."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, str]] = []

    async def complete(self, system: str, user: str) -> str:
        self.calls.append((system, user))
        item = self.responses.pop(0) if self.responses else EnrichmentError("exhausted")
        if isinstance(item, Exception):
            raise item
        return item


class FakeSource:
    """Stands in for GNewsClient; stamps the requested batch id on each candidate."""

    def __init__(self, candidates: list[Candidate]) -> None:
        self.candidates = candidates
        self.batch_ids: list[str] = []

    def fetch_batch(self, batch_id: str) -> list[Candidate]:
        self.batch_ids.append(batch_id)
        return [replace(c, batch_id=batch_id) for c in self.candidates]


class RecordingTransport:
    """Collects messages instead of talking SMTP."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail_for = fail_for or set()

    def send(self, to: str, subject: str, html: str) -> None:
        if to in self.fail_for:
            raise OSError(f"connection refused for {to}")
        self.sent.append((to, subject, html))


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "data" / "ainews.db")


@pytest.fixture
def store(db_path) -> NewsStore:
    return NewsStore(db_path)
