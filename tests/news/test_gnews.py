"""Tests for the GNews search client and novelty filter."""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from ainews.news.gnews import GNewsClient, filter_new_articles, is_article_url, is_open_access

from conftest import make_candidate, make_record


def _item(url, host="https://techcrunch.com", title="t", **extra):
    item = {
        "url": url,
        "title": title,
        "source": {"name": "Src", "url": host},
        "image": "https://img.example/x.jpg",
        "publishedAt": "2024-03-05T00:00:00Z",
        "description": "desc",
    }
    item.update(extra)
    return item


def _response(articles):
    resp = MagicMock()
    resp.json.return_value = {"totalArticles": len(articles), "articles": articles}
    resp.raise_for_status.return_value = None
    return resp


def _client(*responses, queries=("q1", "q2", "q3")):
    session = MagicMock()
    session.get.side_effect = list(responses)
    client = GNewsClient("key", queries=queries, query_delay=0, session=session)
    return client, session


class TestUrlHeuristics:
    @pytest.mark.parametrize(
        "url",
        ["https://techcrunch.com/", "https://techcrunch.com/ai/", "https://x.com", "", None, "not a url"],
    )
    def test_rejects_homepages(self, url):
        assert not is_article_url(url)

    def test_accepts_article(self):
        assert is_article_url("https://techcrunch.com/2024/03/05/some-story")

    def test_open_access_strips_www(self):
        assert is_open_access("https://www.theverge.com")
        assert is_open_access("https://reuters.com/")

    def test_paywalled_not_open_access(self):
        assert not is_open_access("https://www.wsj.com")
        assert not is_open_access(None)


class TestFetchBatch:
    def test_request_params(self):
        client, session = _client(_response([]), queries=("artificial intelligence",))
        client.fetch_batch("2024-03-05-08")
        _, kwargs = session.get.call_args
        assert session.get.call_args[0][0] == "https://gnews.io/api/v4/search"
        assert kwargs["params"] == {
            "q": "artificial intelligence",
            "lang": "en",
            "country": "us",
            "max": 10,
            "sortby": "publishedAt",
            "apikey": "key",
        }
        assert kwargs["timeout"] == 15

    def test_builds_candidates(self):
        client, _ = _client(
            _response([_item("https://techcrunch.com/2024/03/05/story", content="full text")]),
            queries=("q1",),
        )
        [c] = client.fetch_batch("2024-03-05-08")
        assert c.source_url == "https://techcrunch.com/2024/03/05/story"
        assert c.batch_id == "2024-03-05-08"
        assert c.source_name == "Src"
        assert c.source_url_host == "https://techcrunch.com"
        assert c.image_url == "https://img.example/x.jpg"
        assert c.raw_content == "full text"

    def test_description_when_no_content(self):
        client, _ = _client(_response([_item("https://techcrunch.com/2024/03/05/story")]), queries=("q1",))
        [c] = client.fetch_batch("b")
        assert c.raw_content == "desc"

    def test_filters_and_dedupes(self):
        dup = "https://techcrunch.com/2024/03/05/dup-story"
        client, _ = _client(
            _response([_item(dup), _item(None), _item("https://techcrunch.com/ai/")]),
            _response([_item(dup), _item("https://techcrunch.com/2024/03/05/other")]),
            _response([]),
        )
        urls = [c.source_url for c in client.fetch_batch("b")]
        assert urls == [dup, "https://techcrunch.com/2024/03/05/other"]

    def test_open_access_first(self):
        client, _ = _client(
            _response([
                _item("https://www.wsj.com/articles/ai-story-1", host="https://www.wsj.com"),
                _item("https://www.wired.com/story/ai-story-2", host="https://www.wired.com"),
            ]),
            _response([
                _item("https://www.nytimes.com/2024/ai-story-3", host="https://www.nytimes.com"),
                _item("https://arstechnica.com/ai/ai-story-4", host="https://arstechnica.com"),
            ]),
            queries=("q1", "q2"),
        )
        urls = [c.source_url for c in client.fetch_batch("b")]
        assert urls == [
            "https://www.wired.com/story/ai-story-2",
            "https://arstechnica.com/ai/ai-story-4",
            "https://www.wsj.com/articles/ai-story-1",
            "https://www.nytimes.com/2024/ai-story-3",
        ]

    def test_failed_query_is_skipped(self):
        client, session = _client(
            _response([_item("https://techcrunch.com/2024/03/05/first")]),
            requests.ConnectionError("boom"),
            _response([_item("https://techcrunch.com/2024/03/05/third")]),
        )
        urls = [c.source_url for c in client.fetch_batch("b")]
        assert urls == [
            "https://techcrunch.com/2024/03/05/first",
            "https://techcrunch.com/2024/03/05/third",
        ]
        assert session.get.call_count == 3

    def test_http_error_is_skipped(self):
        bad = MagicMock()
        bad.raise_for_status.side_effect = requests.HTTPError("429")
        client, _ = _client(bad, _response([_item("https://techcrunch.com/2024/03/05/ok")]), queries=("a", "b"))
        assert len(client.fetch_batch("b")) == 1

    def test_malformed_items_are_skipped(self):
        client, _ = _client(
            _response([
                {"url": "https://techcrunch.com/2024/03/05/string-source", "source": "TechCrunch"},
                "not an item",
                {"url": 42},
            ]),
            _response([_item("https://techcrunch.com/2024/03/05/second")]),
            queries=("q1", "q2"),
        )
        candidates = client.fetch_batch("b")
        assert [c.source_url for c in candidates] == [
            "https://techcrunch.com/2024/03/05/second",
            "https://techcrunch.com/2024/03/05/string-source",
        ]
        assert candidates[1].source_name is None
        assert candidates[1].source_url_host is None

    def test_non_string_fields_are_dropped(self):
        client, _ = _client(
            _response([_item("https://techcrunch.com/2024/03/05/story", title={"x": 1}, image=7)]),
            queries=("q1",),
        )
        [c] = client.fetch_batch("b")
        assert c.title_en == ""
        assert c.image_url is None

    @pytest.mark.parametrize("payload", [[{"url": "x"}], {"articles": "nope"}, "text"])
    def test_unexpected_payload_skips_query(self, payload):
        bad = MagicMock()
        bad.raise_for_status.return_value = None
        bad.json.return_value = payload
        client, _ = _client(bad, _response([_item("https://techcrunch.com/2024/03/05/ok")]), queries=("a", "b"))
        assert [c.source_url for c in client.fetch_batch("b")] == [
            "https://techcrunch.com/2024/03/05/ok"
        ]

    def test_no_api_key(self):
        session = MagicMock()
        client = GNewsClient("", session=session)
        assert client.fetch_batch("b") == []
        session.get.assert_not_called()

    def test_delay_between_queries(self, monkeypatch):
        sleeps = []
        monkeypatch.setattr("ainews.news.gnews.time.sleep", sleeps.append)
        session = MagicMock()
        session.get.side_effect = [_response([]), _response([]), _response([])]
        client = GNewsClient("key", queries=("a", "b", "c"), query_delay=0.6, session=session)
        client.fetch_batch("b")
        assert sleeps == [0.6, 0.6]


class TestFilterNewArticles:
    def test_empty_input_skips_storage(self):
        store = MagicMock()
        assert asyncio.run(filter_new_articles([], store)) == []
        store.get_existing_urls.assert_not_called()

    def test_drops_known_urls(self, store):
        known = make_candidate(1)
        fresh = make_candidate(2)

        async def scenario():
            try:
                await store.bulk_insert([make_record(1, source_url=known.source_url)])
                return await filter_new_articles([known, fresh], store)
            finally:
                await store.close()

        assert asyncio.run(scenario()) == [fresh]

    def test_single_lookup(self):
        calls = []

        class Store:
            async def get_existing_urls(self, urls):
                calls.append(list(urls))
                return {urls[0]}

        candidates = [make_candidate(i) for i in range(1, 4)]
        result = asyncio.run(filter_new_articles(candidates, Store()))
        assert result == candidates[1:]
        assert len(calls) == 1
