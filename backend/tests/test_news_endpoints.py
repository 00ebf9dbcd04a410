"""
tests/test_news_endpoints.py
─────────────────────────────
HTTP-level tests for the news endpoints and the health check:

  GET    /
  GET    /api/v1/news/
  POST   /api/v1/news/refresh
  DELETE /api/v1/news/cache
  POST   /api/v1/news/validate-key

The ``Tweets`` table is mocked through ``mock_db``; each test gets its own
news cache.
"""
from unittest.mock import MagicMock

import httpx

from conftest import gemini_reply

_NEWS_URL = "/api/v1/news"

_TWEET_ROWS = [
    {
        "created_at": "2025-07-14T12:00:00Z",
        "content": "Fed minutes show officials split on the timing of rate cuts",
        "original_links": "https://x.com/status/2",
    },
    {
        "created_at": "2025-07-14T09:00:00Z",
        "content": "Oil climbs as supply worries outweigh demand concerns",
        "original_links": None,
    },
]


def _wire_tweets(mock_db: MagicMock, rows=None, error=None) -> None:
    execute = mock_db.table.return_value.select.return_value.execute
    execute.return_value = MagicMock(data=rows or [])
    execute.side_effect = error


class TestHealth:
    async def test_reports_news_cache_status(self, app_client) -> None:
        resp = await app_client.get("/")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["news_cache"] == "loading"


class TestGetNews:
    async def test_first_call_is_fresh_then_cached(self, app_client, mock_db) -> None:
        _wire_tweets(mock_db, _TWEET_ROWS)

        first = await app_client.get(f"{_NEWS_URL}/")
        second = await app_client.get(f"{_NEWS_URL}/")

        assert first.status_code == 200
        assert first.json()["status"] == "fresh"
        assert [n["url"] for n in first.json()["news"]] == ["https://x.com/status/2", None]
        assert first.json()["last_updated"] is not None
        assert second.json()["status"] == "cached"
        assert mock_db.table.return_value.select.return_value.execute.call_count == 1

    async def test_db_failure_returns_error_status(self, app_client, mock_db) -> None:
        _wire_tweets(mock_db, error=RuntimeError("relation \"Tweets\" does not exist"))

        resp = await app_client.get(f"{_NEWS_URL}/")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "error"
        assert body["news"] == []
        assert "Tweets" in body["error"]

    async def test_stale_cache_is_served_while_refreshing(
        self, app_client, mock_db, clock
    ) -> None:
        _wire_tweets(mock_db, _TWEET_ROWS[:1])
        await app_client.get(f"{_NEWS_URL}/")

        clock.now += 45 * 60
        _wire_tweets(mock_db, _TWEET_ROWS)
        resp = await app_client.get(f"{_NEWS_URL}/")

        assert resp.json()["status"] == "translating"
        assert len(resp.json()["news"]) == 1


class TestRefreshAndClear:
    async def test_refresh_refetches(self, app_client, mock_db) -> None:
        _wire_tweets(mock_db, _TWEET_ROWS[:1])
        await app_client.get(f"{_NEWS_URL}/")

        _wire_tweets(mock_db, _TWEET_ROWS)
        resp = await app_client.post(f"{_NEWS_URL}/refresh")

        assert resp.status_code == 200
        assert resp.json()["status"] == "fresh"
        assert len(resp.json()["news"]) == 2

    async def test_refresh_failure(self, app_client, mock_db) -> None:
        _wire_tweets(mock_db, error=RuntimeError("down"))
        resp = await app_client.post(f"{_NEWS_URL}/refresh")

        assert resp.json()["status"] == "error"
        assert resp.json()["news"] == []

    async def test_clear_resets_cache(self, app_client, mock_db) -> None:
        _wire_tweets(mock_db, _TWEET_ROWS)
        await app_client.get(f"{_NEWS_URL}/")

        resp = await app_client.delete(f"{_NEWS_URL}/cache")
        assert resp.status_code == 204

        health = await app_client.get("/")
        assert health.json()["news_cache"] == "loading"


class TestValidateKey:
    async def test_valid_key(self, app_client, override_gemini) -> None:
        override_gemini(lambda request: httpx.Response(200, json=gemini_reply("Hi!")))
        resp = await app_client.post(f"{_NEWS_URL}/validate-key", json={"api_key": "k"})
        assert resp.status_code == 200
        assert resp.json() == {"valid": True}

    async def test_rejected_key(self, app_client, override_gemini) -> None:
        override_gemini(
            lambda request: httpx.Response(400, json={"error": {"message": "API key not valid."}})
        )
        resp = await app_client.post(f"{_NEWS_URL}/validate-key", json={"api_key": "bad"})
        assert resp.status_code == 200
        assert resp.json() == {"valid": False}

    async def test_400_without_any_key(self, app_client) -> None:
        resp = await app_client.post(f"{_NEWS_URL}/validate-key", json={})
        assert resp.status_code == 400
