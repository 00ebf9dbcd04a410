"""
tests/conftest.py
──────────────────
Shared pytest fixtures for the backend test suite.

Fixtures
--------
clock
    ``FakeClock``: settable time source for the news cache.

mock_db
    ``MagicMock`` standing in for the Supabase client, pre-configured with
    sensible defaults so individual tests can override only what they need.

news_coordinator
    ``NewsCoordinator`` over mock news with a fresh cache per test.

app_client
    ``httpx.AsyncClient`` wired to the FastAPI app with the Supabase client
    and the news coordinator overridden, so tests never hit real services.

Usage
-----
    async def test_health(app_client):
        resp = await app_client.get("/")
        assert resp.status_code == 200
"""

import os

# Settings require Supabase credentials at import time of ``app.main``.
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("GEMINI_API_KEY", "")

from typing import AsyncGenerator, List
from unittest.mock import MagicMock

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_db, get_gemini_factory, get_news_coordinator
from app.main import app
from core.gemini import GeminiClient
from data_engine.coordinator import NewsCoordinator
from data_engine.fetcher import TweetsFetcher
from data_engine.news_cache import RefreshCoalescingCache
from schemas.market import Candle


# ── Time ──────────────────────────────────────────────────────────────────────


class FakeClock:
    """Callable time source; advance with ``clock.now += seconds``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> RefreshCoalescingCache:
    return RefreshCoalescingCache(clock=clock)


# ── Mock Supabase client ──────────────────────────────────────────────────────


@pytest.fixture
def mock_db() -> MagicMock:
    """
    Return a MagicMock that mimics the Supabase client's fluent query builder.

    The default return value for ``.execute()`` is ``MagicMock(data=[])``.
    Override in individual tests as needed:

        def test_something(mock_db):
            mock_db.table().select().execute.return_value = MagicMock(
                data=[{"symbol": "MESU24"}]
            )
    """
    client = MagicMock()
    # Default: any chain ending in .execute() returns an empty data list.
    client.table.return_value.select.return_value.execute.return_value = MagicMock(
        data=[]
    )
    (
        client.table.return_value
        .select.return_value
        .eq.return_value
        .order.return_value
        .limit.return_value
        .execute
    ).return_value = MagicMock(data=[])
    return client


# ── News ──────────────────────────────────────────────────────────────────────


@pytest.fixture
def news_coordinator(mock_db: MagicMock, cache: RefreshCoalescingCache) -> NewsCoordinator:
    """Coordinator reading tweets from ``mock_db``, no translation."""
    return NewsCoordinator(TweetsFetcher(db=mock_db), cache=cache)


# ── Gemini ────────────────────────────────────────────────────────────────────


def gemini_reply(text: str) -> dict:
    """Minimal ``generateContent`` response body."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def make_gemini_client(handler, api_key: str = "test-gemini-key") -> GeminiClient:
    """GeminiClient whose HTTP calls are answered by ``handler``."""
    return GeminiClient(api_key, transport=httpx.MockTransport(handler))


# ── Candles ───────────────────────────────────────────────────────────────────


def make_candles(count: int, start: float = 100.0, step: float = 0.5) -> List[Candle]:
    """``count`` 3-minute candles with a steady trend, starting 00:00 UTC."""
    candles = []
    for i in range(count):
        close = start + i * step
        minute = i * 3
        candles.append(
            Candle(
                timestamp=1_752_537_600 + minute * 60,
                datetime=f"2025-07-15T{minute // 60:02d}:{minute % 60:02d}:00+00:00",
                open=close - step / 2,
                high=close + 1,
                low=close - 1,
                close=close,
                volume=10,
            )
        )
    return candles


# ── Test client ───────────────────────────────────────────────────────────────


@pytest.fixture
async def app_client(
    mock_db: MagicMock, news_coordinator: NewsCoordinator
) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTPX client with Supabase and the news coordinator overridden.

    Startup lifespan is skipped to avoid real DB connections in tests.
    """
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_news_coordinator] = lambda: news_coordinator

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    await news_coordinator.drain()
    app.dependency_overrides.clear()


@pytest.fixture
def override_gemini():
    """
    Route analysis-endpoint Gemini calls to a handler.

        def test_x(override_gemini):
            override_gemini(lambda request: httpx.Response(200, json=...))
    """

    def install(handler) -> None:
        app.dependency_overrides[get_gemini_factory] = (
            lambda: (lambda api_key: make_gemini_client(handler, api_key))
        )

    return install
