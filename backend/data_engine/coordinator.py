"""
data_engine/coordinator.py
───────────────────────────
News coordinator: the SINGLE entry point for the news feed.

Workflow (per refresh)
----------------------
1. Read the latest tweets from Supabase via :class:`TweetsFetcher`
   (or use the built-in mock items when ``NEWS_USE_MOCK`` is set).
2. Translate items that have no translation yet via :class:`NewsTranslator`
   (skipped when no Gemini key is configured).
3. Store the result in the :class:`RefreshCoalescingCache`, which decides
   when step 1–2 actually run and coalesces concurrent requests.

The HTTP layer obtains one shared coordinator through
``app.api.dependencies.get_news_coordinator``.
"""

import logging
from typing import List, Optional

from data_engine.fetcher import TweetsFetcher, get_mock_news
from data_engine.news_cache import RefreshCoalescingCache
from data_engine.translator import NewsTranslator
from schemas.news import NewsItem, NewsResponse, NewsStatus

logger = logging.getLogger(__name__)


class NewsCoordinator:
    """
    Serve cached, translated news.

    Args:
        fetcher:    Source of news items.
        translator: Optional translator; ``None`` serves English only.
        cache:      Cache instance.  A fresh one is created when omitted.
        limit:      Number of latest tweets to load per refresh.
        use_mock:   Load canned items instead of querying the database.

    Example:
        >>> coordinator = NewsCoordinator(TweetsFetcher())
        >>> response = await coordinator.get_news()
    """

    def __init__(
        self,
        fetcher: TweetsFetcher,
        translator: Optional[NewsTranslator] = None,
        cache: Optional[RefreshCoalescingCache] = None,
        limit: int = 10,
        use_mock: bool = False,
    ) -> None:
        self._fetcher = fetcher
        self._translator = translator
        self._cache = cache if cache is not None else RefreshCoalescingCache()
        self._limit = limit
        self._use_mock = use_mock

    @property
    def cache(self) -> RefreshCoalescingCache:
        return self._cache

    # ── public API ────────────────────────────────────────────────────────

    async def get_news(self) -> NewsResponse:
        """Latest news through the stale-while-revalidate cache."""
        items, status, last_updated = await self._cache.get(self._load)
        return NewsResponse(
            news=items,
            status=status,
            last_updated=last_updated,
            error=self._error_for(status),
        )

    async def refresh_news(self) -> NewsResponse:
        """Bypass the cache and wait for a new fetch."""
        items, status, last_updated = await self._cache.refresh(self._load)
        return NewsResponse(
            news=items,
            status=status,
            last_updated=last_updated,
            error=self._error_for(status),
        )

    def clear_news(self) -> None:
        self._cache.clear()

    def cache_status(self) -> NewsStatus:
        return self._cache.status

    async def drain(self) -> None:
        """Let background refreshes finish (called on shutdown)."""
        await self._cache.drain()

    # ── private helpers ───────────────────────────────────────────────────

    async def _load(self) -> List[NewsItem]:
        if self._use_mock:
            items = get_mock_news()
        else:
            items = await self._fetcher.fetch_latest_news(self._limit)

        if self._translator is not None and items:
            items = await self._translator.fill_missing_translations(items)
        return items

    def _error_for(self, status: NewsStatus) -> Optional[str]:
        if status != "error":
            return None
        entry = self._cache.entry
        return entry.error if entry is not None else None
