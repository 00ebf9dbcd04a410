"""
app/api/dependencies.py
───────────────────────
FastAPI dependency functions shared across all endpoints.

Tests replace any of these through ``app.dependency_overrides``.

Usage
-----
    from app.api.dependencies import get_db, get_news_coordinator

    @router.get("/foo")
    async def my_route(coordinator = Depends(get_news_coordinator)):
        ...
"""

from functools import lru_cache
from typing import Callable

from supabase import Client

from core.config import get_settings
from core.database import get_supabase_client
from core.gemini import GeminiClient
from data_engine.coordinator import NewsCoordinator
from data_engine.fetcher import TweetsFetcher
from data_engine.translator import NewsTranslator

GeminiFactory = Callable[[str], GeminiClient]


def get_db() -> Client:
    """
    FastAPI dependency that returns the Supabase client singleton.

    Inject via ``Depends(get_db)`` in any route handler.

    Returns:
        Authenticated Supabase ``Client`` instance.
    """
    return get_supabase_client()


def get_gemini_factory() -> GeminiFactory:
    """
    Return a callable building a :class:`GeminiClient` for a given key.

    Analysis requests may carry their own key, so the client is built per
    request rather than shared.
    """
    settings = get_settings()

    def build(api_key: str) -> GeminiClient:
        return GeminiClient(
            api_key, model=settings.GEMINI_MODEL, timeout=settings.GEMINI_TIMEOUT
        )

    return build


@lru_cache(maxsize=1)
def get_news_coordinator() -> NewsCoordinator:
    """
    Process-wide :class:`NewsCoordinator` (owns the one news cache).

    Translation is wired in only when ``TRANSLATE_NEWS`` is on and a
    ``GEMINI_API_KEY`` is configured.
    """
    settings = get_settings()
    translator = None
    if settings.translation_enabled:
        translator = NewsTranslator(get_gemini_factory()(settings.GEMINI_API_KEY))
    return NewsCoordinator(
        TweetsFetcher(),
        translator=translator,
        limit=settings.NEWS_LIMIT,
        use_mock=settings.NEWS_USE_MOCK,
    )
