"""
core/database.py
────────────────
Supabase client factory with a module-level singleton.

The client is created once per process (using ``functools.lru_cache``)
and reused for every request.  All database interaction must go through
``get_supabase_client()``. Never call ``create_client`` elsewhere.

Tables read by this service
---------------------------
- ``Tweets``               short-form business news (``data_engine.fetcher``)
- ``market_ohlcv_3min``    pre-computed 3-minute candles
- ``market_ohlcv_1hour``   pre-computed 1-hour candles

Usage (route handler)
---------------------
    from app.api.dependencies import get_db
    from fastapi import Depends

    @router.get("/")
    def my_route(db = Depends(get_db)):
        return db.table("market_ohlcv_1hour").select("symbol").execute().data

Usage (non-FastAPI context, e.g. TweetsFetcher)
-----------------------------------------------
    from core.database import get_supabase_client

    client = get_supabase_client()
"""

import logging
from functools import lru_cache

from supabase import Client, ClientOptions, create_client

from core.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """
    Return the application-wide Supabase client singleton.

    The client is initialised lazily on first call and reused for all
    subsequent calls in the same process.

    Table queries time out after ``SUPABASE_TIMEOUT`` seconds, so a news
    fetch stuck on the database still settles.

    Returns:
        Authenticated Supabase ``Client`` ready for table queries.
    """
    settings = get_settings()
    options = ClientOptions(postgrest_client_timeout=settings.SUPABASE_TIMEOUT)
    client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY, options=options)
    logger.info(
        "Supabase client initialised (url=%s, timeout=%.1fs)",
        settings.SUPABASE_URL, settings.SUPABASE_TIMEOUT,
    )
    return client
