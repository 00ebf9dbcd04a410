"""
data_engine: News fetch/cache layer and market-data access.

Public API
----------
    from data_engine import NewsCoordinator, RefreshCoalescingCache, TweetsFetcher
"""

from data_engine.coordinator import NewsCoordinator
from data_engine.fetcher import TweetsFetcher
from data_engine.market_data import MarketDataError, MarketDataRepository
from data_engine.news_cache import FetchFailure, RefreshCoalescingCache
from data_engine.translator import NewsTranslator

__all__ = [
    "FetchFailure",
    "MarketDataError",
    "MarketDataRepository",
    "NewsCoordinator",
    "NewsTranslator",
    "RefreshCoalescingCache",
    "TweetsFetcher",
]
