"""
Pydantic schemas for request/response serialization.

Separate from the data layer (``data_engine``) and routes (HTTP layer).
"""

from schemas.market import (
    AnalysisRequest,
    AnalysisResponse,
    Candle,
    IndicatorSnapshot,
    MarketDataResponse,
    SymbolsResponse,
)
from schemas.news import (
    ApiKeyValidationRequest,
    ApiKeyValidationResponse,
    NewsItem,
    NewsResponse,
    NewsStatus,
    TweetRaw,
)

__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "Candle",
    "IndicatorSnapshot",
    "MarketDataResponse",
    "SymbolsResponse",
    "ApiKeyValidationRequest",
    "ApiKeyValidationResponse",
    "NewsItem",
    "NewsResponse",
    "NewsStatus",
    "TweetRaw",
]
