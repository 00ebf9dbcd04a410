"""
schemas/market.py
──────────────────
Pydantic schemas for the market-data endpoints:

  GET  /api/v1/market/symbols             → ``SymbolsResponse``
  GET  /api/v1/market/{symbol}            → ``MarketDataResponse``
  POST /api/v1/market/{symbol}/analysis   → ``AnalysisRequest`` / ``AnalysisResponse``
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

# Timeframes with a pre-computed candle table (``market_ohlcv_<timeframe>``).
Timeframe = Literal["3min", "1hour"]


class Candle(BaseModel):
    """
    One OHLCV bar as stored in the candle tables.

    ``datetime`` carries its own UTC offset, e.g. ``2025-07-14T18:00:00-05:00``.
    ``datetime_beijing`` is the same instant for display (``2025/07/15 07:00:00``),
    filled in when candles are read from the database.
    """

    timestamp: float
    datetime: str
    open: float
    high: float
    low: float
    close: float
    volume: float
    datetime_beijing: Optional[str] = None


class MarketDataResponse(BaseModel):
    """Both timeframes for one symbol, each ordered oldest → newest."""

    symbol: str
    timezone: str = "UTC"
    data_1h: List[Candle] = Field(default_factory=list)
    data_3m: List[Candle] = Field(default_factory=list)


class SymbolsResponse(BaseModel):
    symbols: List[str] = Field(default_factory=list)


class IndicatorSnapshot(BaseModel):
    """
    Latest indicator values over a candle series.

    A value is ``None`` when the series is too short for its window.
    """

    macd: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_histogram: Optional[float] = None
    rsi: Optional[float] = None


class AnalysisRequest(BaseModel):
    """
    Candles to comment on, as previously returned by ``GET /market/{symbol}``.

    Attributes:
        data:            Candle series, oldest → newest (max 500 bars).
        api_key:         Gemini key supplied by the user; falls back to the
                         server's ``GEMINI_API_KEY`` when omitted.
        aggregate_15min: Resample the series to 15-minute bars first.
    """

    data: List[Candle] = Field(..., min_length=1, max_length=500)
    api_key: Optional[str] = None
    aggregate_15min: bool = False


class AnalysisResponse(BaseModel):
    symbol: str
    analysis: str
    indicators: IndicatorSnapshot
    aggregated: bool = False
