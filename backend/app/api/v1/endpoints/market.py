"""
app/api/v1/endpoints/market.py
───────────────────────────────
Market-data and analysis endpoints.

Routes
------
GET  /api/v1/market/symbols             Distinct symbols with candle data.
GET  /api/v1/market/{symbol}            1-hour and 3-minute candles.
POST /api/v1/market/{symbol}/analysis   AI market commentary for candles.

IMPORTANT: /symbols is registered BEFORE /{symbol} so FastAPI does not
interpret the literal string as a path parameter.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from analytics.commentary import MarketAnalyst
from app.api.dependencies import GeminiFactory, get_db, get_gemini_factory
from core.config import Settings, get_settings
from core.gemini import GeminiError, InvalidApiKeyError, MissingApiKeyError
from data_engine.market_data import MarketDataError, MarketDataRepository
from schemas.market import (
    AnalysisRequest,
    AnalysisResponse,
    MarketDataResponse,
    SymbolsResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()

_MISSING_KEY = (
    "Gemini API key is missing. Please set it in the configuration "
    "before running analysis."
)
_INVALID_KEY = "The supplied Gemini API key is invalid or malformed. Please check it and retry."


@router.get("/symbols", response_model=SymbolsResponse, summary="List symbols")
def list_symbols(db: Client = Depends(get_db)) -> SymbolsResponse:
    """
    Return every symbol that has hourly candles, sorted.

    Raises:
        HTTPException 502: The database query failed.
    """
    try:
        symbols = MarketDataRepository(db).list_symbols()
    except MarketDataError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return SymbolsResponse(symbols=symbols)


@router.get(
    "/{symbol}",
    response_model=MarketDataResponse,
    summary="Candles for a symbol",
)
def get_market_data(symbol: str, db: Client = Depends(get_db)) -> MarketDataResponse:
    """
    Return the latest 50 hourly and 200 three-minute candles for ``symbol``.

    Args:
        symbol: Contract / ticker symbol (case-insensitive).

    Raises:
        HTTPException 404: No candles in either timeframe.
        HTTPException 502: The database query failed.
    """
    try:
        return MarketDataRepository(db).get_market_data(symbol)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except MarketDataError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.post(
    "/{symbol}/analysis",
    response_model=AnalysisResponse,
    summary="AI market commentary",
)
async def analyze_market(
    symbol: str,
    req: AnalysisRequest,
    settings: Settings = Depends(get_settings),
    gemini_factory: GeminiFactory = Depends(get_gemini_factory),
) -> AnalysisResponse:
    """
    Compute MACD/RSI for the posted candles and ask Gemini for a report.

    The key in the request body wins over the server's ``GEMINI_API_KEY``.

    Raises:
        HTTPException 400: No key available, or Gemini rejected it.
        HTTPException 502: The LLM call failed.
    """
    api_key = (req.api_key or settings.GEMINI_API_KEY).strip()
    if not api_key:
        raise HTTPException(status_code=400, detail=_MISSING_KEY)

    analyst = MarketAnalyst(gemini_factory(api_key))
    try:
        return await analyst.analyze(symbol, req.data, aggregate_15min=req.aggregate_15min)
    except (MissingApiKeyError, InvalidApiKeyError) as exc:
        raise HTTPException(status_code=400, detail=_INVALID_KEY) from exc
    except GeminiError as exc:
        logger.error("Market analysis failed for %s: %s", symbol, exc)
        raise HTTPException(status_code=502, detail=f"AI analysis failed: {exc}") from exc
