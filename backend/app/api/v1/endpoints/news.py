"""
app/api/v1/endpoints/news.py
─────────────────────────────
News feed endpoints.

Routes
------
GET    /api/v1/news/          Latest news (stale-while-revalidate cache).
POST   /api/v1/news/refresh   Bypass the cache and wait for a new fetch.
DELETE /api/v1/news/cache     Drop the cached news.
POST   /api/v1/news/validate-key
                              Check a Gemini key for news translation.

All handlers are ``async def`` so they run on the event loop thread that
owns the news cache.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from app.api.dependencies import GeminiFactory, get_gemini_factory, get_news_coordinator
from core.config import Settings, get_settings
from data_engine.coordinator import NewsCoordinator
from data_engine.translator import NewsTranslator
from schemas.news import ApiKeyValidationRequest, ApiKeyValidationResponse, NewsResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=NewsResponse, summary="Latest business news")
async def get_news(
    coordinator: NewsCoordinator = Depends(get_news_coordinator),
) -> NewsResponse:
    """
    Return the latest news items.

    ``status`` tells the client where the data came from:
    ``cached`` (recent cache hit), ``fresh`` (fetched for this request),
    ``translating`` (older items while a refresh runs in the background) or
    ``error`` (the fetch failed; ``news`` may be empty).
    """
    response = await coordinator.get_news()
    logger.info("Served %d news items (status=%s)", len(response.news), response.status)
    return response


@router.post("/refresh", response_model=NewsResponse, summary="Force a news refresh")
async def refresh_news(
    coordinator: NewsCoordinator = Depends(get_news_coordinator),
) -> NewsResponse:
    """Discard the cache and wait for a new fetch (and translation)."""
    return await coordinator.refresh_news()


@router.delete("/cache", status_code=204, summary="Clear the news cache")
async def clear_news_cache(
    coordinator: NewsCoordinator = Depends(get_news_coordinator),
) -> Response:
    coordinator.clear_news()
    return Response(status_code=204)


@router.post(
    "/validate-key",
    response_model=ApiKeyValidationResponse,
    summary="Check a Gemini API key",
)
async def validate_api_key(
    req: ApiKeyValidationRequest,
    settings: Settings = Depends(get_settings),
    gemini_factory: GeminiFactory = Depends(get_gemini_factory),
) -> ApiKeyValidationResponse:
    """
    Send a trivial prompt with the key and report whether Gemini answered.

    The key in the body wins over the server's ``GEMINI_API_KEY``.

    Raises:
        HTTPException 400: No key in the body and none configured.
    """
    api_key = (req.api_key or settings.GEMINI_API_KEY).strip()
    if not api_key:
        raise HTTPException(status_code=400, detail="Gemini API key is missing.")

    valid = await NewsTranslator(gemini_factory(api_key)).validate_api_key()
    logger.info("Gemini key validation: %s", "ok" if valid else "rejected")
    return ApiKeyValidationResponse(valid=valid)
