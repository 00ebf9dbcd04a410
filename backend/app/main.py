"""
app/main.py
────────────
FastAPI application factory.

All business logic lives in ``app/api/v1/endpoints/``.
This file is intentionally slim. It wires together logging, middleware,
routers, and lifecycle events only.

API Layout
----------
GET    /                                  Health check  (no auth)
GET    /api/v1/news/                      Cached, translated business news
POST   /api/v1/news/refresh               Force a news refresh
DELETE /api/v1/news/cache                 Clear the news cache
POST   /api/v1/news/validate-key          Check a Gemini API key
GET    /api/v1/market/symbols             Symbols with candle data
GET    /api/v1/market/{symbol}            1-hour + 3-minute candles
POST   /api/v1/market/{symbol}/analysis   AI market commentary

OpenAPI docs
------------
- Swagger UI:  http://localhost:8000/docs
- ReDoc:       http://localhost:8000/redoc
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.dependencies import get_news_coordinator
from app.api.v1.router import api_router
from core.config import get_settings
from core.database import get_supabase_client
from data_engine.coordinator import NewsCoordinator

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application startup and shutdown logic.

    Startup:  Warm up the Supabase client singleton so the first request
              doesn't pay the connection overhead.
    Shutdown: Let any background news refresh finish writing its result.
    """
    logger.info(
        "Starting %s v%s (debug=%s, translation=%s)",
        settings.APP_TITLE,
        settings.APP_VERSION,
        settings.DEBUG,
        settings.translation_enabled,
    )
    try:
        get_supabase_client()  # warm up; raises early if env vars are wrong
        logger.info("Supabase connection verified")
    except Exception as exc:
        logger.error("Supabase initialisation failed: %s", exc)
        raise

    yield  # ← application runs here

    await get_news_coordinator().drain()
    logger.info("Shutting down %s", settings.APP_TITLE)


# ── App factory ───────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.APP_TITLE,
    version=settings.APP_VERSION,
    description=settings.APP_DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── Middleware ────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(api_router, prefix="/api/v1")

# ── Root health-check ─────────────────────────────────────────────────────────


@app.get("/", tags=["health"], summary="Health check")
async def health_check(
    coordinator: NewsCoordinator = Depends(get_news_coordinator),
) -> dict:
    """
    Lightweight liveness probe.

    Returns:
        Status, current API version and the news cache status.
    """
    return {
        "status": "ok",
        "version": settings.APP_VERSION,
        "news_cache": coordinator.cache_status(),
    }
