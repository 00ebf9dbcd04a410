"""
app/api/v1/router.py
─────────────────────
Aggregates the v1 endpoint routers under ``/api/v1``.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import market, news

api_router = APIRouter()
api_router.include_router(news.router, prefix="/news", tags=["news"])
api_router.include_router(market.router, prefix="/market", tags=["market"])
