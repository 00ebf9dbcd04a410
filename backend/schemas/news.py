"""
schemas/news.py
────────────────
Pydantic schemas for the news feed:

  GET  /api/v1/news/               → ``NewsResponse``
  POST /api/v1/news/refresh        → ``NewsResponse``
  POST /api/v1/news/validate-key   → ``ApiKeyValidationResponse``

News items are built from rows of the ``Tweets`` table (``TweetRaw``).
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

# Status reported alongside every news payload.
#   loading      nothing fetched yet
#   cached       served from cache, still inside the soft TTL
#   fresh        just fetched for this request
#   translating  stale items served while a refresh (fetch + translation) runs
#   error        the last fetch failed
NewsStatus = Literal["loading", "cached", "fresh", "translating", "error"]


class TweetRaw(BaseModel):
    """One row of the ``Tweets`` table after validation and cleaning."""

    created_at: str
    content: str
    original_links: Optional[str] = None


class NewsItem(BaseModel):
    """
    A single news entry shown in the news panel.

    Attributes:
        id:              ``tweet-<epoch ms>-<index>``.
        title:           First 50 characters of ``content``.
        title_chinese:   Translated title, once available.
        content:         Full tweet text.
        content_chinese: Translated content, once available.
        url:             Link from the tweet's ``original_links`` column.
        published_at:    Tweet ``created_at`` value, unchanged.
        category:        Always ``business`` for tweets.
        source:          Origin of the item.
    """

    id: str
    title: str
    title_chinese: Optional[str] = None
    content: str
    content_chinese: Optional[str] = None
    url: Optional[str] = None
    published_at: str
    category: Optional[str] = None
    source: Literal["tweets"] = "tweets"

    @property
    def is_translated(self) -> bool:
        return bool(self.title_chinese and self.content_chinese)


class NewsResponse(BaseModel):
    """Payload returned by the news endpoints."""

    news: List[NewsItem] = Field(default_factory=list)
    status: NewsStatus
    last_updated: Optional[datetime] = None
    error: Optional[str] = None


class ApiKeyValidationRequest(BaseModel):
    """Body of ``POST /api/v1/news/validate-key``; falls back to the server key."""

    api_key: Optional[str] = Field(default=None, description="Gemini API key to check")


class ApiKeyValidationResponse(BaseModel):
    valid: bool
