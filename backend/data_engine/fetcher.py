"""
data_engine/fetcher.py
───────────────────────
Reads short-form business news from the ``Tweets`` table, the ONLY place
in the codebase that queries that table.

Rows are validated, cleaned, sorted newest first and converted into
:class:`~schemas.news.NewsItem` objects.  :class:`NewsCoordinator` wraps
:meth:`TweetsFetcher.fetch_latest_news` in the refresh-coalescing cache;
other modules should not call it directly.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

from core.database import get_supabase_client
from core.timeutils import parse_datetime
from data_engine.news_cache import FetchFailure
from schemas.news import NewsItem, TweetRaw

logger = logging.getLogger(__name__)

TWEETS_TABLE = "Tweets"
MIN_CONTENT_LENGTH = 10
TITLE_LENGTH = 50

# Twitter's native ``created_at`` format, e.g. "Wed Oct 10 20:19:24 +0000 2018".
_TWITTER_DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"

_MOCK_CONTENTS = [
    "Market volatility continues as investors react to latest economic indicators. Key sectors showing mixed signals across global exchanges.",
    "Breaking: Central bank announces new monetary policy framework. Interest rate decisions expected to impact financial markets significantly.",
    "Technology stocks surge on positive earnings reports. AI and cloud computing sectors leading the charge in today's trading session.",
    "Cryptocurrency market shows resilience despite regulatory concerns. Bitcoin and major altcoins maintaining steady growth patterns.",
    "Global supply chain disruptions affecting commodity prices. Energy and agricultural sectors experiencing significant price movements.",
    "Financial institutions report strong quarterly results. Banking sector confidence rises amid improved economic outlook.",
    "International trade negotiations progress as countries seek new economic partnerships. Market sentiment remains cautiously optimistic.",
    "Consumer spending data reveals changing patterns in post-pandemic economy. Retail and service sectors adapting to new trends.",
    "Climate change concerns drive investment in green technologies. Sustainable finance initiatives gaining momentum globally.",
    "Emerging markets attract renewed investor interest. Developing economies showing promising growth potential.",
]


# ── row helpers ───────────────────────────────────────────────────────────────


def parse_tweet_date(value: str) -> Optional[datetime]:
    """Parse ISO-8601 or Twitter-style ``created_at``; ``None`` if invalid."""
    parsed = parse_datetime(value)
    if parsed is not None:
        return parsed
    try:
        return datetime.strptime(value.strip(), _TWITTER_DATE_FORMAT)
    except (AttributeError, ValueError):
        return None


def validate_tweet(row: Dict[str, Any]) -> bool:
    """
    Return ``True`` if ``row`` can be shown as a news item.

    Requires ``created_at`` and ``content``; content must be a string of
    at least ``MIN_CONTENT_LENGTH`` characters and the date must parse.
    """
    created_at = row.get("created_at")
    content = row.get("content")
    if not created_at or not content:
        logger.debug("Skipping tweet with missing fields: %r", row)
        return False
    if not isinstance(content, str) or len(content.strip()) < MIN_CONTENT_LENGTH:
        logger.debug("Skipping tweet with short content: %r", content)
        return False
    if not isinstance(created_at, str) or parse_tweet_date(created_at) is None:
        logger.debug("Skipping tweet with invalid date: %r", created_at)
        return False
    return True


def clean_tweet(row: Dict[str, Any]) -> TweetRaw:
    """Trim fields and collapse whitespace in the content."""
    links = row.get("original_links")
    links = links.strip() if isinstance(links, str) else None
    return TweetRaw(
        created_at=row["created_at"].strip(),
        content=" ".join(row["content"].split()),
        original_links=links or None,
    )


def make_title(content: str) -> str:
    title = content.replace("\n", " ")[:TITLE_LENGTH].strip()
    if len(content) > TITLE_LENGTH:
        title += "..."
    return title


def convert_tweets_to_news_items(tweets: List[TweetRaw]) -> List[NewsItem]:
    """
    Turn cleaned tweets into news items, keeping their order.

    Args:
        tweets: Output of :meth:`TweetsFetcher.fetch_latest_tweets`.

    Returns:
        One ``NewsItem`` per tweet, category ``business``.
    """
    items: List[NewsItem] = []
    for index, tweet in enumerate(tweets):
        published = parse_tweet_date(tweet.created_at)
        millis = int(published.timestamp() * 1000) if published else 0
        items.append(
            NewsItem(
                id=f"tweet-{millis}-{index}",
                title=make_title(tweet.content),
                content=tweet.content,
                url=tweet.original_links,
                published_at=tweet.created_at,
                category="business",
            )
        )
    return items


def get_mock_news(now: Optional[datetime] = None) -> List[NewsItem]:
    """
    Ten canned news items, newest first and 30 minutes apart.

    Used when ``NEWS_USE_MOCK`` is set and by ``scripts/seed_data.py``.
    """
    now = now or datetime.now(timezone.utc)
    stamp = int(now.timestamp() * 1000)
    items: List[NewsItem] = []
    for i, content in enumerate(_MOCK_CONTENTS):
        published = now - timedelta(minutes=30 * i)
        items.append(
            NewsItem(
                id=f"mock-tweet-{stamp}-{i}",
                title=make_title(content),
                content=content,
                url=f"https://twitter.com/mock/status/{stamp}-{i}",
                published_at=published.isoformat(),
                category="business",
            )
        )
    logger.info("Using mock tweet news data")
    return items


# ── fetcher ───────────────────────────────────────────────────────────────────


class TweetsFetcher:
    """
    Fetch the latest tweets from Supabase and expose them as news.

    Args:
        db: Supabase client.  Resolved lazily through
            :func:`~core.database.get_supabase_client` when omitted, so
            tests can patch it.

    Example:
        >>> fetcher = TweetsFetcher()
        >>> items = await fetcher.fetch_latest_news(limit=10)
    """

    def __init__(self, db: Optional[Client] = None) -> None:
        self._db = db

    # ── public API ────────────────────────────────────────────────────────

    def fetch_latest_tweets(self, limit: int = 10) -> List[TweetRaw]:
        """
        Read every tweet, keep the valid ones and return the newest ``limit``.

        Raises:
            FetchFailure: The table could not be read.
        """
        db = self._db or get_supabase_client()
        logger.info("Fetching latest %d tweets…", limit)
        try:
            res = (
                db.table(TWEETS_TABLE)
                .select("created_at,content,original_links")
                .execute()
            )
        except Exception as exc:
            logger.exception("Error reading %s table", TWEETS_TABLE)
            raise FetchFailure(f"Failed to fetch tweets: {exc}") from exc

        rows = res.data or []
        if not rows:
            logger.warning("No tweets found in %s table", TWEETS_TABLE)
            return []

        tweets = [clean_tweet(row) for row in rows if validate_tweet(row)]
        tweets.sort(key=_sort_key, reverse=True)
        logger.info("Fetched %d valid tweets (of %d rows)", min(len(tweets), limit), len(rows))
        return tweets[:limit]

    async def fetch_latest_news(self, limit: int = 10) -> List[NewsItem]:
        """
        Async fetcher used by the news cache.

        The Supabase client is synchronous, so the query runs in a worker
        thread to keep the event loop free.
        """
        tweets = await asyncio.to_thread(self.fetch_latest_tweets, limit)
        items = convert_tweets_to_news_items(tweets)
        logger.info("Converted %d tweets to news items", len(items))
        return items


def _sort_key(tweet: TweetRaw) -> datetime:
    parsed = parse_tweet_date(tweet.created_at)
    return parsed if parsed is not None else datetime.min.replace(tzinfo=timezone.utc)
