"""
data_engine/news_cache.py
──────────────────────────
In-process refresh-coalescing cache for the news feed.

One cache object holds a single entry (the whole news collection).  Reads
follow a stale-while-revalidate policy bounded by two thresholds:

- age < ``SOFT_TTL``             served as ``cached``, no fetch.
- ``SOFT_TTL`` <= age < ``HARD_TTL``
                                 served immediately as ``translating`` while
                                 one background fetch refreshes the entry.
- age >= ``HARD_TTL`` (or empty) the caller waits for a fresh fetch.

At most one fetch is in flight at any time; every caller that arrives while
it is pending joins the same ``asyncio.Task`` (single-flight).  All state
changes happen on the event loop thread with no ``await`` between reading
and writing, so no locks are needed.

Usage
-----
    cache = RefreshCoalescingCache()
    result = await cache.get(fetcher.fetch_latest_news)
    result.items, result.status, result.last_updated
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    List,
    NamedTuple,
    Optional,
    Sequence,
    Set,
    TypeVar,
)

from schemas.news import NewsStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Staleness thresholds, in seconds.
SOFT_TTL: float = 30 * 60
HARD_TTL: float = 4 * 60 * 60

Fetcher = Callable[[], Awaitable[Sequence[T]]]


class FetchFailure(Exception):
    """The fetcher behind the cache raised or returned an unusable result."""


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """
    Snapshot of the cached collection.

    Entries are never mutated in place; every state change swaps in a new
    instance so readers always see a consistent set of fields.

    Attributes:
        items:        Cached collection, newest first.
        last_updated: Clock value of the last completed fetch, ``None``
                      until one has succeeded.  A failed fetch advances
                      it only while the items are younger than the hard
                      TTL.
        is_updating:  ``True`` while a fetch is outstanding.
        error:        Message of the last failed fetch, cleared on success.
    """

    items: List[T] = field(default_factory=list)
    last_updated: Optional[float] = None
    is_updating: bool = False
    error: Optional[str] = None


class CacheResult(NamedTuple):
    """What a reader gets back from :meth:`RefreshCoalescingCache.get`."""

    items: List[Any]
    status: NewsStatus
    last_updated: Optional[datetime]


class RefreshCoalescingCache(Generic[T]):
    """
    Single-slot TTL cache with single-flight refresh.

    Args:
        soft_ttl: Age (seconds) after which the entry is refreshed in the
                  background on the next read.
        hard_ttl: Age (seconds) after which stale items are no longer served
                  and readers wait for the fetch instead.
        clock:    Returns the current time in seconds.  Injected by tests.

    Example:
        >>> cache = RefreshCoalescingCache()
        >>> items, status, last_updated = await cache.get(load_news)
    """

    def __init__(
        self,
        soft_ttl: float = SOFT_TTL,
        hard_ttl: float = HARD_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if soft_ttl > hard_ttl:
            raise ValueError("soft_ttl must not exceed hard_ttl")
        self._soft_ttl = soft_ttl
        self._hard_ttl = hard_ttl
        self._clock = clock
        self._entry: Optional[CacheEntry[T]] = None
        self._inflight: Optional[asyncio.Task] = None
        # Strong references so fire-and-forget fetches are not collected
        # while still running.
        self._tasks: Set[asyncio.Task] = set()

    # ── inspection ────────────────────────────────────────────────────────

    @property
    def entry(self) -> Optional[CacheEntry[T]]:
        """Current entry, or ``None`` before first access / after ``clear()``."""
        return self._entry

    @property
    def is_fetching(self) -> bool:
        return self._inflight is not None

    @property
    def status(self) -> NewsStatus:
        """
        Passive status of the entry, for health checks.

        ``loading`` before anything was fetched, ``error`` when the last
        fetch failed, ``translating`` while a fetch runs, ``cached`` inside
        the soft TTL and ``fresh`` once a successful entry is due for
        refresh on the next read.
        """
        entry = self._entry
        if entry is None:
            return "loading"
        if entry.error:
            return "error"
        if entry.is_updating:
            return "translating"
        if self._age(entry, self._clock()) < self._soft_ttl:
            return "cached"
        return "fresh"

    @property
    def last_updated(self) -> Optional[datetime]:
        """Time of the last completed fetch (UTC)."""
        return self._last_updated()

    def age(self) -> Optional[float]:
        """Seconds since the last completed fetch, ``None`` if there was none."""
        entry = self._entry
        if entry is None or entry.last_updated is None:
            return None
        return self._clock() - entry.last_updated

    # ── public API ────────────────────────────────────────────────────────

    async def get(self, fetch: Fetcher) -> CacheResult:
        """
        Return the cached collection, refreshing it through ``fetch`` when due.

        Args:
            fetch: Zero-argument coroutine function producing the collection.

        Returns:
            ``CacheResult(items, status, last_updated)`` where ``status`` is
            ``cached``, ``fresh``, ``translating`` or ``error``.  Fetch
            failures are reported through ``status`` and never raised.
        """
        now = self._clock()
        entry = self._entry

        if entry is not None and self._age(entry, now) < self._soft_ttl:
            logger.debug("Returning cached news (%d items)", len(entry.items))
            return self._result(entry, "cached")

        servable = self._is_servable(entry, now)

        if self._inflight is not None:
            if servable:
                logger.info("Update in progress, returning cached data")
                return self._result(entry, "translating")

            logger.info("Waiting for ongoing news update…")
            try:
                items = await asyncio.shield(self._inflight)
            except FetchFailure:
                latest = self._entry
                if latest is not None and self._age(latest, self._clock()) < self._hard_ttl:
                    return self._result(latest, "error")
                return CacheResult([], "error", None)
            return CacheResult(list(items), "fresh", self._last_updated())

        task = self._start_update(fetch)

        if servable:
            # Background revalidation: the caller keeps the stale items.
            return self._result(entry, "translating")

        try:
            items = await asyncio.shield(task)
        except FetchFailure:
            return CacheResult([], "error", None)
        return CacheResult(list(items), "fresh", self._last_updated())

    async def force_refresh(self, fetch: Fetcher) -> List[T]:
        """
        Drop the current entry and wait for a brand-new fetch.

        Returns:
            The fetched items, or an empty list if the fetch failed.
        """
        result = await self.refresh(fetch)
        return result.items

    async def refresh(self, fetch: Fetcher) -> CacheResult:
        """
        Like :meth:`force_refresh`, but return the full result.

        ``status`` is ``fresh`` or ``error`` for this caller's own fetch,
        whatever older fetches still running write into the entry later.
        """
        logger.info("Force refreshing news cache…")
        self.clear()
        return await self.get(fetch)

    def clear(self) -> None:
        """
        Forget the entry and the in-flight handle.

        A fetch that is already running is not cancelled; when it finishes
        it still writes its result into a new entry.
        """
        self._entry = None
        self._inflight = None
        logger.info("News cache cleared")

    async def drain(self) -> None:
        """Wait until every fetch started by this cache has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── private helpers ───────────────────────────────────────────────────

    def _start_update(self, fetch: Fetcher) -> asyncio.Task:
        logger.info("Starting news update…")
        if self._entry is None:
            self._entry = CacheEntry(is_updating=True)
        else:
            self._entry = replace(self._entry, is_updating=True)

        task = asyncio.create_task(self._run_fetch(fetch))
        self._inflight = task
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def _run_fetch(self, fetch: Fetcher) -> List[T]:
        current = asyncio.current_task()
        try:
            items = list(await fetch())
        except asyncio.CancelledError:
            self._settle(current, error="update cancelled")
            raise
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            logger.warning("News update failed: %s", message)
            self._settle(current, error=message)
            raise FetchFailure(message) from exc

        self._settle(current, items=items)
        logger.info("News cache updated with %d items", len(items))
        return items

    def _settle(
        self,
        task: Optional[asyncio.Task],
        items: Optional[List[T]] = None,
        error: Optional[str] = None,
    ) -> None:
        """Apply a finished fetch: entry and in-flight handle change together."""
        if self._inflight is task:
            self._inflight = None
        # After clear() another fetch may already be running.
        still_updating = self._inflight is not None

        if items is not None:
            self._entry = CacheEntry(
                items=items,
                last_updated=self._clock(),
                is_updating=still_updating,
                error=None,
            )
            return

        # Failures inside the hard TTL restart the soft TTL; cold and
        # hard-expired entries keep their timestamp.
        previous = self._entry or CacheEntry()
        now = self._clock()
        last_updated = previous.last_updated
        if last_updated is not None and self._age(previous, now) < self._hard_ttl:
            last_updated = now
        self._entry = replace(
            previous,
            last_updated=last_updated,
            is_updating=still_updating,
            error=error,
        )

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled():
            # Already recorded on the entry; retrieving it keeps asyncio
            # from reporting an unretrieved exception for background fetches.
            task.exception()

    def _age(self, entry: CacheEntry[T], now: float) -> float:
        if entry.last_updated is None:
            return float("inf")
        return now - entry.last_updated

    def _is_servable(self, entry: Optional[CacheEntry[T]], now: float) -> bool:
        """Stale items may be handed out while a refresh runs."""
        return (
            entry is not None
            and bool(entry.items)
            and self._age(entry, now) < self._hard_ttl
        )

    def _last_updated(self) -> Optional[datetime]:
        entry = self._entry
        return _to_datetime(entry.last_updated) if entry is not None else None

    def _result(self, entry: CacheEntry[T], status: NewsStatus) -> CacheResult:
        return CacheResult(list(entry.items), status, _to_datetime(entry.last_updated))


def _to_datetime(ts: Optional[float]) -> Optional[datetime]:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc)
