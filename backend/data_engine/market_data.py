"""
data_engine/market_data.py
───────────────────────────
Read access to the pre-computed OHLCV candle tables.

Candles are written by an external ingestion job into one table per
timeframe (``market_ohlcv_3min``, ``market_ohlcv_1hour``), keyed by
upper-case ``symbol`` and sorted by ``timestamp``.  This service only reads.
"""

import logging
from typing import List, get_args

from supabase import Client

from core.timeutils import format_datetime_in_beijing, get_timezone_for_symbol
from schemas.market import Candle, MarketDataResponse, Timeframe

logger = logging.getLogger(__name__)

MARKET_DATA_TABLE_PREFIX = "market_ohlcv"

# Bars loaded per timeframe for the dashboard.
HOURLY_LIMIT = 50
THREE_MINUTE_LIMIT = 200


class MarketDataError(Exception):
    """A candle table could not be queried."""


def table_for(timeframe: Timeframe) -> str:
    if timeframe not in get_args(Timeframe):
        raise ValueError(
            f"Unsupported timeframe '{timeframe}'. Use {', '.join(get_args(Timeframe))}."
        )
    return f"{MARKET_DATA_TABLE_PREFIX}_{timeframe}"


class MarketDataRepository:
    """
    Query candles for a symbol.

    Args:
        db: Supabase client (inject via ``Depends(get_db)``).

    Example:
        >>> repo = MarketDataRepository(get_supabase_client())
        >>> repo.fetch_candles("MESU24", "1hour", limit=50)
    """

    def __init__(self, db: Client) -> None:
        self._db = db

    # ── public API ────────────────────────────────────────────────────────

    def fetch_candles(
        self, symbol: str, timeframe: Timeframe, limit: int = 50
    ) -> List[Candle]:
        """
        Return the newest ``limit`` candles, ordered oldest → newest.

        Raises:
            ValueError:      Unknown ``timeframe``.
            MarketDataError: The query failed.
        """
        table = table_for(timeframe)
        try:
            res = (
                self._db.table(table)
                .select("*")
                .eq("symbol", symbol.upper())
                .order("timestamp", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as exc:
            logger.exception("Candle query failed (%s, %s)", table, symbol)
            raise MarketDataError(f"Failed to fetch data from {table}: {exc}") from exc

        # Newest first from the DB; charts want chronological order.
        rows = list(reversed(res.data or []))
        return [
            Candle.model_validate(
                {**row, "datetime_beijing": format_datetime_in_beijing(row.get("datetime", ""))}
            )
            for row in rows
        ]

    def get_market_data(self, symbol: str) -> MarketDataResponse:
        """
        Hourly and 3-minute candles for ``symbol``.

        Raises:
            LookupError:     Neither timeframe has data for the symbol.
            MarketDataError: A query failed.
        """
        symbol = symbol.upper()
        data_1h = self.fetch_candles(symbol, "1hour", HOURLY_LIMIT)
        data_3m = self.fetch_candles(symbol, "3min", THREE_MINUTE_LIMIT)

        if not data_1h and not data_3m:
            raise LookupError(f'No data found for symbol "{symbol}" in any timeframe.')

        logger.info(
            "Loaded %d hourly and %d 3-minute candles for %s",
            len(data_1h), len(data_3m), symbol,
        )
        return MarketDataResponse(
            symbol=symbol,
            timezone=get_timezone_for_symbol(symbol),
            data_1h=data_1h,
            data_3m=data_3m,
        )

    def list_symbols(self) -> List[str]:
        """Distinct symbols present in the hourly table, sorted."""
        table = table_for("1hour")
        try:
            res = self._db.table(table).select("symbol").execute()
        except Exception as exc:
            logger.exception("Symbol scan failed (%s)", table)
            raise MarketDataError(f"Failed to fetch symbols from {table}: {exc}") from exc

        return sorted({row["symbol"] for row in res.data or [] if row.get("symbol")})
