"""
analytics/indicators.py
────────────────────────
Technical indicators over candle series.

Indicator math is delegated to the ``ta`` library; this module only turns
candles into a pandas frame and picks the latest values.

- MACD (12, 26, 9): line, signal and histogram.
- RSI (14).
- ``aggregate_candles``: OHLCV resample (e.g. 3-minute → 15-minute bars).
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import pandas as pd
import ta

from schemas.market import Candle, IndicatorSnapshot

logger = logging.getLogger(__name__)

MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
RSI_WINDOW = 14

_OHLCV_AGG = {
    "timestamp": "first",
    "open": "first",
    "high": "max",
    "low": "min",
    "close": "last",
    "volume": "sum",
}


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    """
    Build a chronologically sorted DataFrame indexed by UTC datetime.

    Raises:
        ValueError: If ``candles`` is empty.
    """
    if not candles:
        raise ValueError("At least one candle is required")
    df = pd.DataFrame([c.model_dump(exclude={"datetime_beijing"}) for c in candles])
    df.index = pd.to_datetime(df.pop("datetime"), utc=True)
    return df.sort_index()


def _latest(series: pd.Series) -> Optional[float]:
    """Last non-NaN value, rounded for display."""
    valid = series.dropna()
    if valid.empty:
        return None
    value = float(valid.iloc[-1])
    return None if math.isnan(value) else round(value, 4)


def compute_indicators(candles: Sequence[Candle]) -> IndicatorSnapshot:
    """
    Latest MACD(12, 26, 9) and RSI(14) values for ``candles``.

    Args:
        candles: Series ordered oldest → newest.

    Returns:
        :class:`IndicatorSnapshot`; fields are ``None`` when the series is
        shorter than the indicator needs.
    """
    close = candles_to_frame(candles)["close"]

    macd = ta.trend.MACD(
        close,
        window_slow=MACD_SLOW,
        window_fast=MACD_FAST,
        window_sign=MACD_SIGNAL,
    )
    rsi = ta.momentum.RSIIndicator(close, window=RSI_WINDOW)

    snapshot = IndicatorSnapshot(
        macd=_latest(macd.macd()),
        macd_signal=_latest(macd.macd_signal()),
        macd_histogram=_latest(macd.macd_diff()),
        rsi=_latest(rsi.rsi()),
    )
    logger.debug("Indicators over %d candles: %s", len(close), snapshot)
    return snapshot


def aggregate_candles(candles: Sequence[Candle], rule: str = "15min") -> List[Candle]:
    """
    Resample candles to a coarser bar size.

    Each output bar starts at its bucket boundary (UTC) and keeps the
    ``timestamp`` of its first input bar.  Empty buckets are dropped.

    Args:
        candles: Series ordered oldest → newest.
        rule:    pandas offset alias, e.g. ``"15min"``.

    Returns:
        Aggregated candles, oldest → newest.
    """
    df = candles_to_frame(candles)
    resampled = df.resample(rule, label="left", closed="left").agg(_OHLCV_AGG).dropna()

    return [
        Candle(
            timestamp=float(row.timestamp),
            datetime=index.isoformat(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for index, row in resampled.iterrows()
    ]
