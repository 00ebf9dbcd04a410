"""
core/timeutils.py
─────────────────
Timezone helpers for candle timestamps and report headers.

Candle ``datetime`` values already carry a UTC offset, so the exchange
timezone map is informational (it is echoed in market-data responses).
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Literal, Optional
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

BEIJING_TZ = ZoneInfo("Asia/Shanghai")
DEFAULT_TIMEZONE = "UTC"

# Symbol prefix → exchange timezone.
SYMBOL_TIMEZONES: Dict[str, str] = {
    "MES": "America/Chicago",   # CME Group
    "N225MC": "Asia/Tokyo",     # Osaka Exchange
}

_FORMATS = {
    "full": "%Y/%m/%d %H:%M:%S",
    "time-only": "%H:%M",
}


def get_timezone_for_symbol(symbol: str) -> str:
    """Return the IANA timezone of the exchange ``symbol`` trades on."""
    for prefix, tz_name in SYMBOL_TIMEZONES.items():
        if symbol.upper().startswith(prefix):
            return tz_name
    return DEFAULT_TIMEZONE


def parse_datetime(value: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 string into an aware datetime.

    Naive values are taken as UTC.  Returns ``None`` when unparseable.
    """
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_datetime_in_beijing(
    value: str, fmt: Literal["full", "time-only"] = "full"
) -> str:
    """
    Render an ISO-8601 timestamp in Beijing time.

    Args:
        value: Timestamp string with (or without) UTC offset.
        fmt:   ``"full"`` → ``2025/07/15 02:00:00``; ``"time-only"`` → ``02:00``.

    Returns:
        The formatted string, or ``value`` unchanged if it cannot be parsed.
    """
    parsed = parse_datetime(value)
    if parsed is None:
        logger.warning("Invalid datetime format: %s", value)
        return value
    return parsed.astimezone(BEIJING_TZ).strftime(_FORMATS[fmt])


def now_in_beijing() -> str:
    """Current time in Beijing, ``full`` format."""
    return datetime.now(BEIJING_TZ).strftime(_FORMATS["full"])
