"""
Time parsing, timezone normalization and calendar helpers.

Session timestamps arrive as ISO strings (often with a trailing `Z`, sometimes date-only)
or as datetimes. SurfScore keeps every timestamp timezone-aware so recency math never
mixes naive and aware datetimes.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Literal
from zoneinfo import ZoneInfo

Season = Literal["winter", "spring", "summer", "autumn"]


def ensure_tz(dt: datetime, tz: str) -> datetime:
    """Ensure `dt` has tzinfo; attach `tz` if naive."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=ZoneInfo(tz))
    return dt


def parse_datetime(value: str, tz: str) -> datetime:
    """Parse ISO-8601 datetime string and ensure tzinfo is present.

    Notes:
    - Accepts a trailing `Z` (UTC) and converts it to `+00:00` for `fromisoformat`.
    - Date-only values (`2025-01-15`) parse as midnight.
    - If the parsed value is naive, the provided `tz` is attached.
    """
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    return ensure_tz(dt, tz)


def coerce_datetime(value: Any, tz: str) -> datetime | None:
    """Best-effort conversion of a raw timestamp field; returns None when unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_tz(value, tz)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=ZoneInfo(tz))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            return None
        # Epoch milliseconds (JavaScript clients) vs seconds.
        seconds = float(value) / 1000.0 if abs(value) > 1e11 else float(value)
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            return parse_datetime(value, tz)
        except ValueError:
            return None
    return None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def days_between(earlier: datetime, later: datetime) -> float:
    """Fractional days from `earlier` to `later` (negative if `earlier` is in the future)."""
    return (later - earlier).total_seconds() / 86400.0


def season_of(dt: datetime) -> Season:
    """Meteorological season (northern hemisphere) for a datetime."""
    month = dt.month
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "autumn"
    return "winter"
