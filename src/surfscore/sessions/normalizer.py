"""
Session normalizer.

Surf sessions reach the engine in several record shapes, depending on which client
created them:

1) flat with nested conditions: `{"spot", "rating", "date", "conditions": {...}}`
2) flat with top-level measurements: `{"spotName", "rating", "sessionDateTime", "waveHeight", ...}`
3) quick-entry records: `{"essential": {...}, "autoCompleted": {"weather": {...}}}`
4) enriched records: `{"essential": {...}, "conditions": {..., "tideLevel": ...}}`

Everything downstream (analyzer, reliability, insights) only sees the canonical
`Session` model produced here. Normalization never raises on record content: a field
that cannot be read is simply absent, and a record that cannot be read at all comes
back as an empty (unusable) session.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from surfscore.core.time import coerce_datetime
from surfscore.domain.models import ConditionSet, Session, normalize_direction

logger = logging.getLogger(__name__)

# Accepted spellings for each canonical field, in priority order.
_SPOT_KEYS = ("spot", "spotName", "spot_name")
_DATE_KEYS = ("date", "sessionDateTime", "session_date_time", "datetime", "timestamp")
_ID_KEYS = ("id", "sessionId", "session_id")

_CONDITION_KEYS: dict[str, tuple[str, ...]] = {
    "wave_height": ("waveHeight", "wave_height"),
    "wave_period": ("wavePeriod", "wave_period"),
    "wave_direction": ("waveDirection", "wave_direction"),
    "wind_speed": ("windSpeed", "wind_speed"),
    "wind_direction": ("windDirection", "wind_direction"),
    "tide_height": ("tideHeight", "tide_height", "tideLevel", "tide_level"),
}


def _pick(record: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the first non-None value among `keys`."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        out = float(value)
    elif isinstance(value, str):
        try:
            out = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return out if math.isfinite(out) else None


def _as_rating(value: Any) -> int | None:
    """Ratings are integers; fractional input is rounded (out-of-domain values are kept)."""
    number = _as_float(value)
    if number is None:
        return None
    return int(round(number))


def _as_spot(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def _normalize_conditions(source: Mapping[str, Any]) -> ConditionSet:
    """Read measurements from a mapping; invalid values become absent instead of failing."""
    wave_height = _as_float(_pick(source, _CONDITION_KEYS["wave_height"]))
    wave_period = _as_float(_pick(source, _CONDITION_KEYS["wave_period"]))
    wind_speed = _as_float(_pick(source, _CONDITION_KEYS["wind_speed"]))
    tide_height = _as_float(_pick(source, _CONDITION_KEYS["tide_height"]))

    return ConditionSet(
        wave_height=wave_height if wave_height is not None and wave_height > 0 else None,
        wave_period=wave_period if wave_period is not None and wave_period > 0 else None,
        wind_speed=wind_speed if wind_speed is not None and wind_speed >= 0 else None,
        tide_height=tide_height,
        wave_direction=normalize_direction(_pick(source, _CONDITION_KEYS["wave_direction"])),
        wind_direction=normalize_direction(_pick(source, _CONDITION_KEYS["wind_direction"])),
    )


def _conditions_source(record: Mapping[str, Any]) -> Mapping[str, Any]:
    nested = record.get("conditions")
    if isinstance(nested, Mapping):
        return nested

    auto = record.get("autoCompleted") or record.get("auto_completed")
    if isinstance(auto, Mapping):
        weather = auto.get("weather")
        # Quick entry falls back to a placeholder forecast when the lookup failed; it is not a measurement.
        if isinstance(weather, Mapping) and weather.get("source") != "default":
            return weather
        return {}

    # Shape 2: measurements live next to the session fields.
    return record


def normalize_session(record: Any, *, tz: str = "UTC") -> Session:
    """Normalize one raw record into a `Session` (never raises on record content)."""
    if not isinstance(record, Mapping):
        logger.debug("Skipping non-mapping session record: %r", type(record).__name__)
        return Session()

    essential = record.get("essential")
    base: Mapping[str, Any] = essential if isinstance(essential, Mapping) else record

    session_id = _pick(record, _ID_KEYS)
    return Session(
        session_id=str(session_id) if session_id is not None else None,
        spot=_as_spot(_pick(base, _SPOT_KEYS)),
        rating=_as_rating(base.get("rating")),
        timestamp=coerce_datetime(_pick(base, _DATE_KEYS), tz),
        conditions=_normalize_conditions(_conditions_source(record)),
    )


def normalize_sessions(records: Iterable[Any] | None, *, tz: str = "UTC") -> list[Session]:
    """Normalize a batch of raw records, preserving input order."""
    if records is None:
        return []
    return [normalize_session(r, tz=tz) for r in records]
