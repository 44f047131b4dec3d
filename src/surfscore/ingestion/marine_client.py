"""
Marine weather client (Open-Meteo).

Fetches hourly swell (height, direction, period, sea level) from the marine API and
hourly wind (speed in km/h, direction) from the forecast API, then picks the hour closest
to the requested time and returns it as a `ConditionSet` ready for the scorer.

Only the service layer uses this client (`predict_with_weather`); analysis and scoring
never touch the network. Responses go through `FileCache` with stale-if-error, so a
provider outage degrades to a slightly old forecast instead of a failed request.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from surfscore.config.settings import Settings
from surfscore.core.cache import FileCache, record_cache_stats
from surfscore.core.http import get_json
from surfscore.core.time import ensure_tz
from surfscore.domain.errors import WeatherUnavailableError
from surfscore.domain.models import ConditionSet, normalize_direction

logger = logging.getLogger(__name__)

MARINE_HOURLY = ("wave_height", "wave_direction", "wave_period", "sea_level_height_msl")
WIND_HOURLY = ("wind_speed_10m", "wind_direction_10m")


def _hourly_rows(payload: Any, fields: tuple[str, ...], tz: str) -> list[tuple[datetime, dict[str, Any]]]:
    """Zip Open-Meteo's column-oriented `hourly` block into (time, {field: value}) rows."""
    hourly = payload.get("hourly") if isinstance(payload, dict) else None
    if not isinstance(hourly, dict):
        return []
    times = hourly.get("time") or []
    columns = {f: hourly.get(f) or [] for f in fields}

    rows: list[tuple[datetime, dict[str, Any]]] = []
    for i, t in enumerate(times):
        try:
            dt = ensure_tz(datetime.fromisoformat(str(t)), tz)
        except ValueError:
            continue
        rows.append((dt, {f: (col[i] if i < len(col) else None) for f, col in columns.items()}))
    return rows


def _nearest(rows: list[tuple[datetime, dict[str, Any]]], at: datetime) -> dict[str, Any]:
    if not rows:
        return {}
    return min(rows, key=lambda row: abs((row[0] - at).total_seconds()))[1]


def _positive(value: Any) -> float | None:
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    return out if out > 0 else None


def _non_negative(value: Any) -> float | None:
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    return out if out >= 0 else None


def _real(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class MarineWeatherClient:
    """Fetches and caches Open-Meteo marine + wind data for one coordinate."""

    def __init__(self, settings: Settings, cache: FileCache):
        self._settings = settings
        self._cache = cache

    def _fetch(self, url: str, fields: tuple[str, ...], lat: float, lon: float, day: str) -> dict[str, Any]:
        params: dict[str, Any] = {
            "latitude": lat,
            "longitude": lon,
            "hourly": ",".join(fields),
            "timezone": self._settings.ingestion.marine.timezone,
            "start_date": day,
            "end_date": day,
        }
        if fields is WIND_HOURLY:
            params["wind_speed_unit"] = "kmh"
        return get_json(url, params=params, timeout_seconds=self._settings.app.http_timeout_seconds)

    def _cached_fetch(self, kind: str, url: str, fields: tuple[str, ...], lat: float, lon: float, day: str) -> Any:
        cfg = self._settings.ingestion.marine
        cache_key = f"openmeteo:{kind}:{lat:.4f}:{lon:.4f}:{day}"

        def builder() -> dict[str, Any]:
            logger.info("Fetching %s data for lat=%.4f lon=%.4f day=%s", kind, lat, lon, day)
            return self._fetch(url, fields, lat, lon, day)

        def stale_ok(exc: Exception) -> bool:
            transient = isinstance(exc, (httpx.HTTPError, ValueError))
            if transient:
                logger.warning("Open-Meteo %s request failed (%s); trying cached data", kind, exc)
            return transient

        try:
            return self._cache.get_or_set(
                "marine",
                cache_key,
                builder,
                ttl_seconds=int(cfg.cache_ttl_seconds),
                stale_if_error=True,
                stale_predicate=stale_ok,
            )
        except (httpx.HTTPError, ValueError) as exc:
            raise WeatherUnavailableError(
                f"Weather provider unavailable for {kind} data: {exc}", lat=lat, lon=lon, day=day
            ) from exc

    def get_conditions(self, *, lat: float, lon: float, at: datetime) -> ConditionSet:
        """Return forecast conditions for the hour nearest to `at`.

        Raises:
            WeatherUnavailableError: a provider call failed and no cached copy exists.
        """
        cfg = self._settings.ingestion.marine
        tz = cfg.timezone
        at = ensure_tz(at, "UTC").astimezone(timezone.utc)
        day = at.date().isoformat()

        with record_cache_stats() as stats:
            marine = self._cached_fetch("marine", cfg.marine_url, MARINE_HOURLY, lat, lon, day)
            wind = self._cached_fetch("wind", cfg.forecast_url, WIND_HOURLY, lat, lon, day)
        logger.debug("Marine lookup lat=%.4f lon=%.4f day=%s cache=%s", lat, lon, day, stats.as_dict())

        swell = _nearest(_hourly_rows(marine, MARINE_HOURLY, tz), at)
        breeze = _nearest(_hourly_rows(wind, WIND_HOURLY, tz), at)

        return ConditionSet(
            wave_height=_positive(swell.get("wave_height")),
            wave_period=_positive(swell.get("wave_period")),
            wave_direction=normalize_direction(swell.get("wave_direction")),
            tide_height=_real(swell.get("sea_level_height_msl")),
            wind_speed=_non_negative(breeze.get("wind_speed_10m")),
            wind_direction=normalize_direction(breeze.get("wind_direction_10m")),
        )
