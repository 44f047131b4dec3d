from datetime import datetime, timezone

import httpx
import pytest

from surfscore.config.settings import get_settings
from surfscore.core.cache import FileCache
from surfscore.domain.errors import WeatherUnavailableError
from surfscore.ingestion.marine_client import MarineWeatherClient

HOURS = [f"2025-02-10T{h:02d}:00" for h in range(24)]


def _fake_provider(calls):
    def fake_get_json(url, *, params=None, timeout_seconds=15):
        calls.append((url, params))
        if "marine" in url:
            return {
                "hourly": {
                    "time": HOURS,
                    "wave_height": [1.0 + h / 10 for h in range(24)],
                    "wave_direction": [315] * 24,
                    "wave_period": [11] * 24,
                    "sea_level_height_msl": [0.4] * 24,
                }
            }
        return {
            "hourly": {
                "time": HOURS,
                "wind_speed_10m": [float(h) for h in range(24)],
                "wind_direction_10m": [50] * 24,
            }
        }

    return fake_get_json


def test_conditions_for_the_nearest_hour(monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr("surfscore.ingestion.marine_client.get_json", _fake_provider(calls))
    client = MarineWeatherClient(get_settings(), FileCache(tmp_path))

    conditions = client.get_conditions(lat=43.4832, lon=-1.5586, at=datetime(2025, 2, 10, 10, 20, tzinfo=timezone.utc))
    assert conditions.wave_height == pytest.approx(2.0)
    assert conditions.wave_direction == "NW"
    assert conditions.wave_period == 11
    assert conditions.tide_height == pytest.approx(0.4)
    assert conditions.wind_speed == 10.0
    assert conditions.wind_direction == "NE"

    (marine_url, marine_params), (wind_url, wind_params) = calls
    assert marine_params["start_date"] == marine_params["end_date"] == "2025-02-10"
    assert "wind_speed_unit" not in marine_params
    assert wind_params["wind_speed_unit"] == "kmh"
    assert wind_params["hourly"] == "wind_speed_10m,wind_direction_10m"


def test_responses_are_cached(monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr("surfscore.ingestion.marine_client.get_json", _fake_provider(calls))
    client = MarineWeatherClient(get_settings(), FileCache(tmp_path))
    at = datetime(2025, 2, 10, 6, tzinfo=timezone.utc)

    client.get_conditions(lat=43.4832, lon=-1.5586, at=at)
    client.get_conditions(lat=43.4832, lon=-1.5586, at=at.replace(hour=18))
    assert len(calls) == 2


def test_provider_outage_falls_back_to_stale_data(monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr("surfscore.ingestion.marine_client.get_json", _fake_provider(calls))
    monkeypatch.setattr("surfscore.core.cache.time.time", lambda: 0)
    client = MarineWeatherClient(get_settings(), FileCache(tmp_path))
    at = datetime(2025, 2, 10, 12, tzinfo=timezone.utc)
    fresh = client.get_conditions(lat=43.4832, lon=-1.5586, at=at)

    def down(url, *, params=None, timeout_seconds=15):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr("surfscore.ingestion.marine_client.get_json", down)
    monkeypatch.setattr("surfscore.core.cache.time.time", lambda: 10 * 3600)
    assert client.get_conditions(lat=43.4832, lon=-1.5586, at=at) == fresh


def test_provider_outage_without_cache_raises(monkeypatch, tmp_path):
    def down(url, *, params=None, timeout_seconds=15):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr("surfscore.ingestion.marine_client.get_json", down)
    client = MarineWeatherClient(get_settings(), FileCache(tmp_path))
    with pytest.raises(WeatherUnavailableError) as exc:
        client.get_conditions(lat=43.4832, lon=-1.5586, at=datetime(2025, 2, 10, tzinfo=timezone.utc))
    assert exc.value.status_code == 502


def test_missing_or_invalid_values_become_absent(monkeypatch, tmp_path):
    def sparse(url, *, params=None, timeout_seconds=15):
        if "marine" in url:
            return {"hourly": {"time": ["2025-02-10T00:00"], "wave_height": [None], "wave_direction": ["?"]}}
        return {"hourly": {}}

    monkeypatch.setattr("surfscore.ingestion.marine_client.get_json", sparse)
    client = MarineWeatherClient(get_settings(), FileCache(tmp_path))
    conditions = client.get_conditions(lat=43.4, lon=-1.5, at=datetime(2025, 2, 10, tzinfo=timezone.utc))
    assert conditions.missing("wave_height", "wave_direction", "wind_speed", "wind_direction") == [
        "wave_height",
        "wave_direction",
        "wind_speed",
        "wind_direction",
    ]
