"""
Typed SurfScore settings.

`get_settings()` reads the packaged `defaults.yaml` (or the file named by
`SURFSCORE_CONFIG_PATH`), writes in the few environment variables listed in
`_ENV_OVERRIDES`, and validates the result into `Settings`.

Thresholds, factor weights and tolerance floors are configuration, so the analyzer
and the scorer receive them from here instead of defining their own constants.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from surfscore.core.env import load_dotenv_if_present
from surfscore.domain.models import FactorName


def _yaml_mapping(text: str, source: str | Path) -> dict[str, Any]:
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{source}: settings YAML must be a mapping at the top level")
    return data


def _read_package_yaml(filename: str) -> dict[str, Any]:
    return _yaml_mapping(resources.files("surfscore.config").joinpath(filename).read_text(encoding="utf-8"), filename)


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    return _yaml_mapping(Path(path).read_text(encoding="utf-8"), path)


class AppSettings(BaseModel):
    name: str = "SurfScore"
    timezone: str = "Europe/Paris"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class CacheSettings(BaseModel):
    enabled: bool = True
    dir: str = ".cache/surfscore"
    default_ttl_seconds: int = 60 * 60 * 24


class SpotsSettings(BaseModel):
    path: str = "data/catalogs/spots.json"


class StoreSettings(BaseModel):
    backend: Literal["memory", "file"] = "memory"
    profile_ttl_seconds: int = 60 * 60 * 24 * 30


class QualityThresholds(BaseModel):
    excellent: float = Field(8.0, ge=1, le=10)
    good: float = Field(6.0, ge=1, le=10)
    average: float = Field(4.0, ge=0, le=10)


class RatingDomain(BaseModel):
    min: int = 1
    max: int = 10


class ReliabilitySettings(BaseModel):
    session_count_cap: int = Field(20, ge=1)
    distinct_spots_cap: int = Field(10, ge=1)
    recency_horizon_days: float = Field(365, gt=0)


class SpotScoreWeights(BaseModel):
    average_rating: float = 0.4
    frequency: float = 0.3
    consistency: float = 0.2
    recency: float = 0.1


class SpotPreferenceSettings(BaseModel):
    score_weights: SpotScoreWeights = Field(default_factory=SpotScoreWeights)
    frequency_scale: float = 10
    consistency_scale: float = 5
    recency_scale: float = 2
    variance_normalizer: float = Field(10, gt=0)
    recency_horizon_days: float = Field(365, gt=0)


class InsightSettings(BaseModel):
    progression_window: int = Field(5, ge=1)
    progression_min_delta: float = 0.5
    consistent_above: float = 0.8
    variable_below: float = 0.5


class AnalysisSettings(BaseModel):
    min_sessions: int = Field(3, ge=1)
    rating: RatingDomain = Field(default_factory=RatingDomain)
    thresholds: QualityThresholds = Field(default_factory=QualityThresholds)
    default_confidence: float = Field(0.5, ge=0, le=1)
    min_confidence: float = Field(0.1, ge=0, le=1)
    max_wind_tolerance: float = Field(0.5, gt=0)
    reliability: ReliabilitySettings = Field(default_factory=ReliabilitySettings)
    spots: SpotPreferenceSettings = Field(default_factory=SpotPreferenceSettings)
    insights: InsightSettings = Field(default_factory=InsightSettings)


class DirectionScores(BaseModel):
    exact: float = Field(1.0, ge=0, le=1)
    spot_optimal: float = Field(0.8, ge=0, le=1)
    floor: float = Field(0.4, ge=0, le=1)


class ToleranceFloors(BaseModel):
    wave_height_m: float = Field(0.1, gt=0)
    wind_speed_kmh: float = Field(1.0, gt=0)
    wave_period_s: float = Field(1.0, gt=0)
    tide_height_m: float = Field(0.1, gt=0)


class ConfidenceSettings(BaseModel):
    reliability_weight: float = Field(0.8, ge=0, le=1)
    volume_weight: float = Field(0.2, ge=0, le=1)
    session_volume_cap: int = Field(50, ge=1)


class FeedbackSettings(BaseModel):
    large_error: float = 2.0
    moderate_error: float = 1.0
    large_penalty: float = 0.1
    moderate_penalty: float = 0.05
    accurate_bonus: float = 0.02
    min_factor: float = Field(0.5, ge=0, le=1)
    max_factor: float = Field(1.0, ge=0, le=1)


class ScoringSettings(BaseModel):
    factor_weights: dict[FactorName, float] = Field(
        default_factory=lambda: {
            "wave_height": 0.25,
            "wave_direction": 0.20,
            "wind_speed": 0.20,
            "wind_direction": 0.15,
            "wave_period": 0.10,
            "tide_height": 0.10,
        }
    )
    direction_scores: DirectionScores = Field(default_factory=DirectionScores)
    tolerance_floors: ToleranceFloors = Field(default_factory=ToleranceFloors)
    quality_thresholds: QualityThresholds = Field(default_factory=QualityThresholds)
    wave_height_margin_m: float = Field(0.5, ge=0)
    confidence: ConfidenceSettings = Field(default_factory=ConfidenceSettings)
    feedback: FeedbackSettings = Field(default_factory=FeedbackSettings)


class MarineSettings(BaseModel):
    marine_url: str = "https://marine-api.open-meteo.com/v1/marine"
    forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    timezone: str = "UTC"
    cache_ttl_seconds: int = 60 * 60


class IngestionSettings(BaseModel):
    marine: MarineSettings = Field(default_factory=MarineSettings)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    spots: SpotsSettings = Field(default_factory=SpotsSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)


# Environment variable -> (section, key) in the raw settings payload.
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SURFSCORE_CACHE_DIR": ("cache", "dir"),
    "SURFSCORE_LOG_LEVEL": ("app", "log_level"),
    "SURFSCORE_PROFILE_STORE": ("store", "backend"),
    "SURFSCORE_SPOTS_PATH": ("spots", "path"),
}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Copy `data` with the `_ENV_OVERRIDES` variables that are set written in."""
    load_dotenv_if_present()
    merged = {k: dict(v) if isinstance(v, dict) else v for k, v in data.items()}
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            merged.setdefault(section, {})[key] = value
    return merged


@lru_cache
def get_settings() -> Settings:
    """Validated settings, built once per process."""
    load_dotenv_if_present()
    config_path = os.getenv("SURFSCORE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """`dictConfig` payload from the packaged `logging.yaml`."""
    return _read_package_yaml("logging.yaml")
