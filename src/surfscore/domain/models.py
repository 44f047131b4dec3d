"""
Domain models (Pydantic).

These types are the stable "contract" between layers:
- normalized input (`ConditionSet`, `Session`)
- learned state (`UserProfile`)
- explainable scoring output (`Prediction`, `FactorScore`)
- collaborator data (`SpotCharacteristics`) and API request payloads

Field names are snake_case; JSON input also accepts the camelCase names used by the
mobile/web clients (`waveHeight`, `userId`, ...).
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

CompassPoint = Literal["N", "NE", "E", "SE", "S", "SW", "W", "NW"]

COMPASS_8: tuple[str, ...] = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")
COMPASS_16: frozenset[str] = frozenset(
    {"N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE", "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW"}
)

FactorName = Literal["wave_height", "wave_direction", "wind_speed", "wind_direction", "wave_period", "tide_height"]


def normalize_direction(value: Any) -> str | None:
    """Map a compass category or a bearing in degrees to a canonical category.

    Degrees snap to the nearest of the 8 principal points; 16-point names are kept.
    Returns None for anything unrecognized.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip().upper()
        if not text:
            return None
        if text in COMPASS_16:
            return text
        try:
            value = float(text)
        except ValueError:
            return None
    if isinstance(value, (int, float)):
        degrees = float(value)
        if not math.isfinite(degrees):
            return None
        return COMPASS_8[int(round((degrees % 360.0) / 45.0)) % 8]
    return None


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class ConditionSet(BaseModel):
    """Environmental measurements for a session or a forecast; every field may be absent."""

    model_config = ConfigDict(populate_by_name=True)

    wave_height: float | None = Field(
        default=None, gt=0, allow_inf_nan=False, validation_alias=AliasChoices("wave_height", "waveHeight")
    )
    wave_period: float | None = Field(
        default=None, gt=0, allow_inf_nan=False, validation_alias=AliasChoices("wave_period", "wavePeriod")
    )
    wave_direction: str | None = Field(
        default=None, validation_alias=AliasChoices("wave_direction", "waveDirection")
    )
    wind_speed: float | None = Field(
        default=None, ge=0, allow_inf_nan=False, validation_alias=AliasChoices("wind_speed", "windSpeed")
    )
    wind_direction: str | None = Field(
        default=None, validation_alias=AliasChoices("wind_direction", "windDirection")
    )
    tide_height: float | None = Field(
        default=None,
        allow_inf_nan=False,
        validation_alias=AliasChoices("tide_height", "tideHeight", "tide_level", "tideLevel"),
    )

    @field_validator("wave_direction", "wind_direction", mode="before")
    @classmethod
    def _normalize_direction(cls, value: Any) -> str | None:
        if value is None:
            return None
        direction = normalize_direction(value)
        if direction is None:
            raise ValueError(f"unrecognized compass direction: {value!r}")
        return direction

    def missing(self, *fields: str) -> list[str]:
        return [name for name in fields if getattr(self, name) is None]


class Session(BaseModel):
    """One canonical rated session (output of the normalizer)."""

    session_id: str | None = None
    spot: str = ""
    rating: int | None = None
    timestamp: datetime | None = None
    conditions: ConditionSet = Field(default_factory=ConditionSet)

    def is_usable(self, *, rating_min: int = 1, rating_max: int = 10) -> bool:
        """A session feeds the statistics only with an in-domain rating and both key measurements."""
        if self.rating is None or not rating_min <= self.rating <= rating_max:
            return False
        return self.conditions.wave_height is not None and self.conditions.wind_speed is not None


class ValueRange(BaseModel):
    min: float
    max: float


class OptimalValue(BaseModel):
    """A learned optimum with the observed range it came from and a spread-based confidence."""

    value: float
    range: ValueRange
    confidence: float = Field(..., ge=0, le=1)


class PeriodPreference(BaseModel):
    value: float
    confidence: float = Field(..., ge=0, le=1)


class WavePreferences(BaseModel):
    optimal_height: OptimalValue
    preferred_direction: str | None = None
    optimal_period: PeriodPreference | None = None


class WindPreferences(BaseModel):
    optimal_speed: OptimalValue
    preferred_direction: str | None = None
    tolerance: float = Field(..., ge=0)


class TidePreferences(BaseModel):
    optimal_height: OptimalValue


class SpotPreference(BaseModel):
    name: str
    sessions_count: int
    average_rating: float
    frequency: float
    consistency: float
    recency_bonus: float
    score: float


class TimePreferences(BaseModel):
    preferred_hour: int | None = None
    preferred_season: str | None = None
    hour_distribution: dict[int, int] = Field(default_factory=dict)
    season_distribution: dict[str, int] = Field(default_factory=dict)


class IdealConditions(BaseModel):
    """Plain averages over excellent sessions only (the user's best days)."""

    wave_height: float | None = None
    wind_speed: float | None = None
    wave_period: float | None = None
    wave_direction: str | None = None
    wind_direction: str | None = None
    based_on_sessions: int


class UserProfile(BaseModel):
    """Per-user learned preferences; replaced wholesale by every analysis."""

    user_id: str
    total_sessions: int
    good_sessions: int
    excellent_sessions: int
    wave_preferences: WavePreferences
    wind_preferences: WindPreferences
    tide_preferences: TidePreferences | None = None
    spot_preferences: list[SpotPreference] = Field(default_factory=list)
    time_preferences: TimePreferences = Field(default_factory=TimePreferences)
    ideal_conditions: IdealConditions | None = None
    behavioral_insights: list[str] = Field(default_factory=list)
    reliability_score: float = Field(..., ge=0, le=1)
    last_updated: datetime

    @property
    def favorite_spot(self) -> SpotPreference | None:
        return self.spot_preferences[0] if self.spot_preferences else None


class FactorScore(BaseModel):
    """One explainable factor of a prediction."""

    name: FactorName
    score: float = Field(..., ge=0, le=1)
    weight: float = Field(..., ge=0, le=1)
    contribution: float = Field(..., ge=0, le=1)
    details: dict[str, Any] = Field(default_factory=dict)
    reasons: list[str] = Field(default_factory=list)


class Prediction(BaseModel):
    """Personalized quality prediction for one candidate condition set at one spot."""

    user_id: str
    spot: str
    predicted_score: float = Field(..., ge=0, le=10)
    confidence: float = Field(..., ge=0, le=100)
    conditions: ConditionSet
    recommendations: list[str]
    reasoning: str
    breakdown: list[FactorScore] = Field(default_factory=list)


class SpotCharacteristics(BaseModel):
    """Static knowledge about a spot (provided by the catalog collaborator)."""

    name: str
    optimal_wind_directions: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("optimal_wind_directions", "optimalWindDirections"),
    )
    optimal_wave_directions: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("optimal_wave_directions", "optimalWaveDirections"),
    )
    coordinates: GeoPoint

    @field_validator("optimal_wind_directions", "optimal_wave_directions")
    @classmethod
    def _normalize_directions(cls, values: list[str]) -> list[str]:
        out: list[str] = []
        for v in values:
            d = normalize_direction(v)
            if d is None:
                raise ValueError(f"unrecognized compass direction: {v!r}")
            if d not in out:
                out.append(d)
        return out


class FeedbackState(BaseModel):
    """Running record of how well predictions matched reality for one user."""

    user_id: str
    samples: int = 0
    mean_absolute_error: float = 0.0
    factor: float = Field(1.0, ge=0, le=1)
    last_session_id: str | None = None


class FeedbackResult(BaseModel):
    user_id: str
    session_id: str
    prediction_error: float
    new_confidence: float = Field(..., ge=0, le=100)


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AnalyzeRequest(_Request):
    user_id: str = Field(..., min_length=1, validation_alias=AliasChoices("user_id", "userId"))
    sessions: list[dict[str, Any]]


class PredictRequest(_Request):
    user_id: str = Field(..., min_length=1, validation_alias=AliasChoices("user_id", "userId"))
    conditions: ConditionSet
    spot: str = Field(..., min_length=1, validation_alias=AliasChoices("spot", "spotName"))
    settings_overrides: dict[str, Any] | None = None


class AnalyzeAndPredictRequest(_Request):
    user_id: str = Field(..., min_length=1, validation_alias=AliasChoices("user_id", "userId"))
    sessions: list[dict[str, Any]]
    conditions: ConditionSet = Field(
        ..., validation_alias=AliasChoices("conditions", "futureConditions")
    )
    spot: str = Field(..., min_length=1, validation_alias=AliasChoices("spot", "spotName"))


class PredictWithWeatherRequest(_Request):
    user_id: str = Field(..., min_length=1, validation_alias=AliasChoices("user_id", "userId"))
    spot: str = Field(..., min_length=1, validation_alias=AliasChoices("spot", "spotName"))
    at: datetime | None = Field(default=None, validation_alias=AliasChoices("at", "datetime"))


class FeedbackRequest(_Request):
    user_id: str = Field(..., min_length=1, validation_alias=AliasChoices("user_id", "userId"))
    session_id: str = Field(..., min_length=1, validation_alias=AliasChoices("session_id", "sessionId"))
    actual_rating: float = Field(..., ge=1, le=10, validation_alias=AliasChoices("actual_rating", "actualRating"))
    predicted_score: float = Field(
        ..., ge=0, le=10, validation_alias=AliasChoices("predicted_score", "predictedScore")
    )


class BatchAnalyzeRequest(_Request):
    users: list[AnalyzeRequest]


class CompareUsersRequest(_Request):
    user_ids: list[str] = Field(..., min_length=2, validation_alias=AliasChoices("user_ids", "userIds"))
