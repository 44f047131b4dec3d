"""
Per-factor scorers.

Each scorer compares one candidate measurement with what the user's profile learned and
returns a `ComponentResult` (0..1 score + details + reasons). A scorer that cannot run
(candidate value missing, or nothing learned for that factor) returns a skipped result so
the predictor can renormalize the remaining weights.

Two families:
- magnitudes (wave height, wind speed, wave period, tide height): linear falloff
  `max(0, 1 - |actual - optimal| / tolerance)`
- directions (wave, wind): exact match with the user's preference, else a spot-level
  "works here" bonus, else a floor
"""

from __future__ import annotations

from collections.abc import Callable

from surfscore.config.settings import Settings
from surfscore.domain.models import ConditionSet, FactorName, SpotCharacteristics, UserProfile
from surfscore.scoring.composite import ComponentResult, clamp01

FactorScorer = Callable[[ConditionSet, UserProfile, SpotCharacteristics, Settings], ComponentResult]


def _skipped(reason: str, **details) -> ComponentResult:
    return ComponentResult(score=0.0, details={"skipped": True, **details}, reasons=[reason], skipped=True)


def magnitude_score(actual: float, optimal: float, tolerance: float) -> float:
    """Linear falloff around the optimum; `tolerance` must be positive."""
    return clamp01(1.0 - abs(actual - optimal) / tolerance)


def _magnitude_result(
    label: str, unit: str, actual: float, optimal: float, tolerance: float
) -> ComponentResult:
    score = magnitude_score(actual, optimal, tolerance)
    details = {
        "actual": actual,
        "optimal": round(optimal, 3),
        "tolerance": round(tolerance, 3),
        "difference": round(actual - optimal, 3),
    }
    if score >= 0.999:
        reason = f"{label} {actual:g}{unit} matches your optimum ({optimal:.1f}{unit})"
    elif score <= 0:
        reason = f"{label} {actual:g}{unit} is far from your optimum ({optimal:.1f}{unit})"
    else:
        reason = f"{label} {actual:g}{unit} vs your optimum {optimal:.1f}{unit} ({int(round(score * 100))}% match)"
    return ComponentResult(score=score, details=details, reasons=[reason])


def score_wave_height(
    conditions: ConditionSet, profile: UserProfile, spot: SpotCharacteristics, settings: Settings
) -> ComponentResult:
    if conditions.wave_height is None:
        return _skipped("Wave height not provided")
    learned = profile.wave_preferences.optimal_height
    # Half the observed range; a user who always surfed the same size still gets a finite tolerance.
    tolerance = max(settings.scoring.tolerance_floors.wave_height_m, (learned.range.max - learned.range.min) / 2)
    return _magnitude_result("Waves", "m", conditions.wave_height, learned.value, tolerance)


def score_wind_speed(
    conditions: ConditionSet, profile: UserProfile, spot: SpotCharacteristics, settings: Settings
) -> ComponentResult:
    if conditions.wind_speed is None:
        return _skipped("Wind speed not provided")
    prefs = profile.wind_preferences
    optimal = prefs.optimal_speed.value
    tolerance = max(settings.scoring.tolerance_floors.wind_speed_kmh, prefs.tolerance * optimal)
    return _magnitude_result("Wind", " km/h", conditions.wind_speed, optimal, tolerance)


def score_wave_period(
    conditions: ConditionSet, profile: UserProfile, spot: SpotCharacteristics, settings: Settings
) -> ComponentResult:
    if conditions.wave_period is None:
        return _skipped("Wave period not provided")
    learned = profile.wave_preferences.optimal_period
    if learned is None:
        return _skipped("No wave period learned from your sessions")
    tolerance = max(settings.scoring.tolerance_floors.wave_period_s, learned.value)
    return _magnitude_result("Period", "s", conditions.wave_period, learned.value, tolerance)


def score_tide_height(
    conditions: ConditionSet, profile: UserProfile, spot: SpotCharacteristics, settings: Settings
) -> ComponentResult:
    if conditions.tide_height is None:
        return _skipped("Tide height not provided")
    if profile.tide_preferences is None:
        return _skipped("No tide preference learned from your sessions")
    learned = profile.tide_preferences.optimal_height
    tolerance = max(settings.scoring.tolerance_floors.tide_height_m, (learned.range.max - learned.range.min) / 2)
    return _magnitude_result("Tide", "m", conditions.tide_height, learned.value, tolerance)


def direction_score(
    actual: str, preferred: str, spot_directions: list[str], *, settings: Settings
) -> tuple[float, str]:
    """Return (score, match kind) for a compass direction."""
    cfg = settings.scoring.direction_scores
    if actual == preferred:
        return cfg.exact, "preferred"
    if actual in spot_directions:
        return cfg.spot_optimal, "spot_optimal"
    return cfg.floor, "other"


def _direction_result(
    label: str, actual: str | None, preferred: str | None, spot_directions: list[str], spot_name: str, settings: Settings
) -> ComponentResult:
    if actual is None:
        return _skipped(f"{label} direction not provided")
    if preferred is None:
        return _skipped(f"No preferred {label.lower()} direction learned from your sessions")

    score, match = direction_score(actual, preferred, spot_directions, settings=settings)
    if match == "preferred":
        reason = f"{label} from {actual}, your preferred direction"
    elif match == "spot_optimal":
        reason = f"{label} from {actual} works well at {spot_name} (you prefer {preferred})"
    else:
        reason = f"{label} from {actual} is neither your preferred {preferred} nor optimal at {spot_name}"
    details = {"actual": actual, "preferred": preferred, "spot_optimal": list(spot_directions), "match": match}
    return ComponentResult(score=clamp01(score), details=details, reasons=[reason])


def score_wave_direction(
    conditions: ConditionSet, profile: UserProfile, spot: SpotCharacteristics, settings: Settings
) -> ComponentResult:
    return _direction_result(
        "Swell",
        conditions.wave_direction,
        profile.wave_preferences.preferred_direction,
        spot.optimal_wave_directions,
        spot.name,
        settings,
    )


def score_wind_direction(
    conditions: ConditionSet, profile: UserProfile, spot: SpotCharacteristics, settings: Settings
) -> ComponentResult:
    return _direction_result(
        "Wind",
        conditions.wind_direction,
        profile.wind_preferences.preferred_direction,
        spot.optimal_wind_directions,
        spot.name,
        settings,
    )


# Evaluation order is also the breakdown order.
FACTOR_SCORERS: dict[FactorName, FactorScorer] = {
    "wave_height": score_wave_height,
    "wave_direction": score_wave_direction,
    "wind_speed": score_wind_speed,
    "wind_direction": score_wind_direction,
    "wave_period": score_wave_period,
    "tide_height": score_tide_height,
}
