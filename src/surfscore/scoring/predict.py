"""
Personalized session-quality prediction.

Given a learned `UserProfile`, candidate conditions and the spot's characteristics, produce
a 0..10 predicted score, a 0..100 confidence, recommendations and a one-sentence reasoning.

The function is pure: same inputs -> same `Prediction` (no clock, no I/O).
"""

from __future__ import annotations

import logging

from surfscore.config.settings import Settings
from surfscore.domain.errors import InvalidConditionsError
from surfscore.domain.models import ConditionSet, FactorScore, Prediction, SpotCharacteristics, UserProfile
from surfscore.scoring.composite import ComponentResult, clamp01, renormalize_present
from surfscore.scoring.factors import FACTOR_SCORERS

logger = logging.getLogger(__name__)

REQUIRED_CONDITIONS = ("wave_height", "wind_speed")


def prediction_confidence(reliability: float, total_sessions: int, *, settings: Settings) -> float:
    """Confidence in percent: mostly profile reliability, partly sample volume."""
    cfg = settings.scoring.confidence
    volume = min(1.0, total_sessions / float(cfg.session_volume_cap))
    raw = 100.0 * (reliability * cfg.reliability_weight + volume * cfg.volume_weight)
    return round(max(0.0, min(100.0, raw)), 1)


def _recommendations(
    profile: UserProfile, conditions: ConditionSet, spot: SpotCharacteristics, score: float, *, settings: Settings
) -> list[str]:
    cfg = settings.scoring
    thresholds = cfg.quality_thresholds
    recs: list[str] = []

    if score >= thresholds.excellent:
        recs.append("Exceptional conditions for you, go for it!")
    elif score >= thresholds.good:
        recs.append("Good conditions, worth the paddle out")
    elif score >= thresholds.average:
        recs.append("Average conditions, fine for practice")
    else:
        recs.append("Challenging conditions for you, be careful")

    optimal_height = profile.wave_preferences.optimal_height.value
    if abs(conditions.wave_height - optimal_height) > cfg.wave_height_margin_m:
        if conditions.wave_height > optimal_height:
            recs.append("Waves bigger than your usual preference")
        else:
            recs.append("Waves smaller than your usual preference")

    max_wind = profile.wind_preferences.optimal_speed.range.max
    if conditions.wind_speed > max_wind:
        recs.append(f"Wind stronger than anything you rated well ({max_wind:g} km/h max)")

    favorite = profile.favorite_spot
    if favorite is not None and favorite.name == spot.name.strip().lower():
        recs.append(f"{spot.name} is your favourite spot")

    return recs


def _reasoning(profile: UserProfile, conditions: ConditionSet, score: float) -> str:
    height = profile.wave_preferences.optimal_height.value
    wind = profile.wind_preferences.optimal_speed.value
    match_pct = int(round(score / 10 * 100))
    return (
        f"Score based on your {profile.total_sessions} analyzed sessions: "
        f"you usually prefer {height:.1f}m waves with {wind:.0f} km/h of wind, "
        f"and the forecast conditions (waves {conditions.wave_height:g}m, wind {conditions.wind_speed:g} km/h) "
        f"match your preferences at {match_pct}%."
    )


def _factor_score(name: str, result: ComponentResult, weight: float) -> FactorScore:
    return FactorScore(
        name=name,
        score=clamp01(result.score),
        weight=clamp01(weight),
        contribution=clamp01(weight * result.score),
        details=dict(result.details),
        reasons=list(result.reasons),
    )


def predict_session_quality(
    profile: UserProfile,
    conditions: ConditionSet,
    spot: SpotCharacteristics,
    *,
    settings: Settings,
) -> Prediction:
    """Score candidate conditions at a spot against a user's learned preferences.

    Factors whose candidate value (or learned preference) is missing are skipped and the
    configured weights of the others are renormalized to sum to 1.

    Raises:
        InvalidConditionsError: wave height or wind speed is missing from `conditions`.
    """
    missing = conditions.missing(*REQUIRED_CONDITIONS)
    if missing:
        raise InvalidConditionsError(
            f"Candidate conditions are missing required fields: {', '.join(missing)}", missing=missing
        )

    results = {name: scorer(conditions, profile, spot, settings) for name, scorer in FACTOR_SCORERS.items()}
    present = [name for name, r in results.items() if not r.skipped]
    configured = {name: float(settings.scoring.factor_weights.get(name, 0.0)) for name in FACTOR_SCORERS}
    weights = renormalize_present(configured, present)

    total = sum(weights[name] * r.score for name, r in results.items() if not r.skipped)
    predicted = round(max(0.0, min(10.0, 10.0 * total)), 1)

    breakdown = [_factor_score(name, results[name], weights[name]) for name in FACTOR_SCORERS]
    prediction = Prediction(
        user_id=profile.user_id,
        spot=spot.name,
        predicted_score=predicted,
        confidence=prediction_confidence(profile.reliability_score, profile.total_sessions, settings=settings),
        conditions=conditions,
        recommendations=_recommendations(profile, conditions, spot, predicted, settings=settings),
        reasoning=_reasoning(profile, conditions, predicted),
        breakdown=breakdown,
    )
    logger.info(
        "Predicted session quality user_id=%s spot=%s score=%.1f confidence=%.1f skipped=%s",
        profile.user_id,
        spot.name,
        prediction.predicted_score,
        prediction.confidence,
        [name for name in FACTOR_SCORERS if name not in present],
    )
    return prediction
