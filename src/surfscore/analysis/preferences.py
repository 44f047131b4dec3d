"""
Preference analyzer.

Turns a user's rated sessions into a `UserProfile`: the conditions under which the user
surfs best, how sure we are about each of them, where and when they surf, and how much
the whole profile can be trusted.

Pipeline:
1) keep usable sessions only (rating in domain + wave height + wind speed)
2) working set = sessions rated "good" or better (excellent sessions are a subset)
3) numeric factors: rating-weighted mean, observed range, spread-based confidence
4) categorical factors: rating-aware mode
5) spots, time of day / season, ideal conditions, reliability, insights
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from surfscore.analysis.insights import build_insights
from surfscore.analysis.reliability import reliability_score
from surfscore.analysis.statistics import (
    distribution,
    mean,
    mode,
    population_std,
    value_confidence,
    variance,
    weighted_average,
)
from surfscore.config.settings import Settings
from surfscore.core.time import days_between, season_of
from surfscore.domain.errors import InsufficientDataError, NoQualifyingSessionsError
from surfscore.domain.models import (
    IdealConditions,
    OptimalValue,
    PeriodPreference,
    Session,
    SpotPreference,
    TidePreferences,
    TimePreferences,
    UserProfile,
    ValueRange,
    WavePreferences,
    WindPreferences,
)
from surfscore.scoring.composite import clamp01

logger = logging.getLogger(__name__)


def _measurements(sessions: Sequence[Session], field: str) -> tuple[list[float], list[float]]:
    """Values of one numeric condition and the matching ratings (sessions lacking it are skipped)."""
    values: list[float] = []
    weights: list[float] = []
    for s in sessions:
        v = getattr(s.conditions, field)
        if v is None:
            continue
        values.append(float(v))
        weights.append(float(s.rating or 0))
    return values, weights


def _optimal_value(sessions: Sequence[Session], field: str, *, settings: Settings) -> OptimalValue | None:
    values, weights = _measurements(sessions, field)
    if not values:
        return None
    cfg = settings.analysis
    return OptimalValue(
        value=weighted_average(values, weights),
        range=ValueRange(min=min(values), max=max(values)),
        confidence=value_confidence(values, default=cfg.default_confidence, floor=cfg.min_confidence),
    )


def _preferred_direction(sessions: Sequence[Session], field: str) -> str | None:
    values: list[str] = []
    ratings: list[float] = []
    for s in sessions:
        d = getattr(s.conditions, field)
        if d is not None:
            values.append(d)
            ratings.append(float(s.rating or 0))
    return mode(values, ratings)


def _wind_tolerance(sessions: Sequence[Session], *, settings: Settings) -> float:
    """Relative spread of wind speeds (std / mean), capped."""
    cap = settings.analysis.max_wind_tolerance
    speeds, _ = _measurements(sessions, "wind_speed")
    mu = mean(speeds)
    if not mu:
        return cap
    return min(cap, population_std(speeds) / mu)


def _spot_preferences(sessions: Sequence[Session], *, settings: Settings, now: datetime) -> list[SpotPreference]:
    cfg = settings.analysis.spots
    w = cfg.score_weights

    by_spot: dict[str, list[Session]] = {}
    for s in sessions:
        if s.spot:
            by_spot.setdefault(s.spot, []).append(s)

    prefs: list[SpotPreference] = []
    for name, spot_sessions in by_spot.items():
        ratings = [float(s.rating) for s in spot_sessions]
        avg = sum(ratings) / len(ratings)
        frequency = len(spot_sessions) / len(sessions)
        spot_consistency = max(0.0, 1.0 - variance(ratings) / cfg.variance_normalizer)

        dated = [s.timestamp for s in spot_sessions if s.timestamp is not None]
        recency = clamp01(1.0 - days_between(max(dated), now) / cfg.recency_horizon_days) if dated else 0.0

        score = (
            w.average_rating * avg
            + w.frequency * frequency * cfg.frequency_scale
            + w.consistency * spot_consistency * cfg.consistency_scale
            + w.recency * recency * cfg.recency_scale
        )
        prefs.append(
            SpotPreference(
                name=name,
                sessions_count=len(spot_sessions),
                average_rating=avg,
                frequency=frequency,
                consistency=spot_consistency,
                recency_bonus=recency,
                score=score,
            )
        )

    prefs.sort(key=lambda p: (-p.score, p.name))
    return prefs


def _time_preferences(sessions: Sequence[Session]) -> TimePreferences:
    dated = [s for s in sessions if s.timestamp is not None]
    if not dated:
        return TimePreferences()
    # Hours are read in the timestamp's own offset (local time of the session as recorded).
    hours = [s.timestamp.hour for s in dated]
    seasons = [season_of(s.timestamp) for s in dated]
    ratings = [float(s.rating or 0) for s in dated]
    return TimePreferences(
        preferred_hour=mode(hours, ratings),
        preferred_season=mode(seasons, ratings),
        hour_distribution=distribution(hours),
        season_distribution=distribution(seasons),
    )


def _ideal_conditions(excellent: Sequence[Session]) -> IdealConditions | None:
    if not excellent:
        return None

    def plain_mean(field: str) -> float | None:
        values, _ = _measurements(excellent, field)
        return mean(values)

    return IdealConditions(
        wave_height=plain_mean("wave_height"),
        wind_speed=plain_mean("wind_speed"),
        wave_period=plain_mean("wave_period"),
        wave_direction=_preferred_direction(excellent, "wave_direction"),
        wind_direction=_preferred_direction(excellent, "wind_direction"),
        based_on_sessions=len(excellent),
    )


def analyze_preferences(
    user_id: str,
    sessions: Sequence[Session],
    *,
    settings: Settings,
    now: datetime,
    feedback_factor: float = 1.0,
) -> UserProfile:
    """Learn a user's preferences from normalized sessions.

    Raises:
        InsufficientDataError: fewer than `analysis.min_sessions` usable sessions.
        NoQualifyingSessionsError: no usable session is rated "good" or better.
    """
    cfg = settings.analysis
    usable = [s for s in sessions if s.is_usable(rating_min=cfg.rating.min, rating_max=cfg.rating.max)]
    if len(usable) < cfg.min_sessions:
        raise InsufficientDataError(
            f"At least {cfg.min_sessions} usable sessions are required for analysis, got {len(usable)}",
            usable_sessions=len(usable),
            received_sessions=len(sessions),
            required=cfg.min_sessions,
        )

    excellent = [s for s in usable if s.rating >= cfg.thresholds.excellent]
    working = [s for s in usable if s.rating >= cfg.thresholds.good]
    if not working:
        raise NoQualifyingSessionsError(
            f"No session rated {cfg.thresholds.good:g}/10 or higher among {len(usable)} usable sessions",
            usable_sessions=len(usable),
        )

    height = _optimal_value(working, "wave_height", settings=settings)
    speed = _optimal_value(working, "wind_speed", settings=settings)
    period = _optimal_value(working, "wave_period", settings=settings)
    tide = _optimal_value(working, "tide_height", settings=settings)

    spot_prefs = _spot_preferences(working, settings=settings, now=now)

    profile = UserProfile(
        user_id=user_id,
        total_sessions=len(usable),
        good_sessions=len(working),
        excellent_sessions=len(excellent),
        wave_preferences=WavePreferences(
            optimal_height=height,
            preferred_direction=_preferred_direction(working, "wave_direction"),
            optimal_period=PeriodPreference(value=period.value, confidence=period.confidence) if period else None,
        ),
        wind_preferences=WindPreferences(
            optimal_speed=speed,
            preferred_direction=_preferred_direction(working, "wind_direction"),
            tolerance=_wind_tolerance(working, settings=settings),
        ),
        tide_preferences=TidePreferences(optimal_height=tide) if tide else None,
        spot_preferences=spot_prefs,
        time_preferences=_time_preferences(working),
        ideal_conditions=_ideal_conditions(excellent),
        behavioral_insights=build_insights(usable, excellent, spot_prefs, settings=settings),
        reliability_score=reliability_score(usable, settings=settings, now=now, feedback_factor=feedback_factor),
        last_updated=now,
    )

    logger.info(
        "Analyzed preferences user_id=%s usable=%d good=%d excellent=%d reliability=%.3f",
        user_id,
        profile.total_sessions,
        profile.good_sessions,
        profile.excellent_sessions,
        profile.reliability_score,
    )
    return profile
