"""
Reliability of a learned profile (0..1).

Four equally weighted signals, each clamped to 0..1:
- volume: how many usable sessions back the profile
- quality: share of sessions rated "good" or better
- diversity: how many distinct spots were surfed
- recency: how recently the latest session happened (0 when no session is dated)

Adding a session never lowers the volume or diversity terms, so for a fixed quality mix
reliability only grows with the sample count.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from surfscore.config.settings import Settings
from surfscore.core.time import days_between
from surfscore.domain.models import Session
from surfscore.scoring.composite import clamp01


def reliability_factors(sessions: Sequence[Session], *, settings: Settings, now: datetime) -> dict[str, float]:
    """Return the four reliability signals (useful for explanations and tests)."""
    cfg = settings.analysis.reliability
    good_threshold = settings.analysis.thresholds.good

    if not sessions:
        return {"volume": 0.0, "quality": 0.0, "diversity": 0.0, "recency": 0.0}

    rated = [s for s in sessions if s.rating is not None]
    good = sum(1 for s in rated if s.rating >= good_threshold)
    spots = {s.spot for s in sessions if s.spot}
    dated = [s.timestamp for s in sessions if s.timestamp is not None]

    recency = 0.0
    if dated:
        age_days = days_between(max(dated), now)
        recency = clamp01(1.0 - age_days / float(cfg.recency_horizon_days))

    return {
        "volume": clamp01(len(sessions) / float(cfg.session_count_cap)),
        "quality": clamp01(good / len(sessions)),
        "diversity": clamp01(len(spots) / float(cfg.distinct_spots_cap)),
        "recency": recency,
    }


def reliability_score(
    sessions: Sequence[Session], *, settings: Settings, now: datetime, feedback_factor: float = 1.0
) -> float:
    """Mean of the reliability factors, scaled by the user's feedback factor."""
    factors = reliability_factors(sessions, settings=settings, now=now)
    base = sum(factors.values()) / len(factors)
    return clamp01(base * feedback_factor)
