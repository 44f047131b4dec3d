from datetime import datetime, timedelta, timezone

import pytest

from surfscore.analysis.reliability import reliability_factors, reliability_score
from surfscore.config.settings import get_settings
from surfscore.domain.models import ConditionSet, Session

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _sessions(n, *, good_every=1, spots=1, days_ago=0):
    out = []
    for i in range(n):
        out.append(
            Session(
                spot=f"spot{i % spots}",
                rating=8 if i % good_every == 0 else 3,
                timestamp=NOW - timedelta(days=days_ago),
                conditions=ConditionSet(wave_height=1.0, wind_speed=10),
            )
        )
    return out


def test_factors_follow_their_definitions():
    factors = reliability_factors(_sessions(10, good_every=2, spots=5, days_ago=73), settings=get_settings(), now=NOW)
    assert factors["volume"] == pytest.approx(0.5)
    assert factors["quality"] == pytest.approx(0.5)
    assert factors["diversity"] == pytest.approx(0.5)
    assert factors["recency"] == pytest.approx(0.8)


def test_factors_are_clamped():
    factors = reliability_factors(_sessions(40, spots=20, days_ago=800), settings=get_settings(), now=NOW)
    assert factors["volume"] == 1.0
    assert factors["diversity"] == 1.0
    assert factors["recency"] == 0.0


def test_undated_sessions_have_no_recency():
    sessions = [s.model_copy(update={"timestamp": None}) for s in _sessions(4)]
    assert reliability_factors(sessions, settings=get_settings(), now=NOW)["recency"] == 0.0


def test_reliability_never_decreases_with_more_sessions_of_the_same_quality():
    settings = get_settings()
    scores = [reliability_score(_sessions(n, spots=3), settings=settings, now=NOW) for n in range(3, 30)]
    assert all(b >= a for a, b in zip(scores, scores[1:]))
    assert all(0.0 <= s <= 1.0 for s in scores)


def test_feedback_factor_multiplies_the_score():
    settings = get_settings()
    sessions = _sessions(10, spots=2)
    assert reliability_score(sessions, settings=settings, now=NOW, feedback_factor=0.5) == pytest.approx(
        reliability_score(sessions, settings=settings, now=NOW) * 0.5
    )
