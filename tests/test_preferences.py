from datetime import datetime, timedelta, timezone

import pytest

from surfscore.analysis.preferences import analyze_preferences
from surfscore.config.settings import get_settings
from surfscore.demo import get_demo_user
from surfscore.domain.errors import InsufficientDataError, NoQualifyingSessionsError
from surfscore.sessions.normalizer import normalize_sessions

NOW = datetime(2025, 2, 10, 12, 0, tzinfo=timezone.utc)


def _demo_sessions(name: str):
    return normalize_sessions(get_demo_user(name)["sessions"])


def _session(rating, height=1.0, wind=10.0, spot="anglet", days_ago=1, **conditions):
    return {
        "spot": spot,
        "rating": rating,
        "date": (NOW - timedelta(days=days_ago)).isoformat(),
        "conditions": {"waveHeight": height, "windSpeed": wind, **conditions},
    }


def test_beginner_profile_learns_small_waves_and_light_wind():
    settings = get_settings()
    profile = analyze_preferences("beginner_001", _demo_sessions("beginner"), settings=settings, now=NOW)

    assert profile.total_sessions == 4
    assert profile.good_sessions == 4
    assert profile.excellent_sessions == 2

    height = profile.wave_preferences.optimal_height
    assert height.value == pytest.approx(28.9 / 30)
    assert (height.range.min, height.range.max) == (0.8, 1.2)
    assert 0.1 <= height.confidence <= 1.0

    speed = profile.wind_preferences.optimal_speed
    assert speed.value == pytest.approx(221 / 30)
    assert (speed.range.min, speed.range.max) == (5, 12)
    assert profile.wind_preferences.tolerance == pytest.approx(0.3459, abs=1e-3)

    # SW/W and E/NE are tied on count; the higher-rated sessions decide.
    assert profile.wave_preferences.preferred_direction == "SW"
    assert profile.wind_preferences.preferred_direction == "E"
    assert profile.wave_preferences.optimal_period.value == pytest.approx(260 / 30)
    assert profile.tide_preferences.optimal_height.value == pytest.approx(41.4 / 30)


def test_spot_time_and_ideal_conditions():
    profile = analyze_preferences("beginner_001", _demo_sessions("beginner"), settings=get_settings(), now=NOW)

    names = [s.name for s in profile.spot_preferences]
    assert names == ["anglet", "biarritz"]
    anglet = profile.spot_preferences[0]
    assert anglet.sessions_count == 3
    assert anglet.average_rating == pytest.approx(8.0)
    assert anglet.frequency == pytest.approx(0.75)
    assert anglet.consistency == pytest.approx(1 - (2 / 3) / 10)
    assert profile.favorite_spot.name == "anglet"

    time_prefs = profile.time_preferences
    # Four distinct hours; the 08:00 session has the best rating.
    assert time_prefs.preferred_hour == 8
    assert time_prefs.preferred_season == "winter"
    assert time_prefs.season_distribution == {"winter": 4}

    ideal = profile.ideal_conditions
    assert ideal.based_on_sessions == 2
    assert ideal.wave_height == pytest.approx(0.95)
    assert ideal.wind_speed == pytest.approx(5.5)
    assert ideal.wave_direction == "SW"
    assert ideal.wind_direction == "E"


def test_behavioral_insights_are_descriptive_sentences():
    profile = analyze_preferences("beginner_001", _demo_sessions("beginner"), settings=get_settings(), now=NOW)
    text = " | ".join(profile.behavioral_insights)
    assert "You excel in waves around" in text
    assert "very consistent" in text
    assert "Anglet" in text


def test_progression_insight_compares_latest_sessions_with_earliest():
    raw = [_session(4, days_ago=30 - i) for i in range(5)] + [_session(8, days_ago=10 - i) for i in range(5)]
    profile = analyze_preferences("u", normalize_sessions(raw), settings=get_settings(), now=NOW)
    assert any("improving: +4.0" in s for s in profile.behavioral_insights)


@pytest.mark.parametrize("count", [0, 1, 2])
def test_too_few_sessions_raise_insufficient_data(count):
    raw = [_session(8) for _ in range(count)]
    with pytest.raises(InsufficientDataError):
        analyze_preferences("u", normalize_sessions(raw), settings=get_settings(), now=NOW)


def test_sessions_missing_key_measurements_do_not_count():
    raw = [_session(8), _session(7), {"spot": "anglet", "rating": 9, "conditions": {"waveHeight": 1.2}}]
    with pytest.raises(InsufficientDataError) as exc:
        analyze_preferences("u", normalize_sessions(raw), settings=get_settings(), now=NOW)
    assert exc.value.context["usable_sessions"] == 2


def test_no_good_session_raises_no_qualifying_sessions():
    raw = [_session(3), _session(5), _session(4)]
    with pytest.raises(NoQualifyingSessionsError):
        analyze_preferences("u", normalize_sessions(raw), settings=get_settings(), now=NOW)


def test_optimal_values_stay_inside_observed_ranges():
    raw = [
        _session(10, height=0.5, wind=2),
        _session(6, height=3.0, wind=30),
        _session(8, height=1.7, wind=11, wavePeriod=12),
        _session(2, height=9.0, wind=60),
    ]
    profile = analyze_preferences("u", normalize_sessions(raw), settings=get_settings(), now=NOW)
    for learned in (profile.wave_preferences.optimal_height, profile.wind_preferences.optimal_speed):
        assert learned.range.min <= learned.value <= learned.range.max
    # The poorly rated 9m session is outside the working set.
    assert profile.wave_preferences.optimal_height.range.max == 3.0
    # A single period measurement: the value is exact, the confidence is the default.
    assert profile.wave_preferences.optimal_period.value == 12
    assert profile.wave_preferences.optimal_period.confidence == 0.5
    assert profile.tide_preferences is None


def test_reanalysis_is_idempotent():
    settings = get_settings()
    sessions = _demo_sessions("intermediate")
    first = analyze_preferences("i", sessions, settings=settings, now=NOW)
    second = analyze_preferences("i", sessions, settings=settings, now=NOW)
    assert first.model_dump() == second.model_dump()


def test_feedback_factor_scales_reliability():
    settings = get_settings()
    sessions = _demo_sessions("expert")
    base = analyze_preferences("e", sessions, settings=settings, now=NOW)
    scaled = analyze_preferences("e", sessions, settings=settings, now=NOW, feedback_factor=0.5)
    assert scaled.reliability_score == pytest.approx(base.reliability_score * 0.5)
