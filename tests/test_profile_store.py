from datetime import datetime, timezone

import pytest

from surfscore.analysis.preferences import analyze_preferences
from surfscore.config.settings import Settings, get_settings
from surfscore.core.cache import FileCache
from surfscore.demo import get_demo_user
from surfscore.domain.models import FeedbackState, UserProfile
from surfscore.sessions.normalizer import normalize_sessions
from surfscore.store.profile_store import FileProfileStore, InMemoryProfileStore, build_store


def _state(user_id: str, factor: float = 1.0) -> FeedbackState:
    return FeedbackState(user_id=user_id, samples=1, factor=factor, last_session_id="s-1")


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryProfileStore()
    return FileProfileStore(FeedbackState, cache=FileCache(tmp_path), namespace="feedback")


def test_put_get_replace_delete(store):
    assert store.get("u1") is None
    store.put("u1", _state("u1"))
    store.put("u1", _state("u1", factor=0.8))
    store.put("u0", _state("u0"))

    assert store.get("u1").model_dump() == _state("u1", factor=0.8).model_dump()
    assert store.keys() == ["u0", "u1"]
    assert store.delete("u1") is True
    assert store.delete("u1") is False
    assert store.keys() == ["u0"]


def test_file_store_entries_expire(monkeypatch, tmp_path):
    store = FileProfileStore(FeedbackState, cache=FileCache(tmp_path), namespace="feedback", ttl_seconds=10)
    monkeypatch.setattr("surfscore.core.cache.time.time", lambda: 0)
    store.put("u1", _state("u1"))
    monkeypatch.setattr("surfscore.core.cache.time.time", lambda: 60)
    assert store.get("u1") is None
    assert store.keys() == []


def test_file_store_round_trips_profiles(tmp_path):
    user = get_demo_user("beginner")
    profile = analyze_preferences(
        user["user_id"],
        normalize_sessions(user["sessions"]),
        settings=get_settings(),
        now=datetime(2025, 2, 10, tzinfo=timezone.utc),
    )
    store = FileProfileStore(UserProfile, cache=FileCache(tmp_path), namespace="profiles")
    store.put(profile.user_id, profile)

    loaded = store.get(profile.user_id)
    assert loaded.model_dump() == profile.model_dump()
    assert loaded.last_updated.tzinfo is not None
    assert loaded.time_preferences.hour_distribution == {8: 1, 9: 1, 10: 1, 14: 1}


def test_build_store_selects_backend(tmp_path):
    data = get_settings().model_dump()
    data["store"]["backend"] = "file"
    data["cache"]["dir"] = str(tmp_path)
    settings = Settings.model_validate(data)

    store = build_store(settings, FeedbackState, namespace="feedback")
    assert isinstance(store, FileProfileStore)
    store.put("u1", _state("u1"))
    assert (tmp_path / "feedback").is_dir()

    assert isinstance(build_store(get_settings(), FeedbackState, namespace="feedback"), InMemoryProfileStore)
