import pytest

from surfscore.core.cache import FileCache, record_cache_stats


def test_file_cache_stale_if_error_returns_expired_value(monkeypatch, tmp_path):
    cache = FileCache(tmp_path, enabled=True, default_ttl_seconds=1)

    monkeypatch.setattr("surfscore.core.cache.time.time", lambda: 0)
    cache.set("ns", "k", {"v": 1}, ttl_seconds=1)

    monkeypatch.setattr("surfscore.core.cache.time.time", lambda: 100)

    def builder():
        raise RuntimeError("upstream down")

    with record_cache_stats() as stats:
        val = cache.get_or_set(
            "ns",
            "k",
            builder,
            ttl_seconds=1,
            stale_if_error=True,
            stale_predicate=lambda exc: isinstance(exc, RuntimeError),
        )
    assert val == {"v": 1}
    assert stats.stale_fallbacks == 1
    assert stats.expired == 1


def test_file_cache_stale_if_error_respects_predicate(monkeypatch, tmp_path):
    cache = FileCache(tmp_path, enabled=True, default_ttl_seconds=1)

    monkeypatch.setattr("surfscore.core.cache.time.time", lambda: 0)
    cache.set("ns", "k", {"v": 1}, ttl_seconds=1)

    monkeypatch.setattr("surfscore.core.cache.time.time", lambda: 100)

    def builder():
        raise RuntimeError("upstream down")

    with pytest.raises(RuntimeError):
        cache.get_or_set(
            "ns",
            "k",
            builder,
            ttl_seconds=1,
            stale_if_error=True,
            stale_predicate=lambda exc: isinstance(exc, ValueError),
        )


def test_file_cache_keys_and_delete(monkeypatch, tmp_path):
    cache = FileCache(tmp_path, enabled=True, default_ttl_seconds=10)

    monkeypatch.setattr("surfscore.core.cache.time.time", lambda: 0)
    cache.set("profiles", "bob", {"n": 1})
    cache.set("profiles", "alice", {"n": 2})
    cache.set("other", "carol", {"n": 3})

    assert cache.keys("profiles") == ["alice", "bob"]
    assert cache.delete("profiles", "bob") is True
    assert cache.delete("profiles", "bob") is False
    assert cache.keys("profiles") == ["alice"]

    # Expired entries are not listed.
    monkeypatch.setattr("surfscore.core.cache.time.time", lambda: 100)
    assert cache.keys("profiles") == []


def test_disabled_cache_is_a_no_op(tmp_path):
    cache = FileCache(tmp_path, enabled=False)
    cache.set("ns", "k", {"v": 1})
    assert cache.get("ns", "k") is None
    assert cache.get_or_set("ns", "k", lambda: {"v": 2}) == {"v": 2}
    assert not any(tmp_path.iterdir())
