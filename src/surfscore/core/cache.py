"""
On-disk JSON cache.

Entries live under `<base_dir>/<namespace>/<sha256>.json` as an envelope
`{key, created_at_unix, ttl_seconds, value}`. The plain key is kept in the envelope so
a namespace can be listed; expiry is checked on read.

Two users:
- `MarineWeatherClient`: fewer provider calls, and stale-if-error when Open-Meteo is down
- `FileProfileStore`: learned profiles and feedback state survive restarts

`record_cache_stats()` collects hit/miss counters for the current context only, so
concurrent requests never mix their numbers.
"""

from __future__ import annotations

import contextvars
import json
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from hashlib import sha256
from pathlib import Path
from typing import Any


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    expired: int = 0
    sets: int = 0
    stale_fallbacks: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


_current_stats: contextvars.ContextVar[CacheStats | None] = contextvars.ContextVar(
    "surfscore_cache_stats", default=None
)


@contextmanager
def record_cache_stats() -> Iterator[CacheStats]:
    stats = CacheStats()
    token = _current_stats.set(stats)
    try:
        yield stats
    finally:
        _current_stats.reset(token)


def _count(field: str) -> None:
    stats = _current_stats.get()
    if stats is not None:
        setattr(stats, field, getattr(stats, field) + 1)


@dataclass(frozen=True)
class _Envelope:
    key: str
    created_at_unix: int
    ttl_seconds: int
    value: Any

    def expired(self, ttl_seconds: int | None) -> bool:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        return int(time.time()) - self.created_at_unix > ttl


def _load(path: Path) -> _Envelope | None:
    """Read an envelope; unreadable or malformed files count as absent."""
    if not path.is_file():
        return None
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return _Envelope(
            key=str(raw.get("key", "")),
            created_at_unix=int(raw["created_at_unix"]),
            ttl_seconds=int(raw["ttl_seconds"]),
            value=raw["value"],
        )
    except (OSError, ValueError, KeyError, TypeError, AttributeError):
        return None


class FileCache:
    """JSON values keyed by (namespace, key), with a TTL per entry."""

    def __init__(self, base_dir: Path, enabled: bool = True, default_ttl_seconds: int = 86400):
        self._base_dir = Path(base_dir)
        self._enabled = enabled
        self._default_ttl_seconds = default_ttl_seconds

    def _path(self, namespace: str, key: str) -> Path:
        digest = sha256(f"{namespace}:{key}".encode("utf-8")).hexdigest()
        return self._base_dir / namespace / f"{digest}.json"

    def get(self, namespace: str, key: str, ttl_seconds: int | None = None) -> Any | None:
        """Fresh value or None. `ttl_seconds` overrides the TTL stored with the entry."""
        if not self._enabled:
            return None
        entry = _load(self._path(namespace, key))
        if entry is None:
            _count("misses")
            return None
        if entry.expired(ttl_seconds):
            _count("misses")
            _count("expired")
            return None
        _count("hits")
        return entry.value

    def get_stale(self, namespace: str, key: str) -> Any | None:
        """Value regardless of age, or None."""
        if not self._enabled:
            return None
        entry = _load(self._path(namespace, key))
        return entry.value if entry is not None else None

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a JSON-serializable value; readers see the old or the new file, never a partial one."""
        if not self._enabled:
            return
        path = self._path(namespace, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        envelope = {
            "key": key,
            "created_at_unix": int(time.time()),
            "ttl_seconds": int(self._default_ttl_seconds if ttl_seconds is None else ttl_seconds),
            "value": value,
        }
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(envelope, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)
        _count("sets")

    def delete(self, namespace: str, key: str) -> bool:
        if not self._enabled:
            return False
        path = self._path(namespace, key)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def keys(self, namespace: str, ttl_seconds: int | None = None) -> list[str]:
        """Sorted keys of the fresh entries in `namespace`."""
        if not self._enabled:
            return []
        found = (_load(p) for p in (self._base_dir / namespace).glob("*.json"))
        return sorted(e.key for e in found if e is not None and e.key and not e.expired(ttl_seconds))

    def get_or_set(
        self,
        namespace: str,
        key: str,
        builder: Callable[[], Any],
        ttl_seconds: int | None = None,
        *,
        stale_if_error: bool = False,
        stale_predicate: Callable[[Exception], bool] | None = None,
    ) -> Any:
        """Fresh cached value, else `builder()` stored under `key`.

        With `stale_if_error`, a failing builder falls back to an expired value when one
        exists and `stale_predicate(exc)` accepts the error (any error without a predicate).
        Otherwise the builder's exception propagates.
        """
        cached = self.get(namespace, key, ttl_seconds=ttl_seconds)
        if cached is not None:
            return cached
        try:
            value = builder()
        except Exception as exc:
            if stale_if_error and (stale_predicate is None or stale_predicate(exc)):
                stale = self.get_stale(namespace, key)
                if stale is not None:
                    _count("stale_fallbacks")
                    return stale
            raise
        self.set(namespace, key, value, ttl_seconds=ttl_seconds)
        return value
