"""
Profile store.

Learned profiles (and per-user feedback state) are kept behind a tiny key/value protocol
so the service never depends on a process-wide singleton map:

- `InMemoryProfileStore`: dict guarded by a lock (default; tests, single process)
- `FileProfileStore`: JSON envelopes on disk through `FileCache` (survives restarts,
  entries expire after `store.profile_ttl_seconds`)

Values are always whole Pydantic models; a `put` replaces the previous value wholesale.
"""

from __future__ import annotations

import threading
from typing import Generic, Protocol, TypeVar

from pydantic import BaseModel

from surfscore.config.settings import Settings
from surfscore.core.cache import FileCache
from surfscore.core.env import resolve_project_path

ModelT = TypeVar("ModelT", bound=BaseModel)


class ProfileStore(Protocol[ModelT]):
    def get(self, user_id: str) -> ModelT | None: ...

    def put(self, user_id: str, value: ModelT) -> None: ...

    def delete(self, user_id: str) -> bool: ...

    def keys(self) -> list[str]: ...


class InMemoryProfileStore(Generic[ModelT]):
    def __init__(self) -> None:
        self._items: dict[str, ModelT] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> ModelT | None:
        with self._lock:
            return self._items.get(user_id)

    def put(self, user_id: str, value: ModelT) -> None:
        with self._lock:
            self._items[user_id] = value

    def delete(self, user_id: str) -> bool:
        with self._lock:
            return self._items.pop(user_id, None) is not None

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._items)


class FileProfileStore(Generic[ModelT]):
    def __init__(
        self, model: type[ModelT], *, cache: FileCache, namespace: str, ttl_seconds: int | None = None
    ) -> None:
        self._model = model
        self._cache = cache
        self._namespace = namespace
        self._ttl_seconds = ttl_seconds

    def get(self, user_id: str) -> ModelT | None:
        raw = self._cache.get(self._namespace, user_id, ttl_seconds=self._ttl_seconds)
        if raw is None:
            return None
        return self._model.model_validate(raw)

    def put(self, user_id: str, value: ModelT) -> None:
        self._cache.set(self._namespace, user_id, value.model_dump(mode="json"), ttl_seconds=self._ttl_seconds)

    def delete(self, user_id: str) -> bool:
        return self._cache.delete(self._namespace, user_id)

    def keys(self) -> list[str]:
        return self._cache.keys(self._namespace, ttl_seconds=self._ttl_seconds)


def build_store(settings: Settings, model: type[ModelT], *, namespace: str) -> ProfileStore[ModelT]:
    """Create the store selected by `store.backend`."""
    if settings.store.backend == "file":
        cache = FileCache(
            base_dir=resolve_project_path(settings.cache.dir),
            enabled=True,
            default_ttl_seconds=settings.store.profile_ttl_seconds,
        )
        return FileProfileStore(model, cache=cache, namespace=namespace, ttl_seconds=settings.store.profile_ttl_seconds)
    return InMemoryProfileStore()
