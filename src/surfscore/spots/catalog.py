"""
Spot catalog loader.

The catalog is a local JSON file (default: `data/catalogs/spots.json`) listing surf spots
with coordinates and the wind/swell directions that work there. We validate it into typed
Pydantic models so the scorer can assume a consistent shape.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from pathlib import Path

from pydantic import TypeAdapter

from surfscore.core.env import resolve_project_path
from surfscore.domain.errors import UnknownSpotError
from surfscore.domain.models import SpotCharacteristics

_SPOTS_ADAPTER = TypeAdapter(list[SpotCharacteristics])


def spot_key(name: str) -> str:
    """Lookup key for a spot name (case-insensitive, surrounding whitespace ignored)."""
    return name.strip().lower()


class SpotCatalog:
    """Read-only spot table keyed by normalized name."""

    def __init__(self, spots: Iterable[SpotCharacteristics]):
        self._spots: dict[str, SpotCharacteristics] = {}
        for spot in spots:
            key = spot_key(spot.name)
            if key in self._spots:
                raise ValueError(f"Duplicate spot in catalog: {spot.name!r}")
            self._spots[key] = spot

    def __len__(self) -> int:
        return len(self._spots)

    def __iter__(self) -> Iterator[SpotCharacteristics]:
        return iter(self._spots.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and spot_key(name) in self._spots

    def get(self, name: str) -> SpotCharacteristics | None:
        return self._spots.get(spot_key(name))

    def require(self, name: str) -> SpotCharacteristics:
        spot = self.get(name)
        if spot is None:
            known = ", ".join(s.name for s in self)
            raise UnknownSpotError(f"Unknown spot {name!r} (known spots: {known})", spot=name)
        return spot

    def names(self) -> list[str]:
        return [s.name for s in self]


def load_spot_catalog(path: str | Path) -> SpotCatalog:
    """Load and validate a spot catalog JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    return SpotCatalog(_SPOTS_ADAPTER.validate_python(payload))
