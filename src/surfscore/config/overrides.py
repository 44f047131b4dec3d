"""
Per-request settings overrides.

`POST /api/ai/predict` may carry `settings_overrides` to tune scoring for that one
call ("what if wave height mattered more?"). Only scoring knobs are reachable:
a profile is always learned with the server's analysis rules, and feedback tuning
changes stored state, so neither is overridable per request.

Overrides are checked against `ALLOWED_SETTINGS_OVERRIDES_TREE`, deep-merged onto
the current settings, and re-validated by Pydantic. The cached settings object is
never mutated.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from surfscore.config.settings import Settings

# True allows any keys below that node; a nested dict lists the allowed keys.
ALLOWED_SETTINGS_OVERRIDES_TREE: dict[str, Any] = {
    "scoring": {
        "factor_weights": True,
        "direction_scores": True,
        "tolerance_floors": True,
        "quality_thresholds": True,
        "wave_height_margin_m": True,
        "confidence": True,
    },
}


def overridable_paths(tree: Mapping[str, Any] = ALLOWED_SETTINGS_OVERRIDES_TREE, prefix: str = "") -> list[str]:
    """Dotted paths a client may override, e.g. `scoring.factor_weights`."""
    paths: list[str] = []
    for key, allowed in tree.items():
        dotted = f"{prefix}{key}"
        if allowed is True:
            paths.append(dotted)
        else:
            paths.extend(overridable_paths(allowed, prefix=f"{dotted}."))
    return paths


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def _filter_overrides(
    overrides: Mapping[str, Any], *, allowed_tree: Mapping[str, Any], path: tuple[str, ...] = ()
) -> dict[str, Any]:
    filtered: dict[str, Any] = {}
    for key, value in overrides.items():
        dotted = ".".join((*path, key))
        if key not in allowed_tree:
            raise ValueError(f"settings_overrides contains a disallowed key: '{dotted}'")

        allowed = allowed_tree[key]
        if allowed is True:
            filtered[key] = value
        elif isinstance(value, Mapping):
            filtered[key] = _filter_overrides(value, allowed_tree=allowed, path=(*path, key))
        else:
            raise ValueError(f"settings_overrides key '{dotted}' must be a mapping")
    return filtered


def apply_settings_overrides(settings: Settings, overrides: Mapping[str, Any] | None) -> Settings:
    """Return `settings` with the whitelisted `overrides` merged in.

    Raises:
        ValueError: a key outside the whitelist, a wrong shape, or (as a Pydantic
            `ValidationError`) a value out of range.
    """
    if not overrides:
        return settings

    safe = _filter_overrides(overrides, allowed_tree=ALLOWED_SETTINGS_OVERRIDES_TREE)
    return Settings.model_validate(_deep_merge(settings.model_dump(mode="python"), safe))
