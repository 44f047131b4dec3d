from __future__ import annotations

# We use pytest because the repository already standardizes on it for automated checks.
import pytest

# We import the existing Settings loader so tests run with the real default config structure.
from surfscore.config.settings import get_settings

# We test the override helper directly because it is pure (no network) and safety-critical.
from surfscore.config.overrides import apply_settings_overrides, overridable_paths


def test_apply_settings_overrides_returns_same_object_when_none():
    # Load the baseline settings once (this is a cached Pydantic model).
    settings = get_settings()

    # When no overrides are provided, we expect a no-op and the same object back (fast path).
    out = apply_settings_overrides(settings, None)

    # Identity equality is intentional here: the function returns early without rebuilding the model.
    assert out is settings


def test_apply_settings_overrides_can_override_allowed_scoring_knobs():
    # Load the baseline settings (do not mutate it; it is shared via lru_cache).
    settings = get_settings()

    # Make wave height matter more for this single prediction; other weights keep their defaults.
    overrides = {"scoring": {"factor_weights": {"wave_height": 0.6}}}

    # Apply the override; this returns a NEW Settings model validated by Pydantic.
    out = apply_settings_overrides(settings, overrides)

    # The override should take effect on the returned model, merged into the existing dict.
    assert out.scoring.factor_weights["wave_height"] == 0.6
    assert out.scoring.factor_weights["wind_speed"] == settings.scoring.factor_weights["wind_speed"]

    # The original shared settings should remain unchanged (important to avoid cross-request leakage).
    assert settings.scoring.factor_weights["wave_height"] == 0.25


def test_apply_settings_overrides_rejects_disallowed_keys_with_clear_path():
    settings = get_settings()

    # Feedback tuning changes stored state, so it is never overridable per request.
    overrides = {"scoring": {"feedback": {"min_factor": 0.0}}}

    # We expect a ValueError with a dotted path so users can find the offending key quickly.
    with pytest.raises(ValueError, match=r"scoring\.feedback"):
        apply_settings_overrides(settings, overrides)


def test_apply_settings_overrides_rejects_top_level_sections_outside_the_whitelist():
    settings = get_settings()

    with pytest.raises(ValueError, match=r"disallowed key: 'analysis'"):
        apply_settings_overrides(settings, {"analysis": {"min_sessions": 1}})


def test_apply_settings_overrides_rejects_wrong_value_shapes_for_restricted_subtrees():
    settings = get_settings()

    # `scoring` is a restricted subtree (only certain nested keys are allowed),
    # so its override must be an object/mapping, not a scalar.
    with pytest.raises(ValueError, match=r"settings_overrides key 'scoring' must be a mapping"):
        apply_settings_overrides(settings, {"scoring": 1})


def test_apply_settings_overrides_revalidates_ranges():
    settings = get_settings()

    # Direction scores are 0..1; Pydantic's ValidationError is a ValueError.
    with pytest.raises(ValueError):
        apply_settings_overrides(settings, {"scoring": {"direction_scores": {"exact": 3}}})


def test_overridable_paths_lists_the_whitelist():
    assert overridable_paths() == [
        "scoring.factor_weights",
        "scoring.direction_scores",
        "scoring.tolerance_floors",
        "scoring.quality_thresholds",
        "scoring.wave_height_margin_m",
        "scoring.confidence",
    ]
