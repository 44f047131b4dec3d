"""
Weight and score helpers shared by the factor scorers and `predict_session_quality`.

Every factor produces a `ComponentResult` in 0..1. The prediction total is the
weighted sum of the non-skipped results, using `renormalize_present` weights.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field
from typing import Any


def clamp01(x: float) -> float:
    """`x` limited to 0..1."""
    return max(0.0, min(1.0, float(x)))


@dataclass(frozen=True)
class ComponentResult:
    """A normalized factor score plus explainability payload.

    `skipped` marks a factor that could not be evaluated (missing candidate value or
    missing learned preference); it carries no weight in the total.
    """

    score: float
    details: dict[str, Any] = field(default_factory=dict)
    reasons: list[str] = field(default_factory=list)
    skipped: bool = False


def normalize_weights(weights: dict[str, float]) -> dict[str, float]:
    """Weights scaled to sum to 1.0. Negatives count as 0; all-zero input becomes uniform."""
    cleaned = {k: max(0.0, float(v)) for k, v in weights.items()}
    total = sum(cleaned.values())
    if total <= 0:
        return {k: 1.0 / len(weights) for k in weights}
    return {k: v / total for k, v in cleaned.items()}


def renormalize_present(weights: dict[str, float], present: Collection[str]) -> dict[str, float]:
    """Zero the weights of absent keys and normalize the remaining ones to sum to 1.0.

    With every key present this is the same as `normalize_weights`. With nothing present
    every weight is 0.
    """
    kept = {k: v for k, v in weights.items() if k in present}
    if not kept:
        return {k: 0.0 for k in weights}
    normalized = normalize_weights(kept)
    return {k: normalized.get(k, 0.0) for k in weights}
