"""
Statistical helpers used by the preference analyzer and the insights generator.

All helpers are pure and operate on plain Python sequences. Standard deviations are
population deviations (divide by N): the analyzer describes the sessions it was given,
it does not estimate a wider population.
"""

from __future__ import annotations

import math
from collections import Counter, defaultdict
from collections.abc import Hashable, Sequence
from typing import TypeVar

T = TypeVar("T", bound=Hashable)


def mean(values: Sequence[float]) -> float | None:
    """Arithmetic mean, or None for an empty sequence."""
    if not values:
        return None
    return sum(values) / len(values)


def population_std(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    mu = sum(values) / len(values)
    return math.sqrt(sum((v - mu) ** 2 for v in values) / len(values))


def variance(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    mu = sum(values) / len(values)
    return sum((v - mu) ** 2 for v in values) / len(values)


def weighted_average(values: Sequence[float], weights: Sequence[float]) -> float | None:
    """Weighted mean `sum(v*w)/sum(w)`, clamped into the observed [min, max].

    Falls back to the plain mean when the weights are degenerate (all zero or negative).
    """
    if not values:
        return None
    if len(values) != len(weights):
        raise ValueError("values and weights must have the same length")

    total_weight = sum(w for w in weights if w > 0)
    if total_weight <= 0:
        result = sum(values) / len(values)
    else:
        result = sum(v * w for v, w in zip(values, weights) if w > 0) / total_weight
    # Float rounding can push the result a hair outside the observed range.
    return min(max(result, min(values)), max(values))


def value_confidence(values: Sequence[float], *, default: float = 0.5, floor: float = 0.1) -> float:
    """Confidence in a learned value from its spread: `max(floor, min(1, 1 - cv))`.

    cv is the coefficient of variation (std / mean). Fewer than two points gives `default`.
    """
    if len(values) < 2:
        return default
    mu = sum(values) / len(values)
    std = population_std(values)
    if mu == 0:
        return 1.0 if std == 0 else floor
    cv = std / abs(mu)
    return max(floor, min(1.0, 1.0 - cv))


def consistency(values: Sequence[float]) -> float | None:
    """`1 - cv` of a sample (may be negative for very spread data); None without a usable mean."""
    if not values:
        return None
    mu = sum(values) / len(values)
    if mu == 0:
        return None
    return 1.0 - population_std(values) / abs(mu)


def mode(values: Sequence[T], weights: Sequence[float] | None = None) -> T | None:
    """Most frequent value with a deterministic tie rule.

    Ties on count are broken by the highest summed weight (the session ratings), then by
    the natural order of the values (numeric for hours, alphabetical for names).
    """
    if not values:
        return None
    if weights is not None and len(weights) != len(values):
        raise ValueError("values and weights must have the same length")

    counts: Counter[T] = Counter(values)
    weight_sums: dict[T, float] = defaultdict(float)
    if weights is not None:
        for v, w in zip(values, weights):
            weight_sums[v] += w

    ranked = sorted(counts, key=lambda v: (-counts[v], -weight_sums[v], v))
    return ranked[0]


def distribution(values: Sequence[T]) -> dict[T, int]:
    """Value -> count, ordered by the values themselves."""
    counts = Counter(values)
    return {k: counts[k] for k in sorted(counts)}
