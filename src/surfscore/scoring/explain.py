"""
Small explainability formatting helpers.

Used by the CLI to print compact summaries of predictions.
"""

from __future__ import annotations

from surfscore.domain.models import Prediction


def one_line_summary(prediction: Prediction) -> str:
    """Render a compact single-line summary for a prediction breakdown."""
    parts = [f"score={prediction.predicted_score:.1f}/10", f"confidence={prediction.confidence:.1f}%"]
    for factor in prediction.breakdown:
        if factor.details.get("skipped"):
            parts.append(f"{factor.name}=skipped")
        else:
            parts.append(f"{factor.name}={factor.score:.3f} (w={factor.weight:.2f})")
    return " | ".join(parts)
