"""
Behavioral insights.

Short, descriptive English sentences derived from a user's sessions. They never feed the
score; they exist so a client can show *why* the profile looks the way it does.
"""

from __future__ import annotations

from collections.abc import Sequence

from surfscore.analysis.statistics import consistency, mean
from surfscore.config.settings import Settings
from surfscore.domain.models import Session, SpotPreference


def chronological(sessions: Sequence[Session]) -> list[Session]:
    """Oldest first when every session is dated; input order otherwise."""
    if sessions and all(s.timestamp is not None for s in sessions):
        return sorted(sessions, key=lambda s: s.timestamp)
    return list(sessions)


def display_spot(name: str) -> str:
    return name.title() if name else "an unnamed spot"


def build_insights(
    sessions: Sequence[Session],
    excellent: Sequence[Session],
    spot_preferences: Sequence[SpotPreference],
    *,
    settings: Settings,
) -> list[str]:
    cfg = settings.analysis.insights
    insights: list[str] = []

    # Wave size on the user's best days.
    excellent_heights = [s.conditions.wave_height for s in excellent if s.conditions.wave_height is not None]
    if excellent_heights:
        insights.append(f"You excel in waves around {mean(excellent_heights):.1f}m on average")

    # Progression: the latest window against the earliest sessions.
    ordered = chronological(sessions)
    ratings = [float(s.rating) for s in ordered if s.rating is not None]
    window = cfg.progression_window
    recent = ratings[-window:]
    earlier = ratings[: max(0, min(window, len(ratings) - window))]
    if recent and earlier:
        delta = mean(recent) - mean(earlier)
        if delta > cfg.progression_min_delta:
            insights.append(f"Your level is improving: +{delta:.1f} points over your recent sessions")

    c = consistency(ratings)
    if c is not None:
        if c > cfg.consistent_above:
            insights.append("You are very consistent in your performances")
        elif c < cfg.variable_below:
            insights.append("Your performances vary a lot with the conditions")

    if spot_preferences:
        fav = spot_preferences[0]
        insights.append(
            f"Your favourite spot is {display_spot(fav.name)} "
            f"({fav.average_rating:.1f}/10 over {fav.sessions_count} good sessions)"
        )

    return insights
