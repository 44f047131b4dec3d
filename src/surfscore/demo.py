"""
Bundled demo users.

Three realistic surfers from the Basque coast, used by `/api/ai/demo/{profile}`, the
`surfscore demo` command and the tests:
- beginner: small waves, light wind, mostly Anglet
- intermediate: versatile, chest-to-head high, Hossegor regular
- expert: overhead swell, tolerates strong wind
"""

from __future__ import annotations

from typing import Any

# Forecast used by every demo run: tomorrow at Biarritz.
DEMO_SPOT = "Biarritz"
DEMO_CONDITIONS: dict[str, Any] = {
    "waveHeight": 1.8,
    "waveDirection": "NW",
    "windSpeed": 15,
    "windDirection": "NE",
    "wavePeriod": 11,
    "tideHeight": 2.0,
}


def _session(date: str, spot: str, rating: int, wave: tuple[float, str, float], wind: tuple[float, str], tide: float):
    height, wave_dir, period = wave
    speed, wind_dir = wind
    return {
        "date": date,
        "spot": spot,
        "rating": rating,
        "conditions": {
            "waveHeight": height,
            "waveDirection": wave_dir,
            "windSpeed": speed,
            "windDirection": wind_dir,
            "wavePeriod": period,
            "tideHeight": tide,
        },
    }


DEMO_USERS: dict[str, dict[str, Any]] = {
    "beginner": {
        "user_id": "beginner_001",
        "sessions": [
            _session("2025-01-15T09:00:00Z", "Anglet", 7, (0.8, "W", 8), (8, "NE"), 1.2),
            _session("2025-01-20T14:00:00Z", "Anglet", 8, (1.0, "SW", 9), (6, "E"), 1.5),
            _session("2025-01-25T10:30:00Z", "Biarritz", 6, (1.2, "W", 7), (12, "NE"), 0.8),
            _session("2025-02-01T08:00:00Z", "Anglet", 9, (0.9, "SW", 10), (5, "E"), 1.8),
        ],
    },
    "intermediate": {
        "user_id": "intermediate_001",
        "sessions": [
            _session("2025-01-10T07:00:00Z", "Hossegor", 8, (1.5, "NW", 11), (15, "NE"), 2.1),
            _session("2025-01-15T16:00:00Z", "Biarritz", 7, (1.8, "W", 9), (18, "E"), 1.0),
            _session("2025-01-22T11:00:00Z", "Hossegor", 9, (1.6, "NW", 12), (12, "NE"), 1.7),
            _session("2025-01-28T13:30:00Z", "Anglet", 6, (1.2, "SW", 8), (22, "W"), 0.5),
            _session("2025-02-05T09:15:00Z", "Hossegor", 8, (1.7, "NW", 10), (14, "NE"), 1.9),
        ],
    },
    "expert": {
        "user_id": "expert_001",
        "sessions": [
            _session("2025-01-08T06:30:00Z", "Biarritz", 9, (2.5, "NW", 14), (20, "NE"), 2.8),
            _session("2025-01-12T07:45:00Z", "Hossegor", 8, (2.8, "W", 13), (25, "E"), 2.2),
            _session("2025-01-18T15:00:00Z", "Biarritz", 10, (3.2, "NW", 15), (18, "NE"), 3.1),
            _session("2025-01-24T08:00:00Z", "Hossegor", 7, (2.1, "W", 11), (28, "SE"), 1.5),
            _session("2025-01-30T12:00:00Z", "Biarritz", 9, (2.7, "NW", 13), (16, "NE"), 2.5),
            _session("2025-02-03T14:30:00Z", "Hossegor", 8, (2.4, "NW", 12), (22, "E"), 2.0),
        ],
    },
}


def demo_profiles() -> list[str]:
    return sorted(DEMO_USERS)


def get_demo_user(profile: str) -> dict[str, Any]:
    """Return a copy of a demo user (`{"user_id", "sessions"}`); raises KeyError for unknown names."""
    user = DEMO_USERS[profile.strip().lower()]
    return {"user_id": user["user_id"], "sessions": [dict(s) for s in user["sessions"]]}
