"""
Domain errors.

Every failure the analyzer, the scorer or the service can report is a `SurfScoreError`.
They subclass `ValueError` (bad input, not a crash) and carry what the HTTP layer needs
to build a 4xx response: a stable `code`, a `status_code` and a corrective `suggestion`.
"""

from __future__ import annotations

from typing import Any


class SurfScoreError(ValueError):
    """Base class for expected, user-facing failures."""

    code = "SURFSCORE_ERROR"
    status_code = 400
    suggestion = ""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def as_detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.suggestion:
            detail["suggestion"] = self.suggestion
        if self.context:
            detail["context"] = self.context
        return detail


class InsufficientDataError(SurfScoreError):
    code = "INSUFFICIENT_DATA"
    status_code = 422
    suggestion = "Record and rate more sessions (with wave height and wind speed) before analysis."


class NoQualifyingSessionsError(SurfScoreError):
    code = "NO_QUALIFYING_SESSIONS"
    status_code = 422
    suggestion = "At least one session must be rated 6/10 or higher to learn preferences."


class ProfileNotFoundError(SurfScoreError):
    code = "PROFILE_NOT_FOUND"
    status_code = 404
    suggestion = "Analyze the user's sessions first."


class UnknownSpotError(SurfScoreError):
    code = "UNKNOWN_SPOT"
    status_code = 404
    suggestion = "Use one of the spots listed by /api/spots."


class InvalidConditionsError(SurfScoreError):
    code = "INVALID_CONDITIONS"
    status_code = 400
    suggestion = "Provide at least waveHeight and windSpeed for the candidate conditions."


class WeatherUnavailableError(SurfScoreError):
    code = "WEATHER_UNAVAILABLE"
    status_code = 502
    suggestion = "Retry later or send the forecast conditions explicitly to /api/ai/predict."
