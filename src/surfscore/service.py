"""
SurfScore service.

The single entry point used by the API and the CLI. It wires the pure core (normalizer,
analyzer, scorer) to its collaborators:
- profile and feedback stores (`ProfileStore`)
- the spot catalog
- an optional marine weather client
- a clock (injected so tests and demos are deterministic)

Concurrency: every operation touching one user's profile or feedback state runs under
that user's lock, so an analysis and a feedback update for the same user never interleave.
Different users never block each other.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from surfscore.analysis.preferences import analyze_preferences
from surfscore.config.overrides import apply_settings_overrides
from surfscore.config.settings import Settings
from surfscore.core.cache import FileCache
from surfscore.core.env import resolve_project_path
from surfscore.core.time import utc_now
from surfscore.domain.errors import (
    InvalidConditionsError,
    ProfileNotFoundError,
    SurfScoreError,
    WeatherUnavailableError,
)
from surfscore.domain.models import ConditionSet, FeedbackResult, FeedbackState, Prediction, UserProfile
from surfscore.ingestion.marine_client import MarineWeatherClient
from surfscore.scoring.predict import REQUIRED_CONDITIONS, prediction_confidence, predict_session_quality
from surfscore.sessions.normalizer import normalize_sessions
from surfscore.spots.catalog import SpotCatalog, load_spot_catalog
from surfscore.store.profile_store import InMemoryProfileStore, ProfileStore, build_store

logger = logging.getLogger(__name__)


def _as_conditions(conditions: ConditionSet | Mapping[str, Any]) -> ConditionSet:
    if isinstance(conditions, ConditionSet):
        return conditions
    return ConditionSet.model_validate(dict(conditions))


class SurfScoreService:
    def __init__(
        self,
        *,
        settings: Settings,
        spots: SpotCatalog,
        profiles: ProfileStore[UserProfile] | None = None,
        feedback: ProfileStore[FeedbackState] | None = None,
        weather: MarineWeatherClient | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings
        self.spots = spots
        self.profiles: ProfileStore[UserProfile] = profiles if profiles is not None else InMemoryProfileStore()
        self.feedback: ProfileStore[FeedbackState] = feedback if feedback is not None else InMemoryProfileStore()
        self.weather = weather
        self._clock = clock
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock

    def _feedback_factor(self, user_id: str) -> float:
        state = self.feedback.get(user_id)
        return state.factor if state is not None else 1.0

    # --- core operations -------------------------------------------------------------

    def analyze_preferences(self, user_id: str, raw_sessions: Iterable[Any]) -> UserProfile:
        """Normalize raw sessions, learn the profile and store it (replacing any previous one)."""
        sessions = normalize_sessions(raw_sessions, tz=self.settings.app.timezone)
        with self._lock_for(user_id):
            profile = analyze_preferences(
                user_id,
                sessions,
                settings=self.settings,
                now=self._clock(),
                feedback_factor=self._feedback_factor(user_id),
            )
            self.profiles.put(user_id, profile)
        return profile

    def get_profile(self, user_id: str) -> UserProfile:
        profile = self.profiles.get(user_id)
        if profile is None:
            raise ProfileNotFoundError(f"No profile for user {user_id!r}", user_id=user_id)
        return profile

    def predict_session_quality(
        self,
        user_id: str,
        conditions: ConditionSet | Mapping[str, Any],
        spot: str,
        *,
        settings_overrides: Mapping[str, Any] | None = None,
    ) -> Prediction:
        settings = apply_settings_overrides(self.settings, settings_overrides)
        candidate = _as_conditions(conditions)
        spot_info = self.spots.require(spot)
        with self._lock_for(user_id):
            profile = self.get_profile(user_id)
        return predict_session_quality(profile, candidate, spot_info, settings=settings)

    def record_feedback(
        self, user_id: str, session_id: str, actual_rating: float, predicted_score: float
    ) -> FeedbackResult:
        """Compare a prediction with the rating the user actually gave and adapt confidence.

        The stored profile keeps `reliability = base reliability x feedback factor`, so the
        adjusted reliability applies to every later prediction without re-analysis.
        """
        cfg = self.settings.scoring.feedback
        error = abs(float(actual_rating) - float(predicted_score))

        with self._lock_for(user_id):
            profile = self.get_profile(user_id)
            state = self.feedback.get(user_id) or FeedbackState(user_id=user_id)

            if error > cfg.large_error:
                delta = -cfg.large_penalty
            elif error > cfg.moderate_error:
                delta = -cfg.moderate_penalty
            else:
                delta = cfg.accurate_bonus
            new_factor = max(cfg.min_factor, min(cfg.max_factor, state.factor + delta))

            samples = state.samples + 1
            new_state = FeedbackState(
                user_id=user_id,
                samples=samples,
                mean_absolute_error=state.mean_absolute_error + (error - state.mean_absolute_error) / samples,
                factor=new_factor,
                last_session_id=session_id,
            )
            base_reliability = profile.reliability_score / state.factor if state.factor > 0 else profile.reliability_score
            reliability = max(0.0, min(1.0, base_reliability * new_factor))
            self.profiles.put(user_id, profile.model_copy(update={"reliability_score": reliability}))
            self.feedback.put(user_id, new_state)

        logger.info(
            "Recorded feedback user_id=%s session_id=%s error=%.2f factor=%.2f",
            user_id,
            session_id,
            error,
            new_factor,
        )
        return FeedbackResult(
            user_id=user_id,
            session_id=session_id,
            prediction_error=round(error, 2),
            new_confidence=prediction_confidence(reliability, profile.total_sessions, settings=self.settings),
        )

    # --- composite operations ----------------------------------------------------------

    def analyze_and_predict(
        self, user_id: str, raw_sessions: Iterable[Any], conditions: ConditionSet | Mapping[str, Any], spot: str
    ) -> tuple[UserProfile, Prediction]:
        # Validate inputs that do not depend on the analysis before storing a new profile.
        candidate = _as_conditions(conditions)
        missing = candidate.missing(*REQUIRED_CONDITIONS)
        if missing:
            raise InvalidConditionsError(
                f"Candidate conditions are missing required fields: {', '.join(missing)}", missing=missing
            )
        self.spots.require(spot)
        profile = self.analyze_preferences(user_id, raw_sessions)
        return profile, self.predict_session_quality(user_id, candidate, spot)

    def predict_with_weather(self, user_id: str, spot: str, at: datetime | None = None) -> Prediction:
        """Fetch forecast conditions for the spot, then predict."""
        if self.weather is None:
            raise WeatherUnavailableError("No weather provider is configured")
        spot_info = self.spots.require(spot)
        self.get_profile(user_id)

        when = at or self._clock()
        conditions = self.weather.get_conditions(
            lat=spot_info.coordinates.lat, lon=spot_info.coordinates.lon, at=when
        )
        missing = conditions.missing(*REQUIRED_CONDITIONS)
        if missing:
            raise WeatherUnavailableError(
                f"Forecast for {spot_info.name} lacks {', '.join(missing)} at {when.isoformat()}",
                spot=spot_info.name,
                missing=missing,
            )
        return self.predict_session_quality(user_id, conditions, spot_info.name)

    def delete_user(self, user_id: str) -> dict[str, bool]:
        with self._lock_for(user_id):
            deleted = {"profile": self.profiles.delete(user_id), "feedback": self.feedback.delete(user_id)}
        with self._locks_guard:
            self._locks.pop(user_id, None)
        return deleted

    def batch_analyze(self, users: Sequence[tuple[str, Iterable[Any]]]) -> dict[str, Any]:
        """Analyze several users; one user's failure never aborts the batch."""
        results: dict[str, Any] = {}
        errors: dict[str, Any] = {}
        for user_id, raw_sessions in users:
            sessions = list(raw_sessions)
            try:
                profile = self.analyze_preferences(user_id, sessions)
            except SurfScoreError as exc:
                errors[user_id] = exc.as_detail()
                continue
            results[user_id] = {"profile": profile.model_dump(mode="json"), "sessions_analyzed": len(sessions)}
        return {"processed": len(results), "failed": len(errors), "results": results, "errors": errors}

    def stats(self) -> dict[str, Any]:
        profiles = [p for p in (self.profiles.get(uid) for uid in self.profiles.keys()) if p is not None]
        total_sessions = sum(p.total_sessions for p in profiles)

        spot_counts: Counter[str] = Counter()
        for p in profiles:
            for sp in p.spot_preferences:
                spot_counts[sp.name] += sp.sessions_count

        n = len(profiles)
        return {
            "total_users": n,
            "total_sessions": total_sessions,
            "average_sessions_per_user": round(total_sessions / n, 1) if n else 0.0,
            "reliability_distribution": {
                "high": sum(1 for p in profiles if p.reliability_score >= 0.8),
                "medium": sum(1 for p in profiles if 0.5 <= p.reliability_score < 0.8),
                "low": sum(1 for p in profiles if p.reliability_score < 0.5),
            },
            "top_spots": [
                {"name": name, "sessions": count}
                for name, count in sorted(spot_counts.items(), key=lambda kv: (-kv[1], kv[0]))[:5]
            ],
            "average_optimal_conditions": {
                "wave_height": round(sum(p.wave_preferences.optimal_height.value for p in profiles) / n, 1) if n else None,
                "wind_speed": round(sum(p.wind_preferences.optimal_speed.value for p in profiles) / n, 1) if n else None,
            },
            "last_update": max((p.last_updated for p in profiles), default=None),
        }

    def compare_users(self, user_ids: Sequence[str]) -> dict[str, Any]:
        comparison: dict[str, dict[str, Any]] = {}
        not_found: list[str] = []
        for uid in dict.fromkeys(user_ids):
            profile = self.profiles.get(uid)
            if profile is None:
                not_found.append(uid)
                continue
            favorite = profile.favorite_spot
            comparison[uid] = {
                "sessions": profile.total_sessions,
                "reliability": round(profile.reliability_score * 100),
                "optimal_wave_height": round(profile.wave_preferences.optimal_height.value, 2),
                "optimal_wind_speed": round(profile.wind_preferences.optimal_speed.value, 1),
                "favorite_spot": favorite.name if favorite else None,
                "insights": profile.behavioral_insights[:2],
            }

        if len(comparison) < 2:
            raise ProfileNotFoundError(
                "At least two analyzed users are required for a comparison", not_found=not_found
            )

        def leader(key: str) -> str:
            # First listed user wins ties.
            return max(comparison, key=lambda uid: comparison[uid][key])

        return {
            "comparison": comparison,
            "not_found": not_found,
            "analysis": {
                "most_experienced": leader("sessions"),
                "most_reliable": leader("reliability"),
                "biggest_wave_rider": leader("optimal_wave_height"),
            },
        }


def build_service(settings: Settings) -> SurfScoreService:
    """Wire a service from settings (stores, spot catalog, cached marine client)."""
    cache = FileCache(
        resolve_project_path(settings.cache.dir),
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )
    return SurfScoreService(
        settings=settings,
        spots=load_spot_catalog(settings.spots.path),
        profiles=build_store(settings, UserProfile, namespace="profiles"),
        feedback=build_store(settings, FeedbackState, namespace="feedback"),
        weather=MarineWeatherClient(settings, cache),
    )
