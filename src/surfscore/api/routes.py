"""
API routes.

Endpoints:
- GET  `/api/status`, `/api/spots`, `/api/settings`: engine metadata
- POST `/api/ai/analyze`: learn a user's profile from rated sessions
- POST `/api/ai/predict`: personalized prediction for forecast conditions at a spot
- POST `/api/ai/analyze-and-predict`, `/api/ai/predict-with-weather`, `/api/ai/feedback`
- POST `/api/ai/batch-analyze`, `/api/ai/compare-users`; GET `/api/ai/stats`
- GET/DELETE `/api/ai/users/{user_id}...`; GET `/api/ai/demo/{profile}`

Domain errors map to their own status code with `{code, message, suggestion}`; any other
`ValueError` is a 400 `VALIDATION_ERROR`.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache

from fastapi import APIRouter, HTTPException

from surfscore.config.overrides import overridable_paths
from surfscore.config.settings import get_settings
from surfscore.demo import DEMO_CONDITIONS, DEMO_SPOT, demo_profiles, get_demo_user
from surfscore.domain.errors import SurfScoreError
from surfscore.domain.models import (
    AnalyzeAndPredictRequest,
    AnalyzeRequest,
    BatchAnalyzeRequest,
    CompareUsersRequest,
    FeedbackRequest,
    FeedbackResult,
    Prediction,
    PredictRequest,
    PredictWithWeatherRequest,
    UserProfile,
)
from surfscore.service import SurfScoreService, build_service

router = APIRouter()

API_VERSION = "0.1.0"


@lru_cache
def _service() -> SurfScoreService:
    return build_service(get_settings())


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except SurfScoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail()) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}) from e


@router.get("/api/status")
def get_status() -> dict:
    service = _service()
    return {
        "status": "ok",
        "name": service.settings.app.name,
        "version": API_VERSION,
        "profiles": len(service.profiles.keys()),
        "spots": len(service.spots),
        "weather_provider": service.weather is not None,
    }


@router.get("/api/spots")
def get_spots() -> dict:
    """Return the spot catalog (name, coordinates, optimal wind/swell directions)."""
    return {"spots": [s.model_dump(mode="json") for s in _service().spots]}


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return the analysis and scoring knobs the engine runs with."""
    settings = _service().settings
    return {
        "analysis": settings.analysis.model_dump(mode="json"),
        "scoring": settings.scoring.model_dump(mode="json"),
        "overridable": overridable_paths(),
    }


@router.post("/api/ai/analyze")
def post_analyze(req: AnalyzeRequest) -> dict:
    with _translate_errors():
        profile = _service().analyze_preferences(req.user_id, req.sessions)
    return {
        "user_id": req.user_id,
        "sessions_received": len(req.sessions),
        "profile": profile.model_dump(mode="json"),
    }


@router.post("/api/ai/predict", response_model=Prediction)
def post_predict(req: PredictRequest) -> Prediction:
    with _translate_errors():
        return _service().predict_session_quality(
            req.user_id, req.conditions, req.spot, settings_overrides=req.settings_overrides
        )


@router.post("/api/ai/analyze-and-predict")
def post_analyze_and_predict(req: AnalyzeAndPredictRequest) -> dict:
    with _translate_errors():
        profile, prediction = _service().analyze_and_predict(req.user_id, req.sessions, req.conditions, req.spot)
    return {"profile": profile.model_dump(mode="json"), "prediction": prediction.model_dump(mode="json")}


@router.post("/api/ai/predict-with-weather", response_model=Prediction)
def post_predict_with_weather(req: PredictWithWeatherRequest) -> Prediction:
    with _translate_errors():
        return _service().predict_with_weather(req.user_id, req.spot, req.at)


@router.post("/api/ai/feedback", response_model=FeedbackResult)
def post_feedback(req: FeedbackRequest) -> FeedbackResult:
    with _translate_errors():
        return _service().record_feedback(req.user_id, req.session_id, req.actual_rating, req.predicted_score)


@router.post("/api/ai/batch-analyze")
def post_batch_analyze(req: BatchAnalyzeRequest) -> dict:
    with _translate_errors():
        return _service().batch_analyze([(u.user_id, u.sessions) for u in req.users])


@router.post("/api/ai/compare-users")
def post_compare_users(req: CompareUsersRequest) -> dict:
    with _translate_errors():
        return _service().compare_users(req.user_ids)


@router.get("/api/ai/stats")
def get_stats() -> dict:
    return {"stats": _service().stats()}


@router.get("/api/ai/users/{user_id}/profile", response_model=UserProfile)
def get_user_profile(user_id: str) -> UserProfile:
    with _translate_errors():
        return _service().get_profile(user_id)


@router.delete("/api/ai/users/{user_id}")
def delete_user(user_id: str) -> dict:
    deleted = _service().delete_user(user_id)
    return {"user_id": user_id, "deleted": deleted}


@router.get("/api/ai/demo/{profile}")
def get_demo(profile: str) -> dict:
    """Analyze a bundled demo surfer and predict tomorrow at Biarritz."""
    try:
        user = get_demo_user(profile)
    except KeyError as e:
        raise HTTPException(
            status_code=404,
            detail={
                "code": "UNKNOWN_DEMO_PROFILE",
                "message": f"Unknown demo profile {profile!r}",
                "suggestion": f"Use one of: {', '.join(demo_profiles())}",
            },
        ) from e

    with _translate_errors():
        analyzed, prediction = _service().analyze_and_predict(
            user["user_id"], user["sessions"], DEMO_CONDITIONS, DEMO_SPOT
        )
    return {
        "demo": profile,
        "user_id": user["user_id"],
        "profile": analyzed.model_dump(mode="json"),
        "prediction": prediction.model_dump(mode="json"),
    }
