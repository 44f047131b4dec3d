"""
FastAPI application.

`create_app()` builds the app and `app` is the module-level instance served by
`uvicorn surfscore.api.app:app`. Routes live in `surfscore.api.routes`; all analysis and
scoring logic lives behind `surfscore.service`.

CORS is meant for local mobile/web frontends during development:
- `SURFSCORE_CORS_ORIGINS`: comma-separated explicit origins
- `SURFSCORE_CORS_ALLOW_LOCAL=0`: drop the default localhost allowance
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from surfscore.core.logging import configure_logging

from .routes import API_VERSION, router

_LOCAL_ORIGIN_REGEX = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"


def _cors_origins() -> tuple[list[str], str | None]:
    origins = [s.strip() for s in os.getenv("SURFSCORE_CORS_ORIGINS", "").split(",") if s.strip()]
    allow_local = os.getenv("SURFSCORE_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes", "y"}
    if origins or not allow_local:
        return origins, None
    return [], _LOCAL_ORIGIN_REGEX


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(title="SurfScore API", version=API_VERSION)

    origins, origin_regex = _cors_origins()
    if origins or origin_regex:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_origin_regex=origin_regex,
            allow_credentials=False,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["*"],
        )

    application.include_router(router)
    return application


app = create_app()
