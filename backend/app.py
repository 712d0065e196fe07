"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.envelope import register_exception_handlers
from api.v1 import router as v1_router
from core import configure_logging, settings
from services import MediaStorage, MediaStorageConfig, RateLimitMiddleware, get_rate_limiter

RATE_LIMITED_USER_PATHS = ("/users/register", "/users/login", "/users/refresh-token")


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    application = FastAPI(title=settings.app_name, version="0.1.0")
    application.state.media_storage = MediaStorage(MediaStorageConfig.from_settings(settings))

    application.add_middleware(
        RateLimitMiddleware,
        limiter_factory=get_rate_limiter,
        limited_paths=[f"{settings.api_prefix}{path}" for path in RATE_LIMITED_USER_PATHS],
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(application)
    application.include_router(v1_router, prefix=settings.api_prefix)

    @application.get("/healthz", include_in_schema=False)
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return application
