"""FastAPI application entry point for the rental-access service.

Wiring only: logging, lifespan, error mapping, middleware and the v1 router.
RBAC resolution lives in app.application.services; backends are attached to
app.state by app.core.lifespan.

Settings are resolved inside create_app() so tests can set env (and clear
the get_settings cache) before building an app.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api.v1 import api_router
from app.core.config import Settings, get_settings
from app.core.exception_handlers import register_exception_handlers
from app.core.lifespan import create_lifespan
from app.core.limiter import limiter
from app.middleware import RateLimitMiddleware, RequestIDMiddleware, TimeoutMiddleware
from app.shared.telemetry.logging import setup_logging


def _install_middleware(app: FastAPI, settings: Settings) -> None:
    """Last added is outermost: timeout, request id, tiered rate limit, CORS.

    The rate limiter sits inside the request-id layer so its rejections are
    logged with the request id, and outside CORS so a rejected preflight
    never reaches the routes.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            path_prefixes=settings.rate_limit_path_prefixes,
            identity_fields=settings.rate_limit_identity_field_names,
        )
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    # Write throttling for the RBAC management routes (see app.core.limiter).
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_exception_handlers(app)

    _install_middleware(app, settings)
    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
