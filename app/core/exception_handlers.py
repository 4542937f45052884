"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to HTTP responses. Permission denials are logged with their
resource/action server-side; the response body stays generic.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.domain.enums import SecurityEventType, Severity
from app.domain.exceptions import (
    AuthorizationException,
    RentalAccessException,
    StoreUnavailableException,
)
from app.domain.value_objects import SecurityEvent
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status when applicable
_ERROR_CODE_STATUS: dict[str, int] = {
    "RESOURCE_NOT_FOUND": 404,
    "AUTHENTICATION_ERROR": 401,
    "PERMISSION_DENIED": 403,
    "VALIDATION_ERROR": 400,
    "DUPLICATE_ASSIGNMENT": 400,
    "ROLE_IN_USE": 409,
    "SYSTEM_ROLE_PROTECTED": 400,
    "STORE_UNAVAILABLE": 503,
    "COUNTER_STORE_ERROR": 503,
}


def _rental_access_exception_handler(
    request: Request, exc: RentalAccessException
) -> JSONResponse:
    """Return JSON from RentalAccessException.to_dict() with appropriate status code."""
    status = _ERROR_CODE_STATUS.get(exc.error_code, 400)
    return JSONResponse(
        status_code=status,
        content=exc.to_dict(),
    )


async def _authorization_exception_handler(
    request: Request, exc: AuthorizationException
) -> JSONResponse:
    """Return 403 with a generic body; record the denial on the security sink."""
    logger.warning(
        "Permission denied on %s %s: %s:%s",
        request.method,
        request.url.path,
        exc.resource,
        exc.action,
    )
    sink = getattr(request.app.state, "security_sink", None)
    if sink is not None:
        event = SecurityEvent(
            type=SecurityEventType.PERMISSION_DENIED,
            timestamp=utc_now(),
            severity=Severity.LOW,
            details={
                "endpoint": request.url.path,
                "method": request.method,
                "resource": exc.resource,
                "action": exc.action,
            },
        )
        try:
            await sink.emit(event)
        except Exception:
            logger.exception("Failed to emit permission-denied event")
    return JSONResponse(status_code=403, content=exc.to_dict())


def _store_unavailable_handler(
    request: Request, exc: StoreUnavailableException
) -> JSONResponse:
    """Return 503; the low-level reason is logged, never returned."""
    logger.error(
        "Store unavailable during %s: %s", exc.details.get("operation"), exc.reason
    )
    return JSONResponse(status_code=503, content=exc.to_dict())


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. The most specific domain handlers are
    looked up first by Starlette (exception MRO), so AuthorizationException
    and StoreUnavailableException get their own handling.
    """
    app.add_exception_handler(RentalAccessException, _rental_access_exception_handler)
    app.add_exception_handler(AuthorizationException, _authorization_exception_handler)
    app.add_exception_handler(StoreUnavailableException, _store_unavailable_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
