"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure onto app.state (permission cache,
repositories, authorization, rate limiter, security-event sink, telemetry).
Routes and middleware read these from app.state at request time.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.application.services import AuthorizationService, BehaviorTracker, RateLimitService
from app.core.config import Settings, get_settings
from app.domain.value_objects import RateLimitTier

logger = logging.getLogger(__name__)


def _build_repositories(app: FastAPI, settings: Settings) -> None:
    """Attach role, permission and assignment repositories for the configured backend."""
    if settings.database_backend == "memory":
        from app.infrastructure.memory import (
            InMemoryPermissionRepository,
            InMemoryRoleAssignmentRepository,
            InMemoryRoleRepository,
        )

        app.state.firestore_client = None
        app.state.role_repo = InMemoryRoleRepository()
        app.state.permission_repo = InMemoryPermissionRepository()
        app.state.assignment_repo = InMemoryRoleAssignmentRepository()
        logger.warning("Using in-memory RBAC store (data is lost on restart)")
        return

    from app.infrastructure.firebase import init_firebase
    from app.infrastructure.firebase.repositories import (
        FirestorePermissionRepository,
        FirestoreRoleAssignmentRepository,
        FirestoreRoleRepository,
    )

    client = init_firebase(settings)
    if client is None:
        raise RuntimeError(
            "Firestore backend selected but the client could not be initialized; "
            "check FIREBASE_SERVICE_ACCOUNT_KEY / FIREBASE_SERVICE_ACCOUNT_PATH"
        )
    app.state.firestore_client = client
    app.state.role_repo = FirestoreRoleRepository(client)
    app.state.permission_repo = FirestorePermissionRepository(client)
    app.state.assignment_repo = FirestoreRoleAssignmentRepository(client)


async def _build_cache(app: FastAPI, settings: Settings) -> None:
    """Attach the permission cache: Redis when enabled and reachable, else in-process."""
    from app.infrastructure.cache import CacheService, MemoryCacheService

    app.state.redis_cache = None
    if settings.redis_enabled:
        redis_cache = CacheService(settings=settings)
        await redis_cache.connect()
        app.state.redis_cache = redis_cache
        if redis_cache.is_available():
            app.state.cache = redis_cache
            return
        logger.warning("Redis unavailable; falling back to in-process permission cache")
    app.state.cache = MemoryCacheService(max_entries=settings.permission_cache_max_entries)


def _build_rate_limiter(app: FastAPI, settings: Settings) -> None:
    """Attach counter store, security-event sink, tiered limiter and behavior tracker."""
    from app.infrastructure.counters import MemoryCounterStore, RedisCounterStore
    from app.infrastructure.services import (
        FirestoreSecurityEventSink,
        LoggingSecurityEventSink,
    )

    redis_cache = app.state.redis_cache
    if redis_cache is not None and redis_cache.is_available():
        app.state.counter_store = RedisCounterStore(redis_cache.redis)
    else:
        app.state.counter_store = MemoryCounterStore()

    if app.state.firestore_client is not None:
        app.state.security_sink = FirestoreSecurityEventSink(app.state.firestore_client)
    else:
        app.state.security_sink = LoggingSecurityEventSink()

    tiers = [RateLimitTier.from_dict(t) for t in settings.rate_limit_tier_table]
    app.state.rate_limiter = RateLimitService(
        store=app.state.counter_store,
        tiers=tiers,
        sink=app.state.security_sink,
        store_timeout_seconds=settings.rate_limit_store_timeout_seconds,
    )
    app.state.behavior_tracker = (
        BehaviorTracker(max_entries=settings.rate_limit_adaptive_max_entries)
        if settings.rate_limit_adaptive_enabled
        else None
    )
    logger.info(
        "Rate limiter ready: %s tier(s), counter store %s",
        len(tiers),
        type(app.state.counter_store).__name__,
    )


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: repositories (Firestore or memory), permission cache
    (Redis or in-process), authorization service, rate limiter, telemetry
    (if enabled). Shutdown order: drain pending security events, cache
    disconnect, Firestore client close, telemetry shutdown.
    """
    settings = get_settings()

    # ---- Startup ----
    _build_repositories(app, settings)
    await _build_cache(app, settings)
    app.state.authorization = AuthorizationService(
        role_repo=app.state.role_repo,
        permission_repo=app.state.permission_repo,
        assignment_repo=app.state.assignment_repo,
        cache=app.state.cache,
        cache_ttl=settings.cache_ttl_permissions,
        cache_timeout_seconds=settings.store_timeout_seconds,
    )
    _build_rate_limiter(app, settings)

    if settings.telemetry_enabled:
        from app.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig.from_settings(settings)
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)
        if app.state.redis_cache is not None and app.state.redis_cache.is_available():
            telemetry.instrument_redis()
        logger.info("Telemetry initialized")

    yield

    # ---- Shutdown ----
    await app.state.rate_limiter.drain()

    if getattr(app.state, "redis_cache", None) is not None:
        await app.state.redis_cache.disconnect()
        logger.info("Cache disconnected")

    if getattr(app.state, "firestore_client", None) is not None:
        from app.infrastructure.firebase import close_firebase

        await close_firebase()
        app.state.firestore_client = None

    from app.shared.telemetry.telemetry import get_telemetry, set_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
        logger.info("Telemetry shutdown complete")
