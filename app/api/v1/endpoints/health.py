"""Health check endpoint. No auth; used for liveness probes."""

from fastapi import APIRouter, Request

from app.core.config import get_settings
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Return ok plus the backends wired at startup."""
    state = request.app.state
    cache = getattr(state, "cache", None)
    if cache is None or not cache.is_available():
        cache_status = "unavailable"
    elif cache is getattr(state, "redis_cache", None):
        cache_status = "redis"
    else:
        cache_status = "memory"
    counter_store = getattr(state, "counter_store", None)
    return HealthResponse(
        database_backend=get_settings().database_backend,
        cache=cache_status,
        counter_store=type(counter_store).__name__ if counter_store else "none",
    )
