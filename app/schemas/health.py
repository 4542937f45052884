"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness plus backend status)."""

    status: str = Field(default="ok", description="Service status")
    database_backend: str = Field(..., description="firestore or memory")
    cache: str = Field(..., description="redis, memory or unavailable")
    counter_store: str = Field(..., description="Rate-limit counter store in use")
