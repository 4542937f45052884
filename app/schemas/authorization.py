"""Authorization check API schemas."""

from typing import Any

from pydantic import BaseModel, Field


class PermissionCheckItem(BaseModel):
    """One resource/action pair."""

    resource: str = Field(..., min_length=1, max_length=100)
    action: str = Field(..., min_length=1, max_length=64)


class AuthorizationCheckRequest(PermissionCheckItem):
    """Check one permission; entity carries the target's attributes for conditions."""

    entity: dict[str, Any] | None = None


class BatchAuthorizationCheckRequest(BaseModel):
    """Check several permissions against the same target entity."""

    checks: list[PermissionCheckItem] = Field(default_factory=list, max_length=100)
    entity: dict[str, Any] | None = None


class AuthorizationCheckResponse(BaseModel):
    """Result of an authorization check."""

    allowed: bool
