"""User-role assignment API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserRoleAssign(BaseModel):
    """Request body for assigning a role to a user."""

    role_id: str = Field(..., min_length=1)
    is_primary: bool = False
    expires_at: datetime | None = None


class BulkRoleAssign(BaseModel):
    """Request body for assigning one role to many users."""

    user_ids: list[str] = Field(..., min_length=1, max_length=500)
    role_id: str = Field(..., min_length=1)
    expires_at: datetime | None = None


class UserRoleResponse(BaseModel):
    """Assignment created by POST /users/{user_id}/roles."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    role_id: str
    tenant_id: str
    is_primary: bool
    assigned_by: str | None
    assigned_at: datetime | None
    expires_at: datetime | None
