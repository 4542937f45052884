"""Role API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RoleCreateRequest(BaseModel):
    """Request body for creating a role."""

    code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=500)
    level: int = Field(default=0, ge=0, le=1000)
    permission_codes: list[str] = Field(default_factory=list, max_length=100)


class RoleUpdate(BaseModel):
    """Request body for updating a role (partial)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=500)
    level: int | None = Field(default=None, ge=0, le=1000)
    is_active: bool | None = None


class RolePermissionAssign(BaseModel):
    """Request body for assigning a permission to a role."""

    permission_id: str = Field(..., min_length=1)


class RolePermissionsReplace(BaseModel):
    """Request body for replacing a role's permission set."""

    permission_ids: list[str] = Field(default_factory=list, max_length=500)


class RoleResponse(BaseModel):
    """Role list/detail response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    code: str
    name: str
    description: str | None
    is_system: bool
    is_active: bool
    level: int
    permission_ids: list[str]
    created_at: datetime | None = None


class RolePermissionAssignedResponse(BaseModel):
    """Response for POST /{role_id}/permissions (assignment created)."""

    role_id: str
    permission_id: str
