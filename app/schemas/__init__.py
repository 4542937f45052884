"""Pydantic request/response schemas for the API."""

from app.schemas.authorization import (
    AuthorizationCheckRequest,
    AuthorizationCheckResponse,
    BatchAuthorizationCheckRequest,
)
from app.schemas.health import HealthResponse
from app.schemas.permission import (
    PermissionCreate,
    PermissionResponse,
    PermissionUpdate,
)
from app.schemas.role import RoleCreateRequest, RoleResponse, RoleUpdate
from app.schemas.user_role import UserRoleAssign, UserRoleResponse

__all__ = [
    "AuthorizationCheckRequest",
    "AuthorizationCheckResponse",
    "BatchAuthorizationCheckRequest",
    "HealthResponse",
    "PermissionCreate",
    "PermissionResponse",
    "PermissionUpdate",
    "RoleCreateRequest",
    "RoleResponse",
    "RoleUpdate",
    "UserRoleAssign",
    "UserRoleResponse",
]
