"""RBAC service dependencies and the require_permission guard (composition root).

Repositories, cache and the authorization service are created once in the
app lifespan (app.state); the per-request services here only bind them.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from app.application.dtos.principal import PrincipalContext
from app.application.services import (
    AuthorizationService,
    PermissionService,
    RoleAssignmentService,
    RoleService,
)

from .auth import get_current_principal


def get_authorization_service(request: Request) -> AuthorizationService:
    """Shared AuthorizationService (permission cache lives on it)."""
    return request.app.state.authorization


def get_role_service(
    request: Request,
    authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> RoleService:
    """Role service for role CRUD and role-permission grants."""
    state = request.app.state
    return RoleService(
        role_repo=state.role_repo,
        permission_repo=state.permission_repo,
        assignment_repo=state.assignment_repo,
        authorization=authz,
    )


def get_permission_service(
    request: Request,
    authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> PermissionService:
    """Permission service (composition root)."""
    state = request.app.state
    return PermissionService(
        permission_repo=state.permission_repo,
        role_repo=state.role_repo,
        authorization=authz,
    )


def get_role_assignment_service(
    request: Request,
    authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> RoleAssignmentService:
    """User-role assignment service (composition root)."""
    state = request.app.state
    return RoleAssignmentService(
        assignment_repo=state.assignment_repo,
        role_repo=state.role_repo,
        authorization=authz,
    )


def require_permission(resource: str, action: str):
    """Dependency factory: require JWT auth and that the principal has resource:action."""

    async def _require(
        principal: Annotated[PrincipalContext, Depends(get_current_principal)],
        authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> PrincipalContext:
        await authz.require(resource, action, principal)
        return principal

    return _require
