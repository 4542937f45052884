"""User-roles API: list a user's roles and effective permissions, assign/remove roles."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from app.api.v1.dependencies import (
    get_authorization_service,
    get_role_assignment_service,
    get_tenant_id,
    require_permission,
)
from app.application.dtos.principal import PrincipalContext
from app.application.services import AuthorizationService, RoleAssignmentService
from app.core.limiter import limit_writes
from app.schemas.common import BulkResultResponse
from app.schemas.permission import PermissionResponse
from app.schemas.role import RoleResponse
from app.schemas.user_role import BulkRoleAssign, UserRoleAssign, UserRoleResponse

router = APIRouter()


@router.post("/roles/bulk-assign", response_model=BulkResultResponse)
@limit_writes
async def bulk_assign_role(
    request: Request,
    body: BulkRoleAssign,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    assignment_svc: Annotated[RoleAssignmentService, Depends(get_role_assignment_service)],
    principal: Annotated[PrincipalContext, Depends(require_permission("user_role", "update"))],
):
    """Assign one role to many users. Users already holding the role are skipped."""
    assigned = await assignment_svc.bulk_assign_role(
        tenant_id,
        body.user_ids,
        body.role_id,
        assigned_by=principal.user_id,
        expires_at=body.expires_at,
    )
    return BulkResultResponse(count=assigned)


@router.get("/{user_id}/roles", response_model=list[RoleResponse])
async def list_user_roles(
    user_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    assignment_svc: Annotated[RoleAssignmentService, Depends(get_role_assignment_service)],
    _: Annotated[object, Depends(require_permission("user_role", "read"))] = None,
):
    """List the user's active roles (tenant-scoped, primary first)."""
    roles = await assignment_svc.list_user_roles(tenant_id, user_id)
    return [RoleResponse.model_validate(r) for r in roles]


@router.post("/{user_id}/roles", response_model=UserRoleResponse, status_code=201)
@limit_writes
async def assign_role_to_user(
    request: Request,
    user_id: str,
    body: UserRoleAssign,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    assignment_svc: Annotated[RoleAssignmentService, Depends(get_role_assignment_service)],
    principal: Annotated[PrincipalContext, Depends(require_permission("user_role", "update"))],
):
    """Assign role to user (tenant-scoped). 400 when the user already holds it."""
    assignment = await assignment_svc.assign_role(
        tenant_id,
        user_id,
        body.role_id,
        assigned_by=principal.user_id,
        is_primary=body.is_primary,
        expires_at=body.expires_at,
    )
    return UserRoleResponse.model_validate(assignment)


@router.delete("/{user_id}/roles/{role_id}", status_code=204)
@limit_writes
async def remove_role_from_user(
    request: Request,
    user_id: str,
    role_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    assignment_svc: Annotated[RoleAssignmentService, Depends(get_role_assignment_service)],
    _: Annotated[object, Depends(require_permission("user_role", "update"))] = None,
):
    """Remove role from user (tenant-scoped). 404 when not assigned."""
    await assignment_svc.revoke_role(tenant_id, user_id, role_id)
    return Response(status_code=204)


@router.get("/{user_id}/permissions", response_model=list[PermissionResponse])
async def list_user_permissions(
    user_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
    _: Annotated[object, Depends(require_permission("user_role", "read"))] = None,
):
    """Effective permissions from the user's active role assignments (de-duplicated)."""
    permissions = await authz.get_effective_permissions(
        PrincipalContext(user_id=user_id, tenant_id=tenant_id)
    )
    return [PermissionResponse.model_validate(p) for p in permissions]
