"""Roles API: list, get, create, update, delete, and role-permissions (tenant-scoped)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from app.api.v1.dependencies import get_role_service, get_tenant_id, require_permission
from app.application.services import RoleService
from app.core.limiter import limit_writes
from app.schemas.common import BulkIdsRequest, BulkResultResponse
from app.schemas.permission import PermissionResponse
from app.schemas.role import (
    RoleCreateRequest,
    RolePermissionAssign,
    RolePermissionAssignedResponse,
    RolePermissionsReplace,
    RoleResponse,
    RoleUpdate,
)

router = APIRouter()


@router.post("", response_model=RoleResponse, status_code=201)
@limit_writes
async def create_role(
    request: Request,
    body: RoleCreateRequest,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[object, Depends(require_permission("role", "create"))] = None,
):
    """Create a role (tenant-scoped). Optionally assign permissions by code."""
    created = await role_svc.create_role_with_permissions(
        tenant_id=tenant_id,
        code=body.code,
        name=body.name,
        description=body.description,
        level=body.level,
        permission_codes=body.permission_codes,
    )
    return RoleResponse.model_validate(created)


@router.get("", response_model=list[RoleResponse])
async def list_roles(
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    skip: int = 0,
    limit: int = 100,
    include_inactive: bool = False,
    _: Annotated[object, Depends(require_permission("role", "read"))] = None,
):
    """List roles for tenant (paginated)."""
    roles = await role_svc.list_roles(
        tenant_id, skip=skip, limit=min(limit, 500), include_inactive=include_inactive
    )
    return [RoleResponse.model_validate(r) for r in roles]


@router.post("/bulk-delete", response_model=BulkResultResponse)
@limit_writes
async def bulk_delete_roles(
    request: Request,
    body: BulkIdsRequest,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[object, Depends(require_permission("role", "delete"))] = None,
):
    """Delete several roles. System roles and roles still assigned are skipped."""
    deleted = await role_svc.bulk_delete_roles(tenant_id, body.ids)
    return BulkResultResponse(count=deleted)


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[object, Depends(require_permission("role", "read"))] = None,
):
    """Get role by id (tenant-scoped)."""
    return RoleResponse.model_validate(await role_svc.get_role(tenant_id, role_id))


@router.put("/{role_id}", response_model=RoleResponse)
@limit_writes
async def update_role(
    request: Request,
    role_id: str,
    body: RoleUpdate,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[object, Depends(require_permission("role", "update"))] = None,
):
    """Update role (name, description, level, is_active). System roles are refused."""
    updated = await role_svc.update_role(
        tenant_id,
        role_id,
        name=body.name,
        description=body.description,
        level=body.level,
        is_active=body.is_active,
    )
    return RoleResponse.model_validate(updated)


@router.delete("/{role_id}", status_code=204)
@limit_writes
async def delete_role(
    request: Request,
    role_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[object, Depends(require_permission("role", "delete"))] = None,
):
    """Delete role. Refused for system roles and roles with active assignments."""
    await role_svc.delete_role(tenant_id, role_id)
    return Response(status_code=204)


@router.get("/{role_id}/permissions", response_model=list[PermissionResponse])
async def list_role_permissions(
    role_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[object, Depends(require_permission("role", "read"))] = None,
):
    """List permissions granted to a role."""
    permissions = await role_svc.list_role_permissions(tenant_id, role_id)
    return [PermissionResponse.model_validate(p) for p in permissions]


@router.put("/{role_id}/permissions", response_model=RoleResponse)
@limit_writes
async def replace_role_permissions(
    request: Request,
    role_id: str,
    body: RolePermissionsReplace,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[object, Depends(require_permission("role", "manage_permissions"))] = None,
):
    """Replace the role's permission set with permission_ids."""
    role = await role_svc.set_role_permissions(tenant_id, role_id, body.permission_ids)
    return RoleResponse.model_validate(role)


@router.post(
    "/{role_id}/permissions",
    response_model=RolePermissionAssignedResponse,
    status_code=201,
)
@limit_writes
async def assign_permission_to_role(
    request: Request,
    role_id: str,
    body: RolePermissionAssign,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[object, Depends(require_permission("role", "manage_permissions"))] = None,
):
    """Grant a permission to a role. 400 when already granted."""
    await role_svc.grant_permission(tenant_id, role_id, body.permission_id)
    return RolePermissionAssignedResponse(role_id=role_id, permission_id=body.permission_id)


@router.delete("/{role_id}/permissions/{permission_id}", status_code=204)
@limit_writes
async def remove_permission_from_role(
    request: Request,
    role_id: str,
    permission_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[object, Depends(require_permission("role", "manage_permissions"))] = None,
):
    """Revoke a permission from a role. 404 when it was not granted."""
    await role_svc.revoke_permission(tenant_id, role_id, permission_id)
    return Response(status_code=204)
