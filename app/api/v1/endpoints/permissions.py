"""Permissions API: create, list, get, update conditions, delete (tenant-scoped)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from app.api.v1.dependencies import get_permission_service, get_tenant_id, require_permission
from app.application.services import PermissionService
from app.core.limiter import limit_writes
from app.schemas.common import BulkIdsRequest, BulkResultResponse
from app.schemas.permission import PermissionCreate, PermissionResponse, PermissionUpdate

router = APIRouter()


@router.post("", response_model=PermissionResponse, status_code=201)
@limit_writes
async def create_permission(
    request: Request,
    body: PermissionCreate,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    permission_svc: Annotated[PermissionService, Depends(get_permission_service)],
    _: Annotated[object, Depends(require_permission("permission", "create"))] = None,
):
    """Create a permission (tenant-scoped). 400 when resource:action already exists."""
    created = await permission_svc.create_permission(
        tenant_id=tenant_id,
        resource=body.resource,
        action=body.action,
        description=body.description,
        conditions=[c.to_domain() for c in body.conditions],
    )
    return PermissionResponse.model_validate(created)


@router.get("", response_model=list[PermissionResponse])
async def list_permissions(
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    permission_svc: Annotated[PermissionService, Depends(get_permission_service)],
    skip: int = 0,
    limit: int = 100,
    resource: str | None = None,
    _: Annotated[object, Depends(require_permission("permission", "read"))] = None,
):
    """List permissions for tenant (paginated, optional resource filter)."""
    permissions = await permission_svc.list_permissions(
        tenant_id, skip=skip, limit=min(limit, 500), resource=resource
    )
    return [PermissionResponse.model_validate(p) for p in permissions]


@router.post("/bulk-delete", response_model=BulkResultResponse)
@limit_writes
async def bulk_delete_permissions(
    request: Request,
    body: BulkIdsRequest,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    permission_svc: Annotated[PermissionService, Depends(get_permission_service)],
    _: Annotated[object, Depends(require_permission("permission", "delete"))] = None,
):
    """Delete several permissions (also removed from every role). Unknown ids are skipped."""
    deleted = await permission_svc.bulk_delete_permissions(tenant_id, body.ids)
    return BulkResultResponse(count=deleted)


@router.get("/{permission_id}", response_model=PermissionResponse)
async def get_permission(
    permission_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    permission_svc: Annotated[PermissionService, Depends(get_permission_service)],
    _: Annotated[object, Depends(require_permission("permission", "read"))] = None,
):
    """Get permission by id (tenant-scoped)."""
    permission = await permission_svc.get_permission(tenant_id, permission_id)
    return PermissionResponse.model_validate(permission)


@router.patch("/{permission_id}", response_model=PermissionResponse)
@limit_writes
async def update_permission(
    request: Request,
    permission_id: str,
    body: PermissionUpdate,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    permission_svc: Annotated[PermissionService, Depends(get_permission_service)],
    _: Annotated[object, Depends(require_permission("permission", "update"))] = None,
):
    """Update description and/or conditions. Roles holding it see the change immediately."""
    updated = await permission_svc.update_permission(
        tenant_id,
        permission_id,
        description=body.description,
        conditions=(
            None if body.conditions is None else [c.to_domain() for c in body.conditions]
        ),
    )
    return PermissionResponse.model_validate(updated)


@router.delete("/{permission_id}", status_code=204)
@limit_writes
async def delete_permission(
    request: Request,
    permission_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    permission_svc: Annotated[PermissionService, Depends(get_permission_service)],
    _: Annotated[object, Depends(require_permission("permission", "delete"))] = None,
):
    """Delete permission and remove it from every role (tenant-scoped)."""
    await permission_svc.delete_permission(tenant_id, permission_id)
    return Response(status_code=204)
