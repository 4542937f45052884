"""Permission application service: create with duplicate check, update conditions, delete.

Deleting a permission also removes it from every role that holds it; both
deletes and condition updates invalidate the affected roles' cached sets.
"""

from __future__ import annotations

import logging

from app.application.interfaces.repositories import IPermissionRepository, IRoleRepository
from app.application.services.authorization_service import AuthorizationService
from app.domain.entities import PermissionEntity
from app.domain.exceptions import ResourceNotFoundException, ValidationException
from app.domain.value_objects import PermissionCode, PermissionCondition
from app.shared.utils import generate_cuid

logger = logging.getLogger(__name__)

_MSG_DUPLICATE_PERMISSION = "Permission with code '%s' already exists"


class PermissionService:
    """Create and maintain tenant permissions."""

    def __init__(
        self,
        permission_repo: IPermissionRepository,
        role_repo: IRoleRepository,
        authorization: AuthorizationService,
    ) -> None:
        self._repo = permission_repo
        self._role_repo = role_repo
        self._authz = authorization

    async def create_permission(
        self,
        tenant_id: str,
        resource: str,
        action: str,
        description: str | None = None,
        conditions: list[PermissionCondition] | None = None,
    ) -> PermissionEntity:
        """Create permission. Raises ValidationException if resource:action already exists."""
        try:
            code = PermissionCode(resource, action).value
        except ValueError as e:
            raise ValidationException(str(e), field="code") from e
        # Best-effort check; the store may still race on concurrent creates.
        if await self._repo.get_by_code(code, tenant_id):
            raise ValidationException(_MSG_DUPLICATE_PERMISSION % code, field="code")
        permission = PermissionEntity(
            id=generate_cuid(),
            tenant_id=tenant_id,
            resource=resource,
            action=action,
            description=description,
            conditions=tuple(conditions or ()),
        )
        created = await self._repo.create_permission(permission)
        logger.info("Permission created: tenant=%s code=%s", tenant_id, code)
        return created

    async def get_permission(self, tenant_id: str, permission_id: str) -> PermissionEntity:
        permission = await self._repo.get_by_id(permission_id, tenant_id)
        if permission is None:
            raise ResourceNotFoundException("permission", permission_id)
        return permission

    async def list_permissions(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        resource: str | None = None,
    ) -> list[PermissionEntity]:
        return await self._repo.list_by_tenant(
            tenant_id, skip=skip, limit=limit, resource=resource
        )

    async def _invalidate_holders(self, tenant_id: str, permission_id: str) -> list[str]:
        roles = await self._role_repo.find_with_permission(permission_id, tenant_id)
        role_ids = [r.id for r in roles]
        await self._authz.invalidate_roles(tenant_id, role_ids)
        return role_ids

    async def update_permission(
        self,
        tenant_id: str,
        permission_id: str,
        *,
        description: str | None = None,
        conditions: list[PermissionCondition] | None = None,
    ) -> PermissionEntity:
        """Update description and/or conditions (identity is immutable)."""
        updated = await self._repo.update_permission(
            permission_id,
            tenant_id,
            description=description,
            conditions=None if conditions is None else tuple(conditions),
        )
        if updated is None:
            raise ResourceNotFoundException("permission", permission_id)
        await self._invalidate_holders(tenant_id, permission_id)
        return updated

    async def delete_permission(self, tenant_id: str, permission_id: str) -> None:
        """Delete permission and remove it from every role that holds it."""
        await self.get_permission(tenant_id, permission_id)
        for role in await self._role_repo.find_with_permission(permission_id, tenant_id):
            if role.remove_permission(permission_id):
                await self._role_repo.save(role)
            await self._authz.invalidate_role(tenant_id, role.id)
        if not await self._repo.delete(permission_id, tenant_id):
            raise ResourceNotFoundException("permission", permission_id)
        logger.info("Permission deleted: tenant=%s permission=%s", tenant_id, permission_id)

    async def bulk_delete_permissions(self, tenant_id: str, permission_ids: list[str]) -> int:
        """Delete many permissions; unknown ids are skipped. Returns deleted count."""
        deleted = 0
        for permission_id in dict.fromkeys(permission_ids):
            try:
                await self.delete_permission(tenant_id, permission_id)
            except ResourceNotFoundException:
                continue
            deleted += 1
        return deleted
