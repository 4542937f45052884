"""Role application service: role CRUD and role-permission management.

Every mutation invalidates the cached permission set of the affected
role(s) through AuthorizationService.
"""

from __future__ import annotations

import logging

from app.application.interfaces.repositories import (
    IPermissionRepository,
    IRoleAssignmentRepository,
    IRoleRepository,
)
from app.application.services.authorization_service import AuthorizationService
from app.domain.entities import PermissionEntity, RoleEntity
from app.domain.exceptions import (
    DuplicateAssignmentException,
    ResourceNotFoundException,
    RoleInUseException,
    ValidationException,
)
from app.shared.utils import generate_cuid, utc_now

logger = logging.getLogger(__name__)

_MSG_DUPLICATE_ROLE = "Role with code '%s' already exists"
_MSG_INVALID_PERMISSION_CODE = "Invalid permission code: %s"


class RoleService:
    """Create, update and delete roles and manage their permission sets."""

    def __init__(
        self,
        role_repo: IRoleRepository,
        permission_repo: IPermissionRepository,
        assignment_repo: IRoleAssignmentRepository,
        authorization: AuthorizationService,
    ) -> None:
        self._role_repo = role_repo
        self._permission_repo = permission_repo
        self._assignment_repo = assignment_repo
        self._authz = authorization

    async def get_role(self, tenant_id: str, role_id: str) -> RoleEntity:
        """Return role or raise ResourceNotFoundException."""
        role = await self._role_repo.get_by_id(role_id, tenant_id)
        if role is None:
            raise ResourceNotFoundException("role", role_id)
        return role

    async def list_roles(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        include_inactive: bool = False,
    ) -> list[RoleEntity]:
        return await self._role_repo.list_by_tenant(
            tenant_id, skip=skip, limit=limit, include_inactive=include_inactive
        )

    async def create_role_with_permissions(
        self,
        tenant_id: str,
        code: str,
        name: str,
        description: str | None = None,
        level: int = 0,
        permission_codes: list[str] | None = None,
    ) -> RoleEntity:
        """Create role and optionally assign permissions by code.

        Raises:
            ValidationException: If the role code exists or a permission code is unknown.
        """
        if await self._role_repo.get_by_code(code, tenant_id):
            raise ValidationException(_MSG_DUPLICATE_ROLE % code, field="code")
        permission_ids: list[str] = []
        for perm_code in permission_codes or []:
            perm = await self._permission_repo.get_by_code(perm_code, tenant_id)
            if perm is None:
                raise ValidationException(
                    _MSG_INVALID_PERMISSION_CODE % perm_code, field="permission_codes"
                )
            permission_ids.append(perm.id)
        now = utc_now()
        role = RoleEntity(
            id=generate_cuid(),
            tenant_id=tenant_id,
            code=code,
            name=name,
            description=description,
            is_system=False,
            is_active=True,
            level=level,
            created_at=now,
            updated_at=now,
        )
        role.replace_permissions(permission_ids)
        created = await self._role_repo.create_role(role)
        logger.info("Role created: tenant=%s role=%s code=%s", tenant_id, created.id, code)
        return created

    async def update_role(
        self,
        tenant_id: str,
        role_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        level: int | None = None,
        is_active: bool | None = None,
    ) -> RoleEntity:
        """Update name, description, level or active flag. System roles are refused."""
        role = await self.get_role(tenant_id, role_id)
        role.ensure_mutable()
        if name is not None:
            role.name = name
        if description is not None:
            role.description = description
        if level is not None:
            role.level = level
        if is_active is not None:
            role.is_active = is_active
        role.validate()
        role.updated_at = utc_now()
        saved = await self._role_repo.save(role)
        await self._authz.invalidate_role(tenant_id, role_id)
        return saved

    async def delete_role(self, tenant_id: str, role_id: str) -> None:
        """Delete a role that no active assignment references.

        Raises:
            ResourceNotFoundException: Role does not exist.
            SystemRoleProtectedException: Role is a system role.
            RoleInUseException: Active assignments still reference the role.
        """
        role = await self.get_role(tenant_id, role_id)
        role.ensure_mutable()
        in_use = await self._assignment_repo.count_active_for_role(role_id, tenant_id)
        if in_use:
            raise RoleInUseException(role_id, in_use)
        if not await self._role_repo.delete(role_id, tenant_id):
            raise ResourceNotFoundException("role", role_id)
        await self._authz.invalidate_role(tenant_id, role_id)
        logger.info("Role deleted: tenant=%s role=%s", tenant_id, role_id)

    async def bulk_delete_roles(self, tenant_id: str, role_ids: list[str]) -> int:
        """Delete many roles; skips missing, system and in-use roles. Returns deleted count."""
        deleted = 0
        for role in await self._role_repo.get_many(list(dict.fromkeys(role_ids)), tenant_id):
            if role.is_system:
                continue
            if await self._assignment_repo.count_active_for_role(role.id, tenant_id):
                continue
            if await self._role_repo.delete(role.id, tenant_id):
                await self._authz.invalidate_role(tenant_id, role.id)
                deleted += 1
        logger.info("Bulk role delete: tenant=%s requested=%s deleted=%s", tenant_id, len(role_ids), deleted)
        return deleted

    async def list_role_permissions(self, tenant_id: str, role_id: str) -> list[PermissionEntity]:
        """Return the role's permissions in assignment order."""
        role = await self.get_role(tenant_id, role_id)
        if not role.permission_ids:
            return []
        perms = await self._permission_repo.get_many(role.permission_ids, tenant_id)
        by_id = {p.id: p for p in perms}
        return [by_id[pid] for pid in role.permission_ids if pid in by_id]

    async def _require_permissions(self, tenant_id: str, permission_ids: list[str]) -> None:
        unique = list(dict.fromkeys(permission_ids))
        found = {p.id for p in await self._permission_repo.get_many(unique, tenant_id)}
        for pid in unique:
            if pid not in found:
                raise ResourceNotFoundException("permission", pid)

    async def set_role_permissions(
        self, tenant_id: str, role_id: str, permission_ids: list[str]
    ) -> RoleEntity:
        """Replace the role's permission set (all ids must exist in the tenant)."""
        role = await self.get_role(tenant_id, role_id)
        if permission_ids:
            await self._require_permissions(tenant_id, permission_ids)
        role.replace_permissions(permission_ids)
        role.updated_at = utc_now()
        saved = await self._role_repo.save(role)
        await self._authz.invalidate_role(tenant_id, role_id)
        return saved

    async def grant_permission(self, tenant_id: str, role_id: str, permission_id: str) -> RoleEntity:
        """Add one permission to a role.

        Raises:
            DuplicateAssignmentException: Permission already granted to the role.
        """
        role = await self.get_role(tenant_id, role_id)
        await self._require_permissions(tenant_id, [permission_id])
        if not role.add_permission(permission_id):
            raise DuplicateAssignmentException(
                "Permission already assigned to role",
                "role_permission",
                {"role_id": role_id, "permission_id": permission_id},
            )
        role.updated_at = utc_now()
        saved = await self._role_repo.save(role)
        await self._authz.invalidate_role(tenant_id, role_id)
        return saved

    async def revoke_permission(self, tenant_id: str, role_id: str, permission_id: str) -> RoleEntity:
        """Remove one permission from a role; 404 when it was not granted."""
        role = await self.get_role(tenant_id, role_id)
        if not role.remove_permission(permission_id):
            raise ResourceNotFoundException("role_permission", permission_id)
        role.updated_at = utc_now()
        saved = await self._role_repo.save(role)
        await self._authz.invalidate_role(tenant_id, role_id)
        return saved
