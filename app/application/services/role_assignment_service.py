"""User-role assignment service: assign, revoke, list, bulk assign."""

from __future__ import annotations

import logging
from datetime import datetime

from app.application.interfaces.repositories import IRoleAssignmentRepository, IRoleRepository
from app.application.services.authorization_service import AuthorizationService
from app.domain.entities import RoleAssignmentEntity, RoleEntity
from app.domain.exceptions import (
    DuplicateAssignmentException,
    ResourceNotFoundException,
    ValidationException,
)
from app.shared.utils import ensure_utc, generate_cuid, utc_now

logger = logging.getLogger(__name__)


class RoleAssignmentService:
    """Manage which users hold which roles within a tenant."""

    def __init__(
        self,
        assignment_repo: IRoleAssignmentRepository,
        role_repo: IRoleRepository,
        authorization: AuthorizationService,
    ) -> None:
        self._repo = assignment_repo
        self._role_repo = role_repo
        self._authz = authorization

    async def _get_active_role(self, tenant_id: str, role_id: str) -> RoleEntity:
        role = await self._role_repo.get_by_id(role_id, tenant_id)
        if role is None or not role.is_active:
            raise ResourceNotFoundException("role", role_id)
        return role

    async def assign_role(
        self,
        tenant_id: str,
        user_id: str,
        role_id: str,
        *,
        assigned_by: str | None = None,
        is_primary: bool = False,
        expires_at: datetime | None = None,
    ) -> RoleAssignmentEntity:
        """Assign role to user.

        Raises:
            ResourceNotFoundException: Role missing or inactive.
            ValidationException: expires_at is in the past.
            DuplicateAssignmentException: User already holds the role.
        """
        await self._get_active_role(tenant_id, role_id)
        now = utc_now()
        if expires_at is not None and ensure_utc(expires_at) <= now:
            raise ValidationException("expires_at must be in the future", field="expires_at")
        assignment = RoleAssignmentEntity(
            id=generate_cuid(),
            tenant_id=tenant_id,
            user_id=user_id,
            role_id=role_id,
            is_primary=is_primary,
            is_active=True,
            assigned_by=assigned_by,
            assigned_at=now,
            expires_at=ensure_utc(expires_at) if expires_at else None,
        )
        created = await self._repo.assign(assignment)
        await self._authz.invalidate_role(tenant_id, role_id)
        logger.info(
            "Role assigned: tenant=%s user=%s role=%s by=%s",
            tenant_id,
            user_id,
            role_id,
            assigned_by,
        )
        return created

    async def revoke_role(self, tenant_id: str, user_id: str, role_id: str) -> None:
        """Remove role from user; 404 when the user does not hold it."""
        if not await self._repo.revoke(user_id, role_id, tenant_id):
            raise ResourceNotFoundException("user_role", f"{user_id}/{role_id}")
        await self._authz.invalidate_role(tenant_id, role_id)
        logger.info("Role revoked: tenant=%s user=%s role=%s", tenant_id, user_id, role_id)

    async def list_user_roles(self, tenant_id: str, user_id: str) -> list[RoleEntity]:
        """Return the user's roles from active, non-expired assignments (primary first)."""
        role_ids = await self._repo.get_active_role_ids(user_id, tenant_id)
        if not role_ids:
            return []
        roles = {r.id: r for r in await self._role_repo.get_many(role_ids, tenant_id)}
        return [roles[rid] for rid in role_ids if rid in roles and roles[rid].is_active]

    async def bulk_assign_role(
        self,
        tenant_id: str,
        user_ids: list[str],
        role_id: str,
        *,
        assigned_by: str | None = None,
        expires_at: datetime | None = None,
    ) -> int:
        """Assign role to many users; users already holding it are skipped. Returns count."""
        await self._get_active_role(tenant_id, role_id)
        assigned = 0
        for user_id in dict.fromkeys(user_ids):
            try:
                await self.assign_role(
                    tenant_id,
                    user_id,
                    role_id,
                    assigned_by=assigned_by,
                    expires_at=expires_at,
                )
            except DuplicateAssignmentException:
                continue
            assigned += 1
        return assigned
