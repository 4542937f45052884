"""Repository interfaces (ports) for the application layer.

Protocols define contracts that document-store implementations must fulfill
(DIP). All types reference domain entities only; no infrastructure imports.
Implementations raise StoreUnavailableException when the store cannot be
reached or times out.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.domain.entities import (
        PermissionEntity,
        RoleAssignmentEntity,
        RoleEntity,
    )
    from app.domain.value_objects import PermissionCondition


# Role repository interface
class IRoleRepository(Protocol):
    """Protocol for role repository (roles embed their ordered permission ids)."""

    async def create_role(self, role: RoleEntity) -> RoleEntity:
        """Persist a new role and return it."""

    async def get_by_id(self, role_id: str, tenant_id: str) -> RoleEntity | None:
        """Return role by id within tenant."""

    async def get_by_code(self, code: str, tenant_id: str) -> RoleEntity | None:
        """Return role by code within tenant."""

    async def get_many(self, role_ids: list[str], tenant_id: str) -> list[RoleEntity]:
        """Return the roles with the given ids (one round trip; unknown ids skipped)."""

    async def list_by_tenant(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        *,
        include_inactive: bool = False,
    ) -> list[RoleEntity]:
        """List roles for tenant (paginated)."""

    async def save(self, role: RoleEntity) -> RoleEntity:
        """Overwrite an existing role (name, flags, permission ids)."""

    async def delete(self, role_id: str, tenant_id: str) -> bool:
        """Delete role. Returns False when it did not exist."""

    async def find_with_permission(self, permission_id: str, tenant_id: str) -> list[RoleEntity]:
        """Return roles whose permission set contains permission_id."""


# Permission repository interface
class IPermissionRepository(Protocol):
    """Protocol for permission repository."""

    async def create_permission(self, permission: PermissionEntity) -> PermissionEntity:
        """Persist a new permission and return it."""

    async def get_by_id(self, permission_id: str, tenant_id: str) -> PermissionEntity | None:
        """Return permission by id within tenant."""

    async def get_by_code(self, code: str, tenant_id: str) -> PermissionEntity | None:
        """Return permission by 'resource:action' code within tenant."""

    async def get_many(self, permission_ids: list[str], tenant_id: str) -> list[PermissionEntity]:
        """Return permissions by id in one batch read (unknown ids skipped)."""

    async def list_by_tenant(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        resource: str | None = None,
    ) -> list[PermissionEntity]:
        """List permissions for tenant, optionally filtered by resource."""

    async def update_permission(
        self,
        permission_id: str,
        tenant_id: str,
        *,
        description: str | None = None,
        conditions: tuple[PermissionCondition, ...] | None = None,
    ) -> PermissionEntity | None:
        """Update mutable fields; returns None if not found."""

    async def delete(self, permission_id: str, tenant_id: str) -> bool:
        """Delete permission. Returns False when it did not exist."""


# Role assignment repository interface
class IRoleAssignmentRepository(Protocol):
    """Protocol for user-role assignments."""

    async def assign(self, assignment: RoleAssignmentEntity) -> RoleAssignmentEntity:
        """Create assignment. Raises DuplicateAssignmentException if user already holds role."""

    async def get(self, user_id: str, role_id: str, tenant_id: str) -> RoleAssignmentEntity | None:
        """Return the assignment of role to user, if any."""

    async def revoke(self, user_id: str, role_id: str, tenant_id: str) -> bool:
        """Remove assignment. Returns False when it did not exist."""

    async def list_for_user(self, user_id: str, tenant_id: str) -> list[RoleAssignmentEntity]:
        """Return all assignments of user (including expired/inactive)."""

    async def get_active_role_ids(
        self, user_id: str, tenant_id: str, now: datetime | None = None
    ) -> list[str]:
        """Return role ids of active, non-expired assignments (primary first)."""

    async def count_active_for_role(self, role_id: str, tenant_id: str) -> int:
        """Return number of active, non-expired assignments referencing role."""
