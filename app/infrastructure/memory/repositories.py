"""In-memory repositories (DATABASE_BACKEND=memory): local development and tests.

Same contracts as the Firestore repositories. Entities are copied on the
way in and out, so callers never mutate stored state by accident.
"""

from __future__ import annotations

import copy
from datetime import datetime

from app.domain.entities import PermissionEntity, RoleAssignmentEntity, RoleEntity
from app.domain.exceptions import DuplicateAssignmentException, ValidationException
from app.domain.value_objects import PermissionCondition
from app.infrastructure.firebase.repositories.role_assignment_repo_firestore import (
    order_active_role_ids,
)
from app.shared.utils.datetime import utc_now


class InMemoryRoleRepository:
    """Roles keyed by id."""

    def __init__(self) -> None:
        self._roles: dict[str, RoleEntity] = {}

    async def create_role(self, role: RoleEntity) -> RoleEntity:
        if role.id in self._roles:
            raise ValidationException("Role id already exists", field="id")
        self._roles[role.id] = copy.deepcopy(role)
        return role

    async def get_by_id(self, role_id: str, tenant_id: str) -> RoleEntity | None:
        role = self._roles.get(role_id)
        if role is None or role.tenant_id != tenant_id:
            return None
        return copy.deepcopy(role)

    async def get_by_code(self, code: str, tenant_id: str) -> RoleEntity | None:
        for role in self._roles.values():
            if role.tenant_id == tenant_id and role.code == code:
                return copy.deepcopy(role)
        return None

    async def get_many(self, role_ids: list[str], tenant_id: str) -> list[RoleEntity]:
        return [
            copy.deepcopy(self._roles[rid])
            for rid in dict.fromkeys(role_ids)
            if rid in self._roles and self._roles[rid].tenant_id == tenant_id
        ]

    async def list_by_tenant(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        *,
        include_inactive: bool = False,
    ) -> list[RoleEntity]:
        roles = [
            r
            for r in self._roles.values()
            if r.tenant_id == tenant_id and (include_inactive or r.is_active)
        ]
        roles.sort(key=lambda r: r.code)
        return [copy.deepcopy(r) for r in roles[skip : skip + limit]]

    async def save(self, role: RoleEntity) -> RoleEntity:
        self._roles[role.id] = copy.deepcopy(role)
        return role

    async def delete(self, role_id: str, tenant_id: str) -> bool:
        if await self.get_by_id(role_id, tenant_id) is None:
            return False
        del self._roles[role_id]
        return True

    async def find_with_permission(self, permission_id: str, tenant_id: str) -> list[RoleEntity]:
        return [
            copy.deepcopy(r)
            for r in self._roles.values()
            if r.tenant_id == tenant_id and permission_id in r.permission_ids
        ]


class InMemoryPermissionRepository:
    """Permissions keyed by id (entities are frozen, so no copies needed)."""

    def __init__(self) -> None:
        self._permissions: dict[str, PermissionEntity] = {}

    async def create_permission(self, permission: PermissionEntity) -> PermissionEntity:
        if permission.id in self._permissions:
            raise ValidationException("Permission id already exists", field="id")
        self._permissions[permission.id] = permission
        return permission

    async def get_by_id(self, permission_id: str, tenant_id: str) -> PermissionEntity | None:
        p = self._permissions.get(permission_id)
        return p if p is not None and p.tenant_id == tenant_id else None

    async def get_by_code(self, code: str, tenant_id: str) -> PermissionEntity | None:
        for p in self._permissions.values():
            if p.tenant_id == tenant_id and p.code == code:
                return p
        return None

    async def get_many(self, permission_ids: list[str], tenant_id: str) -> list[PermissionEntity]:
        return [
            self._permissions[pid]
            for pid in dict.fromkeys(permission_ids)
            if pid in self._permissions and self._permissions[pid].tenant_id == tenant_id
        ]

    async def list_by_tenant(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        resource: str | None = None,
    ) -> list[PermissionEntity]:
        perms = [
            p
            for p in self._permissions.values()
            if p.tenant_id == tenant_id and (resource is None or p.resource == resource)
        ]
        perms.sort(key=lambda p: p.code)
        return perms[skip : skip + limit]

    async def update_permission(
        self,
        permission_id: str,
        tenant_id: str,
        *,
        description: str | None = None,
        conditions: tuple[PermissionCondition, ...] | None = None,
    ) -> PermissionEntity | None:
        current = await self.get_by_id(permission_id, tenant_id)
        if current is None:
            return None
        updated = current.with_changes(description=description, conditions=conditions)
        self._permissions[permission_id] = updated
        return updated

    async def delete(self, permission_id: str, tenant_id: str) -> bool:
        if await self.get_by_id(permission_id, tenant_id) is None:
            return False
        del self._permissions[permission_id]
        return True


class InMemoryRoleAssignmentRepository:
    """Assignments keyed by (tenant, user, role)."""

    def __init__(self) -> None:
        self._assignments: dict[tuple[str, str, str], RoleAssignmentEntity] = {}

    async def assign(self, assignment: RoleAssignmentEntity) -> RoleAssignmentEntity:
        key = (assignment.tenant_id, assignment.user_id, assignment.role_id)
        existing = self._assignments.get(key)
        if existing is not None and existing.is_effective():
            raise DuplicateAssignmentException(
                "Role already assigned to user",
                "user_role",
                {"user_id": assignment.user_id, "role_id": assignment.role_id},
            )
        self._assignments[key] = copy.deepcopy(assignment)
        return assignment

    async def get(self, user_id: str, role_id: str, tenant_id: str) -> RoleAssignmentEntity | None:
        a = self._assignments.get((tenant_id, user_id, role_id))
        return copy.deepcopy(a) if a is not None else None

    async def revoke(self, user_id: str, role_id: str, tenant_id: str) -> bool:
        return self._assignments.pop((tenant_id, user_id, role_id), None) is not None

    async def list_for_user(self, user_id: str, tenant_id: str) -> list[RoleAssignmentEntity]:
        return [
            copy.deepcopy(a)
            for (t, u, _), a in self._assignments.items()
            if t == tenant_id and u == user_id
        ]

    async def get_active_role_ids(
        self, user_id: str, tenant_id: str, now: datetime | None = None
    ) -> list[str]:
        return order_active_role_ids(
            await self.list_for_user(user_id, tenant_id), now or utc_now()
        )

    async def count_active_for_role(self, role_id: str, tenant_id: str) -> int:
        now = utc_now()
        return sum(
            1
            for (t, _, r), a in self._assignments.items()
            if t == tenant_id and r == role_id and a.is_effective(now)
        )
