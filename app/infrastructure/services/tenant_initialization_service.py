"""Tenant RBAC initialization: default permissions and system roles.

Works against the repository contracts, so the same seed runs on Firestore
and on the in-memory backend. Idempotent: permissions and roles that already
exist (by code) are left untouched.
"""

from __future__ import annotations

import logging
from typing import TypedDict

from app.application.interfaces.repositories import (
    IPermissionRepository,
    IRoleAssignmentRepository,
    IRoleRepository,
)
from app.domain.entities import PermissionEntity, RoleAssignmentEntity, RoleEntity
from app.domain.exceptions import DuplicateAssignmentException, ResourceNotFoundException
from app.shared.utils import generate_cuid, utc_now

logger = logging.getLogger(__name__)


class RoleData(TypedDict):
    """Role configuration for default roles."""

    name: str
    description: str
    level: int
    permissions: list[str]


_CRUD = ("create", "read", "update", "delete", "list")
_RENTAL_RESOURCES = ("property", "unit", "lease", "application", "maintenance", "payment")

SYSTEM_PERMISSIONS: list[tuple[str, str, str]] = [
    *[(r, a, f"{a.capitalize()} {r} records") for r in _RENTAL_RESOURCES for a in _CRUD],
    ("role", "create", "Create roles"),
    ("role", "read", "View roles"),
    ("role", "update", "Modify role name/description/level"),
    ("role", "delete", "Delete roles"),
    ("role", "manage_permissions", "Grant/revoke permissions on roles"),
    ("permission", "create", "Create permissions"),
    ("permission", "read", "View permissions"),
    ("permission", "update", "Update permission description/conditions"),
    ("permission", "delete", "Delete permissions"),
    ("user_role", "read", "View user role assignments"),
    ("user_role", "update", "Assign/remove roles to/from users"),
    ("*", "*", "Super admin - all permissions"),
]

DEFAULT_ROLES: dict[str, RoleData] = {
    "admin": {
        "name": "Administrator",
        "description": "Full access to every resource",
        "level": 100,
        "permissions": ["*:*"],
    },
    "landlord": {
        "name": "Landlord",
        "description": "Owns properties; manages leases, applications and staff roles",
        "level": 80,
        "permissions": [
            "property:*",
            "unit:*",
            "lease:*",
            "application:*",
            "maintenance:*",
            "payment:*",
            "role:read",
            "permission:read",
            "user_role:read",
            "user_role:update",
        ],
    },
    "property-manager": {
        "name": "Property Manager",
        "description": "Day-to-day operation of assigned properties",
        "level": 50,
        "permissions": [
            "property:read",
            "property:list",
            "unit:*",
            "lease:read",
            "lease:list",
            "application:*",
            "maintenance:*",
            "payment:read",
            "payment:list",
        ],
    },
    "tenant": {
        "name": "Tenant",
        "description": "Renter: own lease, payments and maintenance requests",
        "level": 10,
        "permissions": [
            "lease:read",
            "payment:read",
            "payment:create",
            "maintenance:create",
            "maintenance:read",
            "application:create",
        ],
    },
}


def resolve_permission_pattern(pattern: str, permission_map: dict[str, str]) -> list[str]:
    """Resolve 'resource:*' to every seeded action of resource; exact codes map 1:1."""
    if pattern.endswith(":*") and pattern != "*:*":
        prefix = pattern[:-2]
        return [
            pid
            for code, pid in permission_map.items()
            if code.startswith(prefix + ":")
        ]
    pid = permission_map.get(pattern)
    return [pid] if pid else []


class TenantInitializationService:
    """Seeds default RBAC for a tenant and links its first administrator."""

    def __init__(
        self,
        role_repo: IRoleRepository,
        permission_repo: IPermissionRepository,
        assignment_repo: IRoleAssignmentRepository,
    ) -> None:
        self._role_repo = role_repo
        self._permission_repo = permission_repo
        self._assignment_repo = assignment_repo

    async def initialize_tenant_rbac(self, tenant_id: str) -> dict[str, str]:
        """Create missing default permissions and system roles. Returns role code -> id."""
        permission_map: dict[str, str] = {}
        for resource, action, description in SYSTEM_PERMISSIONS:
            code = f"{resource}:{action}"
            existing = await self._permission_repo.get_by_code(code, tenant_id)
            if existing is None:
                existing = await self._permission_repo.create_permission(
                    PermissionEntity(
                        id=generate_cuid(),
                        tenant_id=tenant_id,
                        resource=resource,
                        action=action,
                        description=description,
                    )
                )
            permission_map[code] = existing.id

        role_map: dict[str, str] = {}
        now = utc_now()
        for role_code, data in DEFAULT_ROLES.items():
            existing_role = await self._role_repo.get_by_code(role_code, tenant_id)
            if existing_role is not None:
                role_map[role_code] = existing_role.id
                continue
            role = RoleEntity(
                id=generate_cuid(),
                tenant_id=tenant_id,
                code=role_code,
                name=data["name"],
                description=data["description"],
                is_system=True,
                is_active=True,
                level=data["level"],
                created_at=now,
                updated_at=now,
            )
            role.replace_permissions(
                [
                    pid
                    for pattern in data["permissions"]
                    for pid in resolve_permission_pattern(pattern, permission_map)
                ]
            )
            created = await self._role_repo.create_role(role)
            role_map[role_code] = created.id
        logger.info(
            "Tenant RBAC initialized: tenant=%s permissions=%s roles=%s",
            tenant_id,
            len(permission_map),
            len(role_map),
        )
        return role_map

    async def assign_admin_role(self, tenant_id: str, admin_user_id: str) -> None:
        """Make admin_user_id a primary holder of the tenant's admin role."""
        admin = await self._role_repo.get_by_code("admin", tenant_id)
        if admin is None:
            raise ResourceNotFoundException("role", "admin")
        try:
            await self._assignment_repo.assign(
                RoleAssignmentEntity(
                    id=generate_cuid(),
                    tenant_id=tenant_id,
                    user_id=admin_user_id,
                    role_id=admin.id,
                    is_primary=True,
                    assigned_by=admin_user_id,
                    assigned_at=utc_now(),
                )
            )
        except DuplicateAssignmentException:
            logger.info("User %s already holds admin role in tenant %s", admin_user_id, tenant_id)
