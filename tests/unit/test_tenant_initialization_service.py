"""Tests for TenantInitializationService (default permissions and system roles)."""

import pytest

from app.application.dtos import PrincipalContext
from app.application.services import AuthorizationService
from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.memory import (
    InMemoryPermissionRepository,
    InMemoryRoleAssignmentRepository,
    InMemoryRoleRepository,
)
from app.infrastructure.services import TenantInitializationService
from app.infrastructure.services.tenant_initialization_service import (
    DEFAULT_ROLES,
    SYSTEM_PERMISSIONS,
    resolve_permission_pattern,
)

TENANT = "t1"


@pytest.fixture
def seeder(
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> TenantInitializationService:
    return TenantInitializationService(role_repo, permission_repo, assignment_repo)


def test_resolve_permission_pattern() -> None:
    permission_map = {"lease:read": "p1", "lease:update": "p2", "unit:read": "p3", "*:*": "p4"}
    assert sorted(resolve_permission_pattern("lease:*", permission_map)) == ["p1", "p2"]
    assert resolve_permission_pattern("unit:read", permission_map) == ["p3"]
    assert resolve_permission_pattern("*:*", permission_map) == ["p4"]
    assert resolve_permission_pattern("ghost:read", permission_map) == []


async def test_seeds_every_permission_and_system_role(
    seeder: TenantInitializationService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
) -> None:
    role_map = await seeder.initialize_tenant_rbac(TENANT)
    assert set(role_map) == set(DEFAULT_ROLES)
    perms = await permission_repo.list_by_tenant(TENANT, limit=1000)
    assert len(perms) == len(SYSTEM_PERMISSIONS)
    roles = await role_repo.list_by_tenant(TENANT)
    assert all(r.is_system for r in roles)


async def test_initialization_is_idempotent(
    seeder: TenantInitializationService, permission_repo: InMemoryPermissionRepository
) -> None:
    first = await seeder.initialize_tenant_rbac(TENANT)
    second = await seeder.initialize_tenant_rbac(TENANT)
    assert first == second
    assert len(await permission_repo.list_by_tenant(TENANT, limit=1000)) == len(SYSTEM_PERMISSIONS)


async def test_landlord_wildcards_expand_to_seeded_actions(
    seeder: TenantInitializationService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
) -> None:
    role_map = await seeder.initialize_tenant_rbac(TENANT)
    landlord = await role_repo.get_by_id(role_map["landlord"], TENANT)
    codes = {p.code for p in await permission_repo.get_many(landlord.permission_ids, TENANT)}
    assert {"property:create", "property:delete", "lease:list"} <= codes
    assert "role:create" not in codes
    assert "*:*" not in codes


async def test_admin_assignment_grants_everything(
    seeder: TenantInitializationService, authz: AuthorizationService
) -> None:
    await seeder.initialize_tenant_rbac(TENANT)
    await seeder.assign_admin_role(TENANT, "owner-1")
    await seeder.assign_admin_role(TENANT, "owner-1")
    principal = PrincipalContext("owner-1", TENANT)
    assert await authz.can("lease", "delete", principal) is True
    assert await authz.can("role", "manage_permissions", principal) is True


async def test_assign_admin_before_seeding_is_not_found(
    seeder: TenantInitializationService,
) -> None:
    with pytest.raises(ResourceNotFoundException):
        await seeder.assign_admin_role(TENANT, "owner-1")
