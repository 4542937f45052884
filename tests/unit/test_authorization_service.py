"""Tests for AuthorizationService: role resolution, conditions, caching, fail-closed behavior."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.application.dtos import PermissionCheck, PrincipalContext
from app.application.services import AuthorizationService
from app.domain.entities import PermissionEntity, RoleAssignmentEntity, RoleEntity
from app.domain.enums import ConditionOperator
from app.domain.exceptions import AuthorizationException, StoreUnavailableException
from app.domain.value_objects import PermissionCondition
from app.infrastructure.cache import MemoryCacheService, permission_key
from app.infrastructure.memory import (
    InMemoryPermissionRepository,
    InMemoryRoleAssignmentRepository,
    InMemoryRoleRepository,
)
from app.shared.utils import utc_now

TENANT = "t1"
USER = "u1"


async def _grant_role(
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
    permissions: list[PermissionEntity],
    *,
    role_id: str = "r1",
    user_id: str = USER,
) -> RoleEntity:
    for perm in permissions:
        await permission_repo.create_permission(perm)
    role = RoleEntity(
        id=role_id,
        tenant_id=TENANT,
        code=f"role-{role_id}",
        name=f"Role {role_id}",
        permission_ids=[p.id for p in permissions],
    )
    await role_repo.create_role(role)
    await assignment_repo.assign(
        RoleAssignmentEntity(id=f"a-{role_id}-{user_id}", tenant_id=TENANT, user_id=user_id, role_id=role_id)
    )
    return role


def _perm(pid: str, resource: str, action: str, *conditions: PermissionCondition) -> PermissionEntity:
    return PermissionEntity(
        id=pid, tenant_id=TENANT, resource=resource, action=action, conditions=tuple(conditions)
    )


async def test_user_without_role_is_denied(authz: AuthorizationService) -> None:
    """No active assignment resolves to no role, which denies."""
    principal = PrincipalContext(user_id=USER, tenant_id=TENANT)
    assert await authz.can("lease", "read", principal) is False
    assert await authz.get_effective_permissions(principal) == []


async def test_granted_permission_allows(
    authz: AuthorizationService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p1", "lease", "read")])
    principal = PrincipalContext(user_id=USER, tenant_id=TENANT)
    assert await authz.can("lease", "read", principal) is True
    assert await authz.can("lease", "delete", principal) is False


async def test_wildcard_permission_covers_every_action(
    authz: AuthorizationService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p1", "unit", "*")])
    principal = PrincipalContext(user_id=USER, tenant_id=TENANT)
    assert await authz.can("unit", "delete", principal) is True
    assert await authz.can("lease", "delete", principal) is False


async def test_conditions_are_anded_against_entity(
    authz: AuthorizationService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    """A conditional permission allows only when every condition holds for the entity."""
    perm = _perm(
        "p1",
        "lease",
        "update",
        PermissionCondition("owner_id", ConditionOperator.EQ, USER),
        PermissionCondition("status", ConditionOperator.IN, ["draft", "pending"]),
    )
    await _grant_role(role_repo, permission_repo, assignment_repo, [perm])
    principal = PrincipalContext(user_id=USER, tenant_id=TENANT)

    ok = principal.for_entity({"owner_id": USER, "status": "draft"})
    wrong_status = principal.for_entity({"owner_id": USER, "status": "signed"})
    assert await authz.can("lease", "update", ok) is True
    assert await authz.can("lease", "update", wrong_status) is False
    assert await authz.can("lease", "update", principal) is False


async def test_expired_assignment_is_ignored(
    authz: AuthorizationService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    await permission_repo.create_permission(_perm("p1", "lease", "read"))
    await role_repo.create_role(
        RoleEntity(id="r1", tenant_id=TENANT, code="viewer", name="Viewer", permission_ids=["p1"])
    )
    await assignment_repo.assign(
        RoleAssignmentEntity(
            id="a1",
            tenant_id=TENANT,
            user_id=USER,
            role_id="r1",
            expires_at=utc_now() - timedelta(minutes=1),
        )
    )
    assert await authz.can("lease", "read", PrincipalContext(USER, TENANT)) is False


async def test_inactive_role_contributes_nothing(
    authz: AuthorizationService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    role = await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p1", "lease", "read")])
    role.is_active = False
    await role_repo.save(role)
    assert await authz.can("lease", "read", PrincipalContext(USER, TENANT)) is False


async def test_pre_resolved_role_skips_assignment_lookup(
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
) -> None:
    """principal.role_id is evaluated directly; the assignment store is not queried."""
    await permission_repo.create_permission(_perm("p1", "payment", "read"))
    await role_repo.create_role(
        RoleEntity(id="r9", tenant_id=TENANT, code="accountant", name="Accountant", permission_ids=["p1"])
    )
    assignments = AsyncMock()
    service = AuthorizationService(role_repo, permission_repo, assignments)
    principal = PrincipalContext(user_id=USER, tenant_id=TENANT, role_id="r9")
    assert await service.can("payment", "read", principal) is True
    assignments.get_active_role_ids.assert_not_called()


async def test_multiple_roles_union_permissions(
    authz: AuthorizationService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p1", "lease", "read")], role_id="r1")
    await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p2", "unit", "read")], role_id="r2")
    principal = PrincipalContext(USER, TENANT)
    perms = await authz.get_effective_permissions(principal)
    assert {p.code for p in perms} == {"lease:read", "unit:read"}
    assert await authz.has_all(
        [PermissionCheck("lease", "read"), PermissionCheck("unit", "read")], principal
    )


async def test_has_all_and_has_any_edge_cases(authz: AuthorizationService) -> None:
    """Empty has_all is vacuously True; empty has_any is False."""
    principal = PrincipalContext(USER, TENANT)
    assert await authz.has_all([], principal) is True
    assert await authz.has_any([], principal) is False
    assert await authz.has_any([PermissionCheck("lease", "read")], principal) is False


async def test_require_raises_generic_authorization_exception(authz: AuthorizationService) -> None:
    with pytest.raises(AuthorizationException) as exc_info:
        await authz.require("lease", "delete", PrincipalContext(USER, TENANT))
    assert exc_info.value.resource == "lease"
    assert exc_info.value.details == {}


async def test_permission_set_is_cached_per_role(
    authz: AuthorizationService,
    cache: MemoryCacheService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    """Second check is served from cache without touching the role store."""
    await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p1", "lease", "read")])
    principal = PrincipalContext(USER, TENANT)
    assert await authz.can("lease", "read", principal) is True
    assert await cache.get(permission_key(TENANT, "r1")) is not None

    role_repo.get_many = AsyncMock(side_effect=AssertionError("store should not be hit"))
    assert await authz.can("lease", "read", principal) is True


async def test_stalled_cache_is_treated_as_miss(
    cache: MemoryCacheService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    """Cache calls slower than the timeout fall through to the store."""
    await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p1", "lease", "read")])

    async def stall(*args: object, **kwargs: object) -> None:
        await asyncio.sleep(30)

    cache.get = AsyncMock(side_effect=stall)
    cache.set = AsyncMock(side_effect=stall)
    service = AuthorizationService(
        role_repo, permission_repo, assignment_repo, cache=cache, cache_timeout_seconds=0.05
    )
    allowed = await asyncio.wait_for(
        service.can("lease", "read", PrincipalContext(USER, TENANT)), timeout=2
    )
    assert allowed is True


@pytest.mark.parametrize(
    "entry",
    [
        [{"id": "p1"}],
        "not-a-list",
        [
            {
                "id": "p1",
                "tenant_id": TENANT,
                "resource": "lease",
                "action": "read",
                "conditions": [{"field": "status", "operator": "not_in", "value": "archived"}],
            }
        ],
    ],
)
async def test_malformed_cache_entry_is_refetched(
    entry: object,
    authz: AuthorizationService,
    cache: MemoryCacheService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p1", "lease", "read")])
    await cache.set(permission_key(TENANT, "r1"), entry, ttl=60)
    assert await authz.can("lease", "read", PrincipalContext(USER, TENANT)) is True
    assert await cache.get(permission_key(TENANT, "r1")) != entry


async def test_revoke_with_invalidation_takes_effect(
    authz: AuthorizationService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    role = await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p1", "lease", "read")])
    principal = PrincipalContext(USER, TENANT)
    assert await authz.can("lease", "read", principal) is True

    role.remove_permission("p1")
    await role_repo.save(role)
    await authz.invalidate_role(TENANT, "r1")
    assert await authz.can("lease", "read", principal) is False


async def test_invalidate_tenant_clears_all_role_entries(
    authz: AuthorizationService,
    cache: MemoryCacheService,
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p1", "lease", "read")])
    await authz.can("lease", "read", PrincipalContext(USER, TENANT))
    await cache.set(permission_key("other", "r1"), [], ttl=60)
    await authz.invalidate_tenant(TENANT)
    assert await cache.get(permission_key(TENANT, "r1")) is None
    assert await cache.get(permission_key("other", "r1")) == []


async def test_store_failure_propagates_instead_of_allowing(
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    """An unreachable store surfaces as StoreUnavailableException, never as allow."""
    await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p1", "lease", "read")])
    permission_repo.get_many = AsyncMock(side_effect=StoreUnavailableException("get_many", "timeout"))
    service = AuthorizationService(role_repo, permission_repo, assignment_repo)
    with pytest.raises(StoreUnavailableException):
        await service.can("lease", "read", PrincipalContext(USER, TENANT))


async def test_works_without_cache(
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
) -> None:
    await _grant_role(role_repo, permission_repo, assignment_repo, [_perm("p1", "lease", "read")])
    service = AuthorizationService(role_repo, permission_repo, assignment_repo, cache=None)
    assert await service.can("lease", "read", PrincipalContext(USER, TENANT)) is True
