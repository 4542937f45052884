"""Authorization service: permission checks over role assignments with optional caching.

Resolves the principal's role(s), batch-fetches the roles' permission sets
(through a per-role cache), and matches (resource, action) plus any
attribute conditions. Fails closed: no resolvable role denies, and store
errors propagate as StoreUnavailableException instead of allowing.

Cache consistency: a grant/revoke invalidates the role's entry on the
instance that performed it; other instances see the change within cache_ttl.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from app.application.dtos.principal import PermissionCheck, PrincipalContext
from app.application.interfaces.repositories import (
    IPermissionRepository,
    IRoleAssignmentRepository,
    IRoleRepository,
)
from app.application.interfaces.services import ICacheService
from app.domain.entities import PermissionEntity
from app.domain.exceptions import AuthorizationException
from app.domain.value_objects import PermissionCondition
from app.infrastructure.cache.keys import permission_key, tenant_permission_pattern
from app.shared.telemetry.tracing import add_span_attributes, traced

logger = logging.getLogger(__name__)


def _permission_to_cache(p: PermissionEntity) -> dict[str, Any]:
    return {
        "id": p.id,
        "tenant_id": p.tenant_id,
        "resource": p.resource,
        "action": p.action,
        "description": p.description,
        "conditions": [c.to_dict() for c in p.conditions],
    }


def _permission_from_cache(data: dict[str, Any]) -> PermissionEntity:
    return PermissionEntity(
        id=data["id"],
        tenant_id=data["tenant_id"],
        resource=data["resource"],
        action=data["action"],
        description=data.get("description"),
        conditions=tuple(
            PermissionCondition.from_dict(c) for c in data.get("conditions") or []
        ),
    )


class AuthorizationService:
    """Centralized permission checking; caches permission sets per role (5 min TTL typical)."""

    def __init__(
        self,
        role_repo: IRoleRepository,
        permission_repo: IPermissionRepository,
        assignment_repo: IRoleAssignmentRepository,
        cache: ICacheService | None = None,
        cache_ttl: int = 300,
        cache_timeout_seconds: float | None = None,
    ) -> None:
        self.role_repo = role_repo
        self.permission_repo = permission_repo
        self.assignment_repo = assignment_repo
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.cache_timeout_seconds = cache_timeout_seconds

    def _cache_ready(self) -> bool:
        return self.cache is not None and self.cache.is_available()

    async def _cached_permissions(
        self, tenant_id: str, role_id: str
    ) -> list[PermissionEntity] | None:
        """Cached permission set for role_id, or None on a miss.

        A slow cache or an unreadable entry counts as a miss; the store is
        the source of truth.
        """
        key = permission_key(tenant_id, role_id)
        try:
            cached = await asyncio.wait_for(
                self.cache.get(key), timeout=self.cache_timeout_seconds
            )
        except TimeoutError:
            logger.warning("Permission cache get timed out for %s", key)
            return None
        if cached is None:
            return None
        try:
            return [_permission_from_cache(d) for d in cached]
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed permission cache entry %s", key)
            return None

    async def _cache_permissions(
        self, tenant_id: str, role_id: str, perms: list[PermissionEntity]
    ) -> None:
        key = permission_key(tenant_id, role_id)
        try:
            await asyncio.wait_for(
                self.cache.set(key, [_permission_to_cache(p) for p in perms], ttl=self.cache_ttl),
                timeout=self.cache_timeout_seconds,
            )
        except TimeoutError:
            logger.warning("Permission cache set timed out for %s", key)

    async def resolve_role_ids(self, principal: PrincipalContext) -> list[str]:
        """Return the role ids to evaluate: the pre-resolved role, else active assignments."""
        if principal.role_id:
            return [principal.role_id]
        return await self.assignment_repo.get_active_role_ids(
            principal.user_id, principal.tenant_id
        )

    async def get_permissions_for_roles(
        self, tenant_id: str, role_ids: Iterable[str]
    ) -> list[PermissionEntity]:
        """Return the union of the roles' permissions (cache first, one batch fetch for misses).

        Inactive or unknown roles contribute nothing.
        """
        ordered_ids = list(dict.fromkeys(role_ids))
        by_role: dict[str, list[PermissionEntity]] = {}
        misses: list[str] = []
        for role_id in ordered_ids:
            cached = None
            if self._cache_ready():
                cached = await self._cached_permissions(tenant_id, role_id)
            if cached is None:
                misses.append(role_id)
            else:
                by_role[role_id] = cached

        if misses:
            fetched = await self._fetch_role_permissions(tenant_id, misses)
            for role_id in misses:
                perms = fetched.get(role_id, [])
                by_role[role_id] = perms
                if self._cache_ready():
                    await self._cache_permissions(tenant_id, role_id, perms)

        seen: set[str] = set()
        result: list[PermissionEntity] = []
        for role_id in ordered_ids:
            for perm in by_role.get(role_id, []):
                if perm.id not in seen:
                    seen.add(perm.id)
                    result.append(perm)
        return result

    async def _fetch_role_permissions(
        self, tenant_id: str, role_ids: list[str]
    ) -> dict[str, list[PermissionEntity]]:
        """Two batch reads: roles, then every referenced permission at once."""
        roles = [
            r for r in await self.role_repo.get_many(role_ids, tenant_id) if r.is_active
        ]
        all_ids = list(dict.fromkeys(pid for r in roles for pid in r.permission_ids))
        perms = await self.permission_repo.get_many(all_ids, tenant_id) if all_ids else []
        perms_by_id = {p.id: p for p in perms}
        return {
            r.id: [perms_by_id[pid] for pid in r.permission_ids if pid in perms_by_id]
            for r in roles
        }

    async def get_effective_permissions(
        self, principal: PrincipalContext
    ) -> list[PermissionEntity]:
        """Return de-duplicated permissions for the principal's resolved roles."""
        role_ids = await self.resolve_role_ids(principal)
        if not role_ids:
            return []
        return await self.get_permissions_for_roles(principal.tenant_id, role_ids)

    @staticmethod
    def _matches(
        permissions: list[PermissionEntity],
        resource: str,
        action: str,
        principal: PrincipalContext,
    ) -> bool:
        return any(p.grants(resource, action, principal.entity) for p in permissions)

    @traced("authorization.can")
    async def can(self, resource: str, action: str, principal: PrincipalContext) -> bool:
        """Return True iff some permission of the principal's role(s) grants resource:action.

        Conditional permissions count only when all their conditions hold for
        principal.entity. No active role -> False.
        """
        permissions = await self.get_effective_permissions(principal)
        allowed = self._matches(permissions, resource, action, principal)
        add_span_attributes(
            **{"authz.resource": resource, "authz.action": action, "authz.allowed": allowed}
        )
        if not allowed:
            logger.debug(
                "Permission denied: user=%s tenant=%s %s:%s",
                principal.user_id,
                principal.tenant_id,
                resource,
                action,
            )
        return allowed

    async def require(self, resource: str, action: str, principal: PrincipalContext) -> None:
        """Raise AuthorizationException if the principal lacks resource:action."""
        if not await self.can(resource, action, principal):
            logger.info(
                "Authorization failed: user=%s tenant=%s %s:%s",
                principal.user_id,
                principal.tenant_id,
                resource,
                action,
            )
            raise AuthorizationException(resource=resource, action=action)

    async def has_all(
        self, checks: list[PermissionCheck], principal: PrincipalContext
    ) -> bool:
        """Return True if every (resource, action) is granted. Empty list -> True."""
        permissions = await self.get_effective_permissions(principal)
        return all(
            self._matches(permissions, c.resource, c.action, principal) for c in checks
        )

    async def has_any(
        self, checks: list[PermissionCheck], principal: PrincipalContext
    ) -> bool:
        """Return True if at least one (resource, action) is granted. Empty list -> False."""
        permissions = await self.get_effective_permissions(principal)
        return any(
            self._matches(permissions, c.resource, c.action, principal) for c in checks
        )

    async def invalidate_role(self, tenant_id: str, role_id: str) -> None:
        """Invalidate the cached permission set for one role."""
        if self._cache_ready():
            await self.cache.delete(permission_key(tenant_id, role_id))

    async def invalidate_roles(self, tenant_id: str, role_ids: Iterable[str]) -> None:
        for role_id in dict.fromkeys(role_ids):
            await self.invalidate_role(tenant_id, role_id)

    async def invalidate_tenant(self, tenant_id: str) -> None:
        """Invalidate all cached permission sets for a tenant."""
        if self._cache_ready():
            await self.cache.delete_pattern(tenant_permission_pattern(tenant_id))
