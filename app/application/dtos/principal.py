"""DTOs for permission checks (no dependency on HTTP or storage)."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PrincipalContext:
    """Who is asking, passed explicitly into every permission check.

    role_id is the role pre-resolved for this request (e.g. a token claim);
    when None the resolver looks up the user's active role assignments.
    entity carries the target's attributes for conditional permissions.
    """

    user_id: str
    tenant_id: str
    role_id: str | None = None
    entity: Mapping[str, Any] | None = None

    def for_entity(self, entity: Mapping[str, Any] | None) -> "PrincipalContext":
        """Return a copy of this context targeting entity."""
        return PrincipalContext(
            user_id=self.user_id,
            tenant_id=self.tenant_id,
            role_id=self.role_id,
            entity=entity,
        )


@dataclass(frozen=True)
class PermissionCheck:
    """One (resource, action) pair for batch checks (has_all / has_any)."""

    resource: str
    action: str
