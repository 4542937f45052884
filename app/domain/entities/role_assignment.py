"""Role assignment entity: links a user to a role within a tenant."""

from dataclasses import dataclass
from datetime import datetime

from app.shared.utils.datetime import ensure_utc, utc_now


@dataclass
class RoleAssignmentEntity:
    """User-role link with primary flag and optional expiry.

    Only active, non-expired assignments take part in permission checks.
    """

    id: str
    tenant_id: str
    user_id: str
    role_id: str
    is_primary: bool = False
    is_active: bool = True
    assigned_by: str | None = None
    assigned_at: datetime | None = None
    expires_at: datetime | None = None

    def is_effective(self, now: datetime | None = None) -> bool:
        """Return True if the assignment is active and not expired at now."""
        if not self.is_active:
            return False
        if self.expires_at is None:
            return True
        return ensure_utc(self.expires_at) > (now or utc_now())
