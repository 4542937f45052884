"""Role domain entity.

Represents a named bundle of permissions within a tenant, independent of
persistence. Permission ids are kept in assignment order.
"""

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.exceptions import SystemRoleProtectedException, ValidationException
from app.domain.value_objects.core import RoleCode


@dataclass
class RoleEntity:
    """Domain entity for role (SRP: business rules separate from persistence).

    System roles are seeded per tenant and cannot be edited or deleted
    through the API. Validation runs on construction.
    """

    id: str
    tenant_id: str
    code: str
    name: str
    description: str | None = None
    is_system: bool = False
    is_active: bool = True
    level: int = 0
    permission_ids: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate role business rules. Raises ValidationException if invalid."""
        if not self.id:
            raise ValidationException("Role ID is required", field="id")
        if not self.name or not self.name.strip():
            raise ValidationException("Role name is required", field="name")
        try:
            RoleCode(self.code)
        except ValueError as e:
            raise ValidationException(str(e), field="code") from e

    def ensure_mutable(self) -> None:
        """Raise SystemRoleProtectedException for system roles."""
        if self.is_system:
            raise SystemRoleProtectedException(self.id)

    def has_permission(self, permission_id: str) -> bool:
        return permission_id in self.permission_ids

    def add_permission(self, permission_id: str) -> bool:
        """Append permission_id if absent. Returns False when already present."""
        if permission_id in self.permission_ids:
            return False
        self.permission_ids.append(permission_id)
        return True

    def remove_permission(self, permission_id: str) -> bool:
        """Remove permission_id. Returns False when it was not assigned."""
        if permission_id not in self.permission_ids:
            return False
        self.permission_ids.remove(permission_id)
        return True

    def replace_permissions(self, permission_ids: list[str]) -> None:
        """Replace the permission set, keeping first-seen order and dropping duplicates."""
        self.permission_ids = list(dict.fromkeys(permission_ids))
