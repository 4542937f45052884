"""Domain value objects for RBAC identifiers.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

# Shared tag pattern: lowercase alphanumeric with optional hyphen/underscore separators.
_TAG_RE = re.compile(r"^[a-z0-9]+([_-][a-z0-9]+)*$")

WILDCARD = "*"


def _validate_tag(
    value: str,
    max_len: int,
    field_name: str,
    *,
    allow_wildcard: bool = False,
) -> None:
    """Validate non-empty, length, and tag format. Raises ValueError on failure."""
    if not value:
        raise ValueError(f"{field_name} must be a non-empty string")
    if allow_wildcard and value == WILDCARD:
        return
    if len(value) > max_len:
        raise ValueError(f"{field_name} must not exceed {max_len} characters")
    if not _TAG_RE.match(value):
        raise ValueError(
            f"{field_name} must be lowercase alphanumeric with optional '-' or '_' (e.g., 'contracts', 'work-orders')"
        )


@dataclass(frozen=True)
class RoleCode:
    """Value object for role code (e.g. 'landlord', 'property-manager'). Max 64 characters."""

    value: str

    def __post_init__(self) -> None:
        _validate_tag(self.value, max_len=64, field_name="Role code")


@dataclass(frozen=True)
class PermissionCode:
    """Value object for a resource:action pair.

    Resource and action are tags; either may be the wildcard '*'
    (e.g. 'contracts:*' grants every action on contracts).
    """

    resource: str
    action: str

    SEPARATOR: ClassVar[str] = ":"

    def __post_init__(self) -> None:
        _validate_tag(self.resource, max_len=100, field_name="Resource", allow_wildcard=True)
        _validate_tag(self.action, max_len=64, field_name="Action", allow_wildcard=True)

    @property
    def value(self) -> str:
        return f"{self.resource}{self.SEPARATOR}{self.action}"

    @classmethod
    def parse(cls, code: str) -> "PermissionCode":
        """Parse 'resource:action'.

        Raises:
            ValueError: If the separator is missing or either part is invalid.
        """
        resource, sep, action = code.partition(cls.SEPARATOR)
        if not sep:
            raise ValueError(f"Permission code must be 'resource:action', got {code!r}")
        return cls(resource=resource, action=action)

    def covers(self, resource: str, action: str) -> bool:
        """Return True if this code grants (resource, action), honoring wildcards."""
        return self.resource in (WILDCARD, resource) and self.action in (WILDCARD, action)
