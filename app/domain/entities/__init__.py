"""Domain entities and aggregates.

Pure domain models; no persistence concerns.
"""

from app.domain.entities.permission import PermissionEntity
from app.domain.entities.role import RoleEntity
from app.domain.entities.role_assignment import RoleAssignmentEntity

__all__ = [
    "PermissionEntity",
    "RoleAssignmentEntity",
    "RoleEntity",
]
