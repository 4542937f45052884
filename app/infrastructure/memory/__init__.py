"""In-process backends for DATABASE_BACKEND=memory."""

from app.infrastructure.memory.repositories import (
    InMemoryPermissionRepository,
    InMemoryRoleAssignmentRepository,
    InMemoryRoleRepository,
)

__all__ = [
    "InMemoryPermissionRepository",
    "InMemoryRoleAssignmentRepository",
    "InMemoryRoleRepository",
]
