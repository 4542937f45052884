"""Firestore-backed repository implementations (swappable with the in-memory ones)."""

from app.infrastructure.firebase.repositories.permission_repo_firestore import (
    FirestorePermissionRepository,
)
from app.infrastructure.firebase.repositories.role_assignment_repo_firestore import (
    FirestoreRoleAssignmentRepository,
)
from app.infrastructure.firebase.repositories.role_repo_firestore import (
    FirestoreRoleRepository,
)

__all__ = [
    "FirestorePermissionRepository",
    "FirestoreRoleAssignmentRepository",
    "FirestoreRoleRepository",
]
