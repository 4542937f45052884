"""Firestore-backed user-role assignment repository (implements IRoleAssignmentRepository).

Documents are keyed by a digest of (tenant, user, role), so a second
assignment of the same role to the same user collides on create.
"""

from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Any

from app.domain.entities import RoleAssignmentEntity
from app.domain.exceptions import DuplicateAssignmentException
from app.infrastructure.firebase._rest_client import DocumentExistsError, FirestoreRESTClient
from app.infrastructure.firebase.collections import COLLECTION_USER_ROLES
from app.shared.utils.datetime import utc_now

_MAX_ASSIGNMENT_SCAN = 1000


def assignment_document_id(tenant_id: str, user_id: str, role_id: str) -> str:
    raw = f"{tenant_id}\x1f{user_id}\x1f{role_id}".encode()
    return hashlib.sha256(raw).hexdigest()


def assignment_to_document(a: RoleAssignmentEntity) -> dict[str, Any]:
    return {
        "id": a.id,
        "tenant_id": a.tenant_id,
        "user_id": a.user_id,
        "role_id": a.role_id,
        "is_primary": a.is_primary,
        "is_active": a.is_active,
        "assigned_by": a.assigned_by,
        "assigned_at": a.assigned_at,
        "expires_at": a.expires_at,
    }


def assignment_from_document(data: dict[str, Any]) -> RoleAssignmentEntity:
    return RoleAssignmentEntity(
        id=data.get("id", ""),
        tenant_id=data.get("tenant_id", ""),
        user_id=data.get("user_id", ""),
        role_id=data.get("role_id", ""),
        is_primary=bool(data.get("is_primary", False)),
        is_active=bool(data.get("is_active", True)),
        assigned_by=data.get("assigned_by"),
        assigned_at=data.get("assigned_at"),
        expires_at=data.get("expires_at"),
    )


def order_active_role_ids(
    assignments: list[RoleAssignmentEntity], now: datetime
) -> list[str]:
    """Role ids of effective assignments, primary first, then oldest first."""
    effective = [a for a in assignments if a.is_effective(now)]
    effective.sort(
        key=lambda a: (not a.is_primary, a.assigned_at.timestamp() if a.assigned_at else 0.0)
    )
    return list(dict.fromkeys(a.role_id for a in effective))


class FirestoreRoleAssignmentRepository:
    """User-role assignments stored in the user_roles collection."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_USER_ROLES)

    async def assign(self, assignment: RoleAssignmentEntity) -> RoleAssignmentEntity:
        doc_id = assignment_document_id(
            assignment.tenant_id, assignment.user_id, assignment.role_id
        )
        try:
            await self._coll.create(doc_id, assignment_to_document(assignment))
            return assignment
        except DocumentExistsError:
            pass
        existing = await self.get(assignment.user_id, assignment.role_id, assignment.tenant_id)
        if existing is not None and existing.is_effective():
            raise DuplicateAssignmentException(
                "Role already assigned to user",
                "user_role",
                {"user_id": assignment.user_id, "role_id": assignment.role_id},
            )
        # Expired or deactivated assignment: replace it.
        await self._coll.document(doc_id).set(assignment_to_document(assignment))
        return assignment

    async def get(self, user_id: str, role_id: str, tenant_id: str) -> RoleAssignmentEntity | None:
        doc = await self._coll.document(
            assignment_document_id(tenant_id, user_id, role_id)
        ).get()
        if not doc:
            return None
        return assignment_from_document(doc.to_dict())

    async def revoke(self, user_id: str, role_id: str, tenant_id: str) -> bool:
        if await self.get(user_id, role_id, tenant_id) is None:
            return False
        await self._coll.document(assignment_document_id(tenant_id, user_id, role_id)).delete()
        return True

    async def list_for_user(self, user_id: str, tenant_id: str) -> list[RoleAssignmentEntity]:
        q = (
            self._coll.where("tenant_id", "==", tenant_id)
            .where("user_id", "==", user_id)
            .limit(_MAX_ASSIGNMENT_SCAN)
        )
        return [assignment_from_document(s.to_dict()) async for s in q.stream()]

    async def get_active_role_ids(
        self, user_id: str, tenant_id: str, now: datetime | None = None
    ) -> list[str]:
        return order_active_role_ids(
            await self.list_for_user(user_id, tenant_id), now or utc_now()
        )

    async def count_active_for_role(self, role_id: str, tenant_id: str) -> int:
        q = (
            self._coll.where("tenant_id", "==", tenant_id)
            .where("role_id", "==", role_id)
            .where("is_active", "==", True)
            .limit(_MAX_ASSIGNMENT_SCAN)
        )
        now = utc_now()
        return sum(
            1 async for s in q.stream() if assignment_from_document(s.to_dict()).is_effective(now)
        )
