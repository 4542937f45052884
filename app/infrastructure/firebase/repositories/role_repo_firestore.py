"""Firestore-backed role repository (implements IRoleRepository)."""

from __future__ import annotations

from typing import Any

from app.domain.entities import RoleEntity
from app.domain.exceptions import ValidationException
from app.infrastructure.firebase._rest_client import DocumentExistsError, FirestoreRESTClient
from app.infrastructure.firebase.collections import COLLECTION_ROLES

# Upper bound for array-contains scans (roles holding one permission).
_MAX_ROLE_SCAN = 1000


def role_to_document(role: RoleEntity) -> dict[str, Any]:
    return {
        "tenant_id": role.tenant_id,
        "code": role.code,
        "name": role.name,
        "description": role.description,
        "is_system": role.is_system,
        "is_active": role.is_active,
        "level": role.level,
        "permission_ids": list(role.permission_ids),
        "created_at": role.created_at,
        "updated_at": role.updated_at,
    }


def role_from_document(doc_id: str, data: dict[str, Any]) -> RoleEntity:
    return RoleEntity(
        id=doc_id,
        tenant_id=data.get("tenant_id", ""),
        code=data.get("code", ""),
        name=data.get("name", ""),
        description=data.get("description"),
        is_system=bool(data.get("is_system", False)),
        is_active=bool(data.get("is_active", True)),
        level=int(data.get("level") or 0),
        permission_ids=list(data.get("permission_ids") or []),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


class FirestoreRoleRepository:
    """Role repository using Firestore; one document per role, keyed by role id."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_ROLES)

    async def create_role(self, role: RoleEntity) -> RoleEntity:
        try:
            await self._coll.create(role.id, role_to_document(role))
        except DocumentExistsError as e:
            raise ValidationException("Role id already exists", field="id") from e
        return role

    async def get_by_id(self, role_id: str, tenant_id: str) -> RoleEntity | None:
        doc = await self._coll.document(role_id).get()
        if not doc:
            return None
        data = doc.to_dict()
        if data.get("tenant_id") != tenant_id:
            return None
        return role_from_document(doc.id, data)

    async def get_by_code(self, code: str, tenant_id: str) -> RoleEntity | None:
        q = self._coll.where("tenant_id", "==", tenant_id).where("code", "==", code).limit(1)
        async for snapshot in q.stream():
            return role_from_document(snapshot.id, snapshot.to_dict())
        return None

    async def get_many(self, role_ids: list[str], tenant_id: str) -> list[RoleEntity]:
        snapshots = await self._coll.get_all(role_ids)
        return [
            role_from_document(s.id, s.to_dict())
            for s in snapshots
            if s.to_dict().get("tenant_id") == tenant_id
        ]

    async def list_by_tenant(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        *,
        include_inactive: bool = False,
    ) -> list[RoleEntity]:
        q = self._coll.where("tenant_id", "==", tenant_id)
        if not include_inactive:
            q = q.where("is_active", "==", True)
        q = q.offset(skip).limit(limit)
        return [role_from_document(s.id, s.to_dict()) async for s in q.stream()]

    async def save(self, role: RoleEntity) -> RoleEntity:
        await self._coll.document(role.id).set(role_to_document(role))
        return role

    async def delete(self, role_id: str, tenant_id: str) -> bool:
        if await self.get_by_id(role_id, tenant_id) is None:
            return False
        await self._coll.document(role_id).delete()
        return True

    async def find_with_permission(self, permission_id: str, tenant_id: str) -> list[RoleEntity]:
        q = (
            self._coll.where("tenant_id", "==", tenant_id)
            .where("permission_ids", "array-contains", permission_id)
            .limit(_MAX_ROLE_SCAN)
        )
        return [role_from_document(s.id, s.to_dict()) async for s in q.stream()]
