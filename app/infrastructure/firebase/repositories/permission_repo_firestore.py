"""Firestore-backed permission repository (implements IPermissionRepository)."""

from __future__ import annotations

from typing import Any

from app.domain.entities import PermissionEntity
from app.domain.exceptions import ValidationException
from app.domain.value_objects import PermissionCondition
from app.infrastructure.firebase._rest_client import DocumentExistsError, FirestoreRESTClient
from app.infrastructure.firebase.collections import COLLECTION_PERMISSIONS


def permission_to_document(permission: PermissionEntity) -> dict[str, Any]:
    return {
        "tenant_id": permission.tenant_id,
        "code": permission.code,
        "resource": permission.resource,
        "action": permission.action,
        "description": permission.description,
        "conditions": [c.to_dict() for c in permission.conditions],
    }


def permission_from_document(doc_id: str, data: dict[str, Any]) -> PermissionEntity:
    return PermissionEntity(
        id=doc_id,
        tenant_id=data.get("tenant_id", ""),
        resource=data.get("resource", ""),
        action=data.get("action", ""),
        description=data.get("description"),
        conditions=tuple(
            PermissionCondition.from_dict(c) for c in data.get("conditions") or []
        ),
    )


class FirestorePermissionRepository:
    """Permission repository using Firestore; one document per permission."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_PERMISSIONS)

    async def create_permission(self, permission: PermissionEntity) -> PermissionEntity:
        try:
            await self._coll.create(permission.id, permission_to_document(permission))
        except DocumentExistsError as e:
            raise ValidationException("Permission id already exists", field="id") from e
        return permission

    async def get_by_id(self, permission_id: str, tenant_id: str) -> PermissionEntity | None:
        doc = await self._coll.document(permission_id).get()
        if not doc:
            return None
        data = doc.to_dict()
        if data.get("tenant_id") != tenant_id:
            return None
        return permission_from_document(doc.id, data)

    async def get_by_code(self, code: str, tenant_id: str) -> PermissionEntity | None:
        q = self._coll.where("tenant_id", "==", tenant_id).where("code", "==", code).limit(1)
        async for snapshot in q.stream():
            return permission_from_document(snapshot.id, snapshot.to_dict())
        return None

    async def get_many(self, permission_ids: list[str], tenant_id: str) -> list[PermissionEntity]:
        snapshots = await self._coll.get_all(permission_ids)
        return [
            permission_from_document(s.id, s.to_dict())
            for s in snapshots
            if s.to_dict().get("tenant_id") == tenant_id
        ]

    async def list_by_tenant(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        resource: str | None = None,
    ) -> list[PermissionEntity]:
        q = self._coll.where("tenant_id", "==", tenant_id)
        if resource:
            q = q.where("resource", "==", resource)
        q = q.offset(skip).limit(limit)
        return [permission_from_document(s.id, s.to_dict()) async for s in q.stream()]

    async def update_permission(
        self,
        permission_id: str,
        tenant_id: str,
        *,
        description: str | None = None,
        conditions: tuple[PermissionCondition, ...] | None = None,
    ) -> PermissionEntity | None:
        current = await self.get_by_id(permission_id, tenant_id)
        if current is None:
            return None
        updated = current.with_changes(description=description, conditions=conditions)
        await self._coll.document(permission_id).set(permission_to_document(updated))
        return updated

    async def delete(self, permission_id: str, tenant_id: str) -> bool:
        if await self.get_by_id(permission_id, tenant_id) is None:
            return False
        await self._coll.document(permission_id).delete()
        return True
