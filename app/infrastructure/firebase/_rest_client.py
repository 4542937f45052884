"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1. All HTTP
calls go through httpx.AsyncClient with a bounded timeout; transport errors,
timeouts and non-success responses surface as StoreUnavailableException so
permission checks fail closed.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

import httpx
from google.auth import exceptions as google_auth_exceptions

from app.domain.exceptions import StoreUnavailableException
from app.infrastructure.firebase._rest_encoding import (
    decode_document,
    encode_document,
    encode_value,
)

logger = logging.getLogger(__name__)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


class DocumentExistsError(Exception):
    """Raised when createDocument returns 409 (document ID already exists)."""


class DocumentSnapshot:
    """Snapshot of a document (id + data)."""

    def __init__(self, id_: str, data: dict):
        self.id = id_
        self._data = data

    def to_dict(self) -> dict:
        return self._data


def _snapshot(doc: dict) -> DocumentSnapshot:
    name = doc.get("name", "")
    return DocumentSnapshot(name.split("/")[-1] if name else "", decode_document(doc))


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path

    async def set(self, data: dict[str, Any]) -> None:
        """Create or overwrite the document (PATCH with full replace)."""
        await self._client.request(
            f"{_BASE}/{self._path}", "PATCH", encode_document(data), operation="set"
        )

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        out = await self._client.request(f"{_BASE}/{self._path}", operation="get")
        if not out:
            return None
        return DocumentSnapshot(self._path.split("/")[-1], decode_document(out))

    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing (404)."""
        await self._client.request(f"{_BASE}/{self._path}", "DELETE", operation="delete")


_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
    "in": "IN",
    "not-in": "NOT_IN",
    "array-contains": "ARRAY_CONTAINS",
    "array-contains-any": "ARRAY_CONTAINS_ANY",
}


class _Query:
    """Fluent query builder for a collection; runs via runQuery.

    Chained where() calls are combined with AND (compositeFilter).
    """

    def __init__(self, client: FirestoreRESTClient, parent: str, collection_id: str):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._filters: list[dict[str, Any]] = []
        self._order_by_field: str | None = None
        self._order_direction: str = "ASCENDING"
        self._offset: int = 0
        self._limit: int = 100

    def where(self, field: str, op: str, value: Any) -> _Query:
        self._filters.append(
            {
                "fieldFilter": {
                    "field": {"fieldPath": field},
                    "op": _OP_MAP.get(op, op),
                    "value": encode_value(value),
                }
            }
        )
        return self

    def order_by(self, field: str, direction: str = "ASCENDING") -> _Query:
        self._order_by_field = field
        self._order_direction = direction
        return self

    def offset(self, n: int) -> _Query:
        self._offset = n
        return self

    def limit(self, n: int) -> _Query:
        self._limit = n
        return self

    def _structured_query(self) -> dict[str, Any]:
        structured: dict[str, Any] = {"from": [{"collectionId": self._collection_id}]}
        if len(self._filters) == 1:
            structured["where"] = self._filters[0]
        elif self._filters:
            structured["where"] = {
                "compositeFilter": {"op": "AND", "filters": self._filters}
            }
        if self._order_by_field is not None:
            structured["orderBy"] = [
                {
                    "field": {"fieldPath": self._order_by_field},
                    "direction": self._order_direction,
                }
            ]
        if self._offset:
            structured["offset"] = self._offset
        if self._limit:
            structured["limit"] = self._limit
        return structured

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """Execute the query and yield document snapshots."""
        resp = await self._client.request(
            f"{_BASE}/{self._parent}:runQuery",
            "POST",
            {"structuredQuery": self._structured_query()},
            operation=f"query:{self._collection_id}",
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        for item in items:
            if "document" in item:
                yield _snapshot(item["document"])


class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path.rstrip("/")
        self.id = self._path.split("/")[-1]

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self._path}/{document_id}")

    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        """Create a document with the given ID (DocumentExistsError if it exists)."""
        url = f"{_BASE}/{self._path}?documentId={quote(document_id, safe='')}"
        await self._client.request(url, "POST", encode_document(data), operation="create")

    def where(self, field: str, op: str, value: Any) -> _Query:
        """Start a query with a filter. Chain .where(), .order_by(), .limit(), then .stream()."""
        parent = self._path.rsplit("/", 1)[0]
        return _Query(self._client, parent, self.id).where(field, op, value)

    async def get_all(self, document_ids: list[str]) -> list[DocumentSnapshot]:
        """Fetch many documents in one batchGet round trip (missing ids skipped)."""
        if not document_ids:
            return []
        return await self._client.batch_get(
            [f"{self._path}/{doc_id}" for doc_id in dict.fromkeys(document_ids)]
        )


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._database = f"projects/{project_id}/databases/(default)"
        self._prefix = f"{self._database}/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        try:
            return await asyncio.to_thread(_get_access_token, self._credentials)
        except google_auth_exceptions.GoogleAuthError as e:
            raise StoreUnavailableException("auth", str(e)) from e

    async def request(
        self,
        url: str,
        method: str = "GET",
        body: dict | None = None,
        *,
        operation: str,
    ) -> Any:
        """Perform one REST call. 404 returns None; failures raise StoreUnavailableException."""
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {await self.get_token()}",
        }
        try:
            resp = await self._http.request(method, url, headers=headers, json=body)
        except httpx.TimeoutException as e:
            logger.warning("Firestore %s timed out", operation)
            raise StoreUnavailableException(operation, "timeout") from e
        except httpx.TransportError as e:
            logger.warning("Firestore %s transport error: %s", operation, e)
            raise StoreUnavailableException(operation, str(e)) from e
        if resp.status_code == 404:
            return None
        if resp.status_code == 409:
            raise DocumentExistsError("Document already exists")
        if resp.status_code not in (200, 204):
            logger.error("Firestore %s failed: HTTP %s", operation, resp.status_code)
            raise StoreUnavailableException(operation, f"HTTP {resp.status_code}")
        if method == "DELETE":
            return {}
        raw = resp.content
        return json.loads(raw.decode()) if raw else {}

    async def batch_get(self, paths: list[str]) -> list[DocumentSnapshot]:
        """Read documents by full path with documents:batchGet, in request order."""
        resp = await self.request(
            f"{_BASE}/{self._database}/documents:batchGet",
            "POST",
            {"documents": paths},
            operation="batch_get",
        )
        found: dict[str, DocumentSnapshot] = {}
        for item in resp if isinstance(resp, list) else []:
            doc = item.get("found")
            if doc:
                found[doc.get("name", "")] = _snapshot(doc)
        return [found[p] for p in paths if p in found]

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{collection_id}")
