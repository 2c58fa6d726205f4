"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
Keeps the install small (avoids grpcio / firebase-admin).
All HTTP calls use httpx.AsyncClient so they do not block the event loop.

Every write goes through documents:commit so that server timestamps and
array/increment transforms are applied by the server, and so that a
WriteBatch lands atomically in one request.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any

import httpx

from beatcrest.infrastructure.firebase._rest_encoding import (
    _encode_value,
    decode_document,
    encode_document,
    field_path,
    split_transforms,
)
from beatcrest.infrastructure.firebase.references import DocumentPath
from beatcrest.shared.utils.generators import generate_cuid

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"

ASCENDING = "ASCENDING"
DESCENDING = "DESCENDING"


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
    """Raised when a create precondition fails (document ID already exists)."""


class DocumentMissingError(Exception):
    """Raised when an update precondition fails (document does not exist)."""


class IndexRequiredError(Exception):
    """Raised when a query needs a composite index the database does not have.

    Routine, not exceptional: repositories catch it and answer the query
    from memory instead.
    """


def _error_info(resp: httpx.Response) -> tuple[str, str]:
    """Return (status, message) from a Firestore error body; runQuery wraps it in a list."""
    try:
        payload = resp.json()
    except ValueError:
        return "", ""
    if isinstance(payload, list):
        payload = payload[0] if payload else {}
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return "", ""
    return str(error.get("status", "")), str(error.get("message", ""))


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
) -> Any:
    """Perform async HTTP request to Firestore REST API. 404 returns None."""
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    if method == "GET":
        resp = await client.get(url, headers=headers)
    elif method == "POST":
        resp = await client.post(url, headers=headers, json=body)
    else:
        raise ValueError(f"Unsupported method: {method!r}")
    if resp.status_code == 404:
        return None
    if resp.status_code == 409:
        raise DocumentExistsError("Document already exists")
    if resp.status_code == 400:
        status, message = _error_info(resp)
        if status == "FAILED_PRECONDITION" and "index" in message.lower():
            raise IndexRequiredError(message)
    if resp.status_code not in (200, 204):
        resp.raise_for_status()
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


class DocumentSnapshot:
    """Snapshot of a document (id + data + reference)."""

    def __init__(self, id_: str, data: dict, reference: DocumentPath | None = None):
        self.id = id_
        self._data = data
        self.reference = reference

    def to_dict(self) -> dict:
        return self._data


def _snapshot_from_document(doc: dict) -> DocumentSnapshot:
    name = doc.get("name", "")
    reference = DocumentPath.parse(name) if name else None
    doc_id = reference.id if reference else ""
    return DocumentSnapshot(doc_id, decode_document(doc), reference)


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path

    @property
    def id(self) -> str:
        return self._path.split("/")[-1]

    @property
    def name(self) -> str:
        """Full resource name (projects/.../documents/<collection>/<id>)."""
        return self._path

    def as_path(self) -> DocumentPath:
        """Return the typed pointer for storing this document as a reference."""
        return DocumentPath.parse(self._path)

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        url = f"{_BASE}/{self._path}"
        out = await _request_async(
            self._client._http, url, access_token=await self._client.get_token()
        )
        if not out:
            return None
        return _snapshot_from_document(out)

    async def set(self, data: dict[str, Any]) -> None:
        """Create or overwrite the document (full replace)."""
        await self._client._commit([self._client._set_write(self._path, data)])

    async def create(self, data: dict[str, Any]) -> None:
        """Create the document; DocumentExistsError if it already exists."""
        write = self._client._set_write(self._path, data)
        write["currentDocument"] = {"exists": False}
        await self._client._commit([write])

    async def update(self, data: dict[str, Any]) -> None:
        """Patch the given fields; DocumentMissingError if the document does not exist."""
        await self._client._commit([self._client._update_write(self._path, data)])

    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing."""
        await self._client._commit([{"delete": self._path}])


_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
    "in": "IN",
    "not-in": "NOT_IN",
    "array_contains": "ARRAY_CONTAINS",
    "array-contains": "ARRAY_CONTAINS",
    "array_contains_any": "ARRAY_CONTAINS_ANY",
    "array-contains-any": "ARRAY_CONTAINS_ANY",
}


class _Query:
    """Fluent query builder for collection; runs via runQuery (filter/order/offset/limit on server).

    Multiple where() calls are combined with AND. No limit means unbounded.
    """

    def __init__(
        self,
        client: FirestoreRESTClient,
        parent: str,
        collection_id: str,
    ):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._filters: list[tuple[str, str, Any]] = []
        self._orders: list[tuple[str, str]] = []
        self._offset: int = 0
        self._limit: int | None = None

    def where(self, field: str, op: str, value: Any) -> _Query:
        self._filters.append((field, _OP_MAP.get(op, op), value))
        return self

    def order_by(self, field: str, direction: str = ASCENDING) -> _Query:
        self._orders.append((field, direction))
        return self

    def offset(self, n: int) -> _Query:
        self._offset = n
        return self

    def limit(self, n: int | None) -> _Query:
        self._limit = n
        return self

    def _structured_query(self) -> dict[str, Any]:
        root = self._client.documents_root
        structured: dict[str, Any] = {
            "from": [{"collectionId": self._collection_id}],
        }
        filters = [
            {
                "fieldFilter": {
                    "field": {"fieldPath": field_path(f)},
                    "op": op,
                    "value": _encode_value(v, root),
                }
            }
            for f, op, v in self._filters
        ]
        if len(filters) == 1:
            structured["where"] = filters[0]
        elif filters:
            structured["where"] = {
                "compositeFilter": {"op": "AND", "filters": filters}
            }
        if self._orders:
            structured["orderBy"] = [
                {"field": {"fieldPath": field_path(f)}, "direction": d}
                for f, d in self._orders
            ]
        if self._offset:
            structured["offset"] = self._offset
        if self._limit:
            structured["limit"] = self._limit
        return structured

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """Execute the query and yield document snapshots."""
        url = f"{_BASE}/{self._parent}:runQuery"
        body = {"structuredQuery": self._structured_query()}
        resp = await _request_async(
            self._client._http,
            url,
            method="POST",
            body=body,
            access_token=await self._client.get_token(),
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        for item in items:
            if "document" not in item:
                continue
            yield _snapshot_from_document(item["document"])

    async def get(self) -> list[DocumentSnapshot]:
        """Execute the query and return all snapshots."""
        return [snapshot async for snapshot in self.stream()]


class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path.rstrip("/")

    @property
    def id(self) -> str:
        return self._path.split("/")[-1]

    def document(self, document_id: str | None = None) -> DocumentReference:
        """Reference a document; without an ID a new CUID is assigned."""
        return DocumentReference(
            self._client, f"{self._path}/{document_id or generate_cuid()}"
        )

    def _query(self) -> _Query:
        parent = self._path.rsplit("/", 1)[0]
        return _Query(self._client, parent, self.id)

    def where(self, field: str, op: str, value: Any) -> _Query:
        """Start a query with a filter. Use .where(), .order_by(), .offset(), .limit(), then .stream()."""
        return self._query().where(field, op, value)

    def order_by(self, field: str, direction: str = ASCENDING) -> _Query:
        """Start an unfiltered, ordered query."""
        return self._query().order_by(field, direction)

    def limit(self, n: int | None) -> _Query:
        return self._query().limit(n)

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """Yield every document in the collection."""
        async for snapshot in self._query().stream():
            yield snapshot


class WriteBatch:
    """Accumulates writes and commits them atomically in a single request."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._writes: list[dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self._writes)

    def set(self, ref: DocumentReference, data: dict[str, Any]) -> WriteBatch:
        self._writes.append(self._client._set_write(ref.name, data))
        return self

    def update(self, ref: DocumentReference, data: dict[str, Any]) -> WriteBatch:
        self._writes.append(self._client._update_write(ref.name, data))
        return self

    def delete(self, ref: DocumentReference) -> WriteBatch:
        self._writes.append({"delete": ref.name})
        return self

    async def commit(self) -> int:
        """Commit all writes (all or nothing); returns the number of writes applied."""
        if not self._writes:
            return 0
        await self._client._commit(self._writes)
        applied = len(self._writes)
        self._writes = []
        return applied


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._database = f"projects/{project_id}/databases/(default)"
        self._prefix = f"{self._database}/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    @property
    def documents_root(self) -> str:
        """Resource-name prefix for documents (used to encode references)."""
        return self._prefix

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        return await asyncio.to_thread(_get_access_token, self._credentials)

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{collection_id}")

    def document(self, path: DocumentPath) -> DocumentReference:
        """Reference the document a DocumentPath points at."""
        return DocumentReference(self, f"{self._prefix}/{path.path}")

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def _set_write(self, name: str, data: dict[str, Any]) -> dict[str, Any]:
        plain, transforms = split_transforms(data, self._prefix)
        write: dict[str, Any] = {
            "update": {"name": name, **encode_document(plain, self._prefix)}
        }
        if transforms:
            write["updateTransforms"] = transforms
        return write

    def _update_write(self, name: str, data: dict[str, Any]) -> dict[str, Any]:
        write = self._set_write(name, data)
        plain, _ = split_transforms(data, self._prefix)
        write["updateMask"] = {"fieldPaths": [field_path(k) for k in plain]}
        write["currentDocument"] = {"exists": True}
        return write

    async def _commit(self, writes: list[dict[str, Any]]) -> dict:
        url = f"{_BASE}/{self._database}/documents:commit"
        out = await _request_async(
            self._http,
            url,
            method="POST",
            body={"writes": writes},
            access_token=await self.get_token(),
        )
        if out is None:
            raise DocumentMissingError("No document to update")
        return out
