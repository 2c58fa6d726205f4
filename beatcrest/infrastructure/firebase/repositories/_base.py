"""Shared plumbing for the Firestore repositories.

Each repository owns one collection. Helpers here cover the patterns every
repository repeats: load-by-ID as a record, patch with a fresh updated_at,
and ordered queries that fall back to in-memory filtering and sorting when
the database lacks the composite index the query needs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from beatcrest.infrastructure.firebase._rest_client import (
    ASCENDING,
    DESCENDING,
    DocumentMissingError,
    DocumentReference,
    FirestoreRESTClient,
    IndexRequiredError,
    _Query,
)
from beatcrest.infrastructure.firebase._rest_encoding import SERVER_TIMESTAMP
from beatcrest.infrastructure.firebase.collections import COLLECTION_USERS
from beatcrest.infrastructure.firebase.records import (
    Record,
    sort_by_timestamp,
    to_record,
    to_records,
)
from beatcrest.infrastructure.firebase.references import DocumentPath

logger = logging.getLogger(__name__)


def user_ref(user_id: str) -> DocumentPath:
    """Reference to a user document."""
    return DocumentPath(COLLECTION_USERS, user_id)


class FirestoreRepository:
    """Base for repositories that own a single collection."""

    collection_name: str = ""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(self.collection_name)

    def _ref(self, doc_id: str) -> DocumentReference:
        return self._coll.document(doc_id)

    def reference(self, doc_id: str) -> DocumentPath:
        """Typed pointer to a document of this collection."""
        return DocumentPath(self.collection_name, doc_id)

    async def _load(self, doc_id: str) -> Record | None:
        return to_record(await self._ref(doc_id).get())

    async def _reload(self, ref: DocumentReference) -> Record:
        record = to_record(await ref.get())
        if record is None:
            raise DocumentMissingError(f"{ref.name} vanished after write")
        return record

    async def _insert(self, data: dict[str, Any]) -> Record:
        """Create a document under a new ID and return it as stored (server timestamps resolved)."""
        ref = self._coll.document()
        await ref.create(data)
        return await self._reload(ref)

    async def _patch(
        self, doc_id: str, updates: dict[str, Any], *, touch: bool = True
    ) -> Record | None:
        """Apply updates; return the updated record, or None if the document does not exist."""
        data = dict(updates)
        if touch:
            data["updated_at"] = SERVER_TIMESTAMP
        try:
            await self._ref(doc_id).update(data)
        except DocumentMissingError:
            return None
        return await self._load(doc_id)

    async def _first(self, field: str, value: Any) -> Record | None:
        snapshots = await self._coll.where(field, "==", value).limit(1).get()
        return to_record(snapshots[0]) if snapshots else None

    async def _ordered(
        self,
        build: Callable[[], _Query],
        field: str = "created_at",
        *,
        descending: bool = True,
        fallback: Callable[[], _Query] | None = None,
        keep: Callable[[Record], bool] | None = None,
    ) -> list[Record]:
        """Run build() ordered on field; on IndexRequiredError answer from memory.

        The fallback path runs fallback() (default: build() without ordering),
        applies keep to re-check whatever predicates the reduced query dropped,
        and sorts on field in memory.
        """
        direction = DESCENDING if descending else ASCENDING
        try:
            return to_records(await build().order_by(field, direction).get())
        except IndexRequiredError as exc:
            logger.debug(
                "Index missing for %s query, sorting in memory: %s",
                self.collection_name,
                exc,
            )
        query = fallback() if fallback is not None else build()
        records = to_records(await query.get())
        if keep is not None:
            records = [r for r in records if keep(r)]
        return sort_by_timestamp(records, field, descending=descending)

    async def _commit_updates(
        self, doc_ids: list[str], data: dict[str, Any]
    ) -> int:
        """Apply the same update to many documents in one atomic commit; returns writes applied."""
        batch = self._client.batch()
        for doc_id in doc_ids:
            batch.update(self._ref(doc_id), data)
        return await batch.commit()
