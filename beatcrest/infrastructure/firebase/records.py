"""Mapping from raw Firestore snapshots to plain, JSON-safe records.

to_record() never reads the store. Reference fields are reduced to the bare
ID of the document they point at; resolving an ID into a full record is a
separate, explicit repository call.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from beatcrest.infrastructure.firebase.references import DocumentPath
from beatcrest.shared.utils.datetime import isoformat_utc, parse_timestamp

if TYPE_CHECKING:
    from beatcrest.infrastructure.firebase._rest_client import DocumentSnapshot

Record = dict[str, Any]

TIMESTAMP_FIELDS = ("created_at", "updated_at")
REFERENCE_FIELDS = (
    "producer",
    "buyer",
    "seller",
    "beat",
    "user",
    "sender",
    "receiver",
    "related_id",
)
REFERENCE_LIST_FIELDS = ("followers", "following", "likes")

_EPOCH = datetime.min.replace(tzinfo=UTC)


def reference_id(value: Any) -> str | None:
    """Reduce a reference to the referenced document's ID.

    DocumentPath -> its id; a bare string ID passes through unchanged;
    anything else (including None) -> None.
    """
    if isinstance(value, DocumentPath):
        return value.id
    if isinstance(value, str):
        return value
    return None


def to_record(snapshot: DocumentSnapshot | None) -> Record | None:
    """Convert a snapshot to a plain record, or None when the document does not exist."""
    if snapshot is None:
        return None
    data = snapshot.to_dict()
    record: Record = {"id": snapshot.id}
    for key, value in data.items():
        if isinstance(value, datetime):
            record[key] = isoformat_utc(value)
        else:
            record[key] = value
    for key in TIMESTAMP_FIELDS:
        record.setdefault(key, None)
    for key in REFERENCE_FIELDS:
        if record.get(key) is not None:
            record[key] = reference_id(record[key])
    for key in REFERENCE_LIST_FIELDS:
        if isinstance(record.get(key), list):
            record[key] = [reference_id(item) for item in record[key]]
    return record


def to_records(snapshots: list[DocumentSnapshot]) -> list[Record]:
    """Map a query result; query results never contain missing documents."""
    return [r for r in (to_record(s) for s in snapshots) if r is not None]


def sort_by_timestamp(
    records: list[Record], field: str = "created_at", *, descending: bool = False
) -> list[Record]:
    """Sort records on an ISO timestamp field; records without one sort as oldest."""

    def key(record: Record) -> datetime:
        return parse_timestamp(record.get(field)) or _EPOCH

    return sorted(records, key=key, reverse=descending)
