"""Tests for the snapshot -> record mapper."""

import copy
from datetime import UTC, datetime

from beatcrest.infrastructure.firebase._rest_client import DocumentSnapshot
from beatcrest.infrastructure.firebase.records import (
    reference_id,
    sort_by_timestamp,
    to_record,
)
from beatcrest.infrastructure.firebase.references import DocumentPath


def _snapshot(data: dict) -> DocumentSnapshot:
    return DocumentSnapshot("b1", data, DocumentPath("beats", "b1"))


def test_missing_document_maps_to_none() -> None:
    assert to_record(None) is None


def test_timestamps_become_iso_strings_and_are_always_present() -> None:
    record = to_record(_snapshot({"created_at": datetime(2024, 1, 1, tzinfo=UTC)}))
    assert record["id"] == "b1"
    assert record["created_at"] == "2024-01-01T00:00:00+00:00"
    assert record["updated_at"] is None


def test_references_are_reduced_to_ids() -> None:
    record = to_record(
        _snapshot(
            {
                "producer": DocumentPath("users", "u1"),
                "beat": "b9",
                "related_id": "p1",
                "likes": ["u2", DocumentPath("users", "u3")],
            }
        )
    )
    assert record["producer"] == "u1"
    assert record["beat"] == "b9"
    assert record["related_id"] == "p1"
    assert record["likes"] == ["u2", "u3"]


def test_input_is_not_mutated() -> None:
    data = {"producer": DocumentPath("users", "u1"), "followers": ["a"]}
    before = copy.deepcopy(data)
    to_record(_snapshot(data))
    assert data == before


def test_reference_id() -> None:
    assert reference_id(DocumentPath("users", "u1")) == "u1"
    assert reference_id("u1") == "u1"
    assert reference_id(None) is None
    assert reference_id(42) is None


def test_document_path_parse() -> None:
    full = "projects/p/databases/(default)/documents/users/abc"
    assert DocumentPath.parse(full) == DocumentPath("users", "abc")
    assert str(DocumentPath.parse("beats/x")) == "beats/x"


def test_sort_by_timestamp_missing_sorts_oldest() -> None:
    records = [
        {"id": "new", "created_at": "2024-01-03T00:00:00+00:00"},
        {"id": "none", "created_at": None},
        {"id": "old", "created_at": "2024-01-01T00:00:00Z"},
    ]
    assert [r["id"] for r in sort_by_timestamp(records)] == ["none", "old", "new"]
    assert [r["id"] for r in sort_by_timestamp(records, descending=True)] == [
        "new",
        "old",
        "none",
    ]
