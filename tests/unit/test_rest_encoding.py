"""Tests for Firestore REST value encoding and write transforms."""

from datetime import UTC, datetime

from beatcrest.infrastructure.firebase._rest_encoding import (
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    Increment,
    decode_document,
    encode_document,
    field_path,
    split_transforms,
)
from beatcrest.infrastructure.firebase.references import DocumentPath

ROOT = "projects/p/databases/(default)/documents"


def test_encode_scalars_and_containers() -> None:
    fields = encode_document(
        {
            "n": None,
            "b": True,
            "i": 3,
            "f": 1.5,
            "s": "x",
            "tags": ["a", "b"],
            "meta": {"k": 1},
        }
    )["fields"]
    assert fields["n"] == {"nullValue": None}
    assert fields["b"] == {"booleanValue": True}
    assert fields["i"] == {"integerValue": "3"}
    assert fields["f"] == {"doubleValue": 1.5}
    assert fields["tags"]["arrayValue"]["values"][1] == {"stringValue": "b"}
    assert fields["meta"]["mapValue"]["fields"]["k"] == {"integerValue": "1"}


def test_reference_encodes_with_documents_root() -> None:
    fields = encode_document({"producer": DocumentPath("users", "u1")}, ROOT)["fields"]
    assert fields["producer"] == {"referenceValue": f"{ROOT}/users/u1"}


def test_decode_reads_fields_of_rest_document() -> None:
    document = {
        "name": f"{ROOT}/beats/b1",
        "fields": {
            "title": {"stringValue": "Night Drive"},
            "bpm": {"integerValue": "90"},
            "producer": {"referenceValue": f"{ROOT}/users/u1"},
            "created_at": {"timestampValue": "2024-01-02T03:04:05.123456789Z"},
        },
    }
    data = decode_document(document)
    assert data["title"] == "Night Drive"
    assert data["bpm"] == 90
    assert data["producer"] == DocumentPath("users", "u1")
    assert data["created_at"] == datetime(2024, 1, 2, 3, 4, 5, 123456, tzinfo=UTC)


def test_decode_empty_document() -> None:
    assert decode_document(None) == {}
    assert decode_document({"name": f"{ROOT}/beats/b1"}) == {}


def test_split_transforms() -> None:
    plain, transforms = split_transforms(
        {
            "title": "x",
            "updated_at": SERVER_TIMESTAMP,
            "likes": ArrayUnion(["u1"]),
            "followers": ArrayRemove(["u2"]),
            "play_count": Increment(1),
        }
    )
    assert plain == {"title": "x"}
    by_field = {t["fieldPath"]: t for t in transforms}
    assert by_field["updated_at"]["setToServerValue"] == "REQUEST_TIME"
    assert by_field["likes"]["appendMissingElements"]["values"] == [{"stringValue": "u1"}]
    assert by_field["followers"]["removeAllFromArray"]["values"] == [{"stringValue": "u2"}]
    assert by_field["play_count"]["increment"] == {"integerValue": "1"}


def test_field_path_quotes_non_identifiers() -> None:
    assert field_path("created_at") == "created_at"
    assert field_path("a-b") == "`a-b`"
