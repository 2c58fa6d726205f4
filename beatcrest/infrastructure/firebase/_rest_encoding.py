"""Encode/decode Python values to/from Firestore REST API 'fields' format.

Besides plain values this module knows the write sentinels the repositories
use: SERVER_TIMESTAMP, ArrayUnion, ArrayRemove and Increment. They are never
stored as values; split_transforms() turns them into REST fieldTransforms.
"""

import base64
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from beatcrest.infrastructure.firebase.references import DocumentPath
from beatcrest.shared.utils.datetime import ensure_utc, parse_timestamp

_SIMPLE_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z_0-9]*$")


class _ServerTimestamp:
    """Sentinel: let the server set the field to the commit time."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True, init=False)
class ArrayUnion:
    """Append each value not already present in the array field (atomic set-add)."""

    values: tuple[Any, ...]

    def __init__(self, values: list[Any] | tuple[Any, ...]) -> None:
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True, init=False)
class ArrayRemove:
    """Remove every occurrence of each value from the array field (atomic set-remove)."""

    values: tuple[Any, ...]

    def __init__(self, values: list[Any] | tuple[Any, ...]) -> None:
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class Increment:
    """Add value to the numeric field (missing field counts as 0)."""

    value: int | float


def field_path(name: str) -> str:
    """Quote a field name for updateMask/fieldTransforms when it is not a simple identifier."""
    if _SIMPLE_FIELD_RE.match(name):
        return name
    escaped = name.replace("\\", "\\\\").replace("`", "\\`")
    return f"`{escaped}`"


def _encode_value(v: Any, root: str = "") -> dict:
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        return {"doubleValue": v}
    if isinstance(v, datetime):
        ts = ensure_utc(v)
        return {"timestampValue": ts.strftime("%Y-%m-%dT%H:%M:%S.%fZ")}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, DocumentPath):
        name = f"{root}/{v.path}" if root else v.path
        return {"referenceValue": name}
    if isinstance(v, bytes):
        return {"bytesValue": base64.standard_b64encode(v).decode("ascii")}
    if isinstance(v, (list, tuple)):
        return {"arrayValue": {"values": [_encode_value(x, root) for x in v]}}
    if isinstance(v, dict):
        return {
            "mapValue": {
                "fields": {k: _encode_value(x, root) for k, x in v.items()}
            }
        }
    raise TypeError(f"Unsupported Firestore value type: {type(v)}")


def split_transforms(
    data: dict[str, Any], root: str = ""
) -> tuple[dict[str, Any], list[dict]]:
    """Separate plain values from write sentinels.

    Returns:
        (plain fields, REST fieldTransforms list).
    """
    plain: dict[str, Any] = {}
    transforms: list[dict] = []
    for key, value in data.items():
        path = field_path(key)
        if value is SERVER_TIMESTAMP:
            transforms.append({"fieldPath": path, "setToServerValue": "REQUEST_TIME"})
        elif isinstance(value, ArrayUnion):
            transforms.append({
                "fieldPath": path,
                "appendMissingElements": {
                    "values": [_encode_value(x, root) for x in value.values]
                },
            })
        elif isinstance(value, ArrayRemove):
            transforms.append({
                "fieldPath": path,
                "removeAllFromArray": {
                    "values": [_encode_value(x, root) for x in value.values]
                },
            })
        elif isinstance(value, Increment):
            transforms.append({"fieldPath": path, "increment": _encode_value(value.value)})
        else:
            plain[key] = value
    return plain, transforms


def encode_document(data: dict[str, Any], root: str = "") -> dict:
    """Convert a Python dict to Firestore REST Document.fields format."""
    return {"fields": {k: _encode_value(v, root) for k, v in data.items()}}


def _decode_value(obj: dict) -> Any:
    if "nullValue" in obj:
        return None
    if "booleanValue" in obj:
        return obj["booleanValue"]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "doubleValue" in obj:
        return float(obj["doubleValue"])
    if "timestampValue" in obj:
        return parse_timestamp(obj["timestampValue"])
    if "stringValue" in obj:
        return obj["stringValue"]
    if "referenceValue" in obj:
        return DocumentPath.parse(obj["referenceValue"])
    if "bytesValue" in obj:
        return base64.standard_b64decode(obj["bytesValue"])
    if "arrayValue" in obj:
        vals = obj.get("arrayValue", {}).get("values") or []
        return [_decode_value(x) for x in vals]
    if "mapValue" in obj:
        fields = obj["mapValue"].get("fields") or {}
        return {k: _decode_value(x) for k, x in fields.items()}
    return None


def decode_document(document: dict | None) -> dict:
    """Convert a Firestore REST Document (name + fields) to a Python dict of its fields."""
    if not document:
        return {}
    fields = document.get("fields") or {}
    return {k: _decode_value(v) for k, v in fields.items()}
