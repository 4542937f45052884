"""Firestore REST typed-value codec.

The REST API wraps every field in a one-key object naming its type
({"integerValue": "7"}, {"mapValue": {"fields": {...}}}). RBAC documents
only hold strings, booleans, numbers, timestamps, condition lists and
condition maps; bytes and geo points are not stored.
"""

from datetime import datetime
from typing import Any

from app.shared.utils.datetime import to_firestore_timestamp


def encode_value(v: Any) -> dict:
    """Wrap one Python value as a Firestore typed value."""
    # bool before int: bool is an int subclass.
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        # int64 travels as a decimal string.
        return {"integerValue": str(v)}
    if isinstance(v, float):
        return {"doubleValue": v}
    if isinstance(v, datetime):
        return {"timestampValue": to_firestore_timestamp(v)}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, (list, tuple, set, frozenset)):
        return {"arrayValue": {"values": [encode_value(x) for x in v]}}
    if isinstance(v, dict):
        return {"mapValue": encode_document(v)}
    raise TypeError(f"Unsupported Firestore value type: {type(v).__name__}")


def encode_document(data: dict[str, Any]) -> dict:
    """Body for a create/patch call: {"fields": {name: typed value}}."""
    return {"fields": {k: encode_value(v) for k, v in data.items()}}


_SCALAR_DECODERS = {
    "booleanValue": lambda raw: raw,
    "integerValue": int,
    "doubleValue": float,
    "stringValue": lambda raw: raw,
    "timestampValue": lambda raw: datetime.fromisoformat(raw.replace("Z", "+00:00")),
}


def decode_value(obj: dict) -> Any:
    """Unwrap one typed value; unknown types decode to None."""
    for kind, decode in _SCALAR_DECODERS.items():
        if kind in obj:
            return decode(obj[kind])
    if "arrayValue" in obj:
        return [decode_value(x) for x in obj["arrayValue"].get("values") or []]
    if "mapValue" in obj:
        return decode_document(obj["mapValue"])
    return None


def decode_document(document: dict | None) -> dict:
    """Plain dict from a REST document (or map value); {} for a missing one."""
    if not document:
        return {}
    return {k: decode_value(v) for k, v in (document.get("fields") or {}).items()}
