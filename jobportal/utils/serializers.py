"""
Helpers for turning Mongo documents into JSON-friendly dicts.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from bson import ObjectId

from jobportal.utils.errors import BadRequestError

# Never leaves the API
PRIVATE_FIELDS = ("password",)


def to_object_id(value: str, label: str = "ID") -> ObjectId:
    """Parse a path/body id, answering 400 for malformed values."""
    if isinstance(value, ObjectId):
        return value
    if not ObjectId.is_valid(value):
        raise BadRequestError(f"Invalid {label}")
    return ObjectId(value)


def _convert(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return serialize_doc(value)
    if isinstance(value, list):
        return [_convert(v) for v in value]
    return value


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copy a document, renaming _id to id and stringifying ObjectIds."""
    if doc is None:
        return None

    out = {}
    for key, value in doc.items():
        if key in PRIVATE_FIELDS:
            continue
        if key == "_id":
            out["id"] = _convert(value)
        else:
            out[key] = _convert(value)
    return out


def pick(doc: Optional[Dict[str, Any]], *fields: str) -> Optional[Dict[str, Any]]:
    """Summary of a populated reference: id plus the selected fields."""
    if doc is None:
        return None
    summary = {"id": str(doc["_id"])}
    for field in fields:
        summary[field] = _convert(doc.get(field))
    return summary


def utcnow() -> datetime:
    return datetime.utcnow()
