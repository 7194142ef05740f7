# discussify/repositories/_helpers.py
from typing import Any, Optional

from bson import ObjectId


def _oid(v) -> ObjectId:
    return v if isinstance(v, ObjectId) else ObjectId(str(v))


def _oid_or_none(v) -> Optional[ObjectId]:
    if isinstance(v, ObjectId):
        return v
    return ObjectId(v) if v is not None and ObjectId.is_valid(str(v)) else None


def stringify_ids(v: Any) -> Any:
    """ObjectIds nested anywhere in a payload become plain id strings."""
    if isinstance(v, ObjectId):
        return str(v)
    if isinstance(v, list):
        return [stringify_ids(x) for x in v]
    if isinstance(v, dict):
        return {k: stringify_ids(val) for k, val in v.items()}
    return v
