"""Canonical value encoding for change detection.

Two values are considered equal when their structural serializations match,
so independently constructed models, dataclasses, plain objects, lists or
dicts with the same contents compare equal while ``None`` stays distinct
from every present value.
"""

import dataclasses
import json
from typing import Any

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError, to_jsonable_python


def _attributes(value: Any) -> dict[str, Any] | None:
    """Get the attributes of a plain object, or None if it has none."""
    if hasattr(value, "__dict__"):
        return dict(vars(value))
    slots = getattr(type(value), "__slots__", None)
    if slots is None:
        return None
    if isinstance(slots, str):
        slots = (slots,)
    return {name: getattr(value, name) for name in slots if hasattr(value, name)}


def _fallback(value: Any) -> Any:
    attributes = _attributes(value)
    return attributes if attributes is not None else repr(value)


def _normalize(value: Any) -> Any:
    """Recursively order unordered containers so they serialize stably."""
    if isinstance(value, (set, frozenset)):
        return sorted((_normalize(item) for item in value), key=canonicalize)
    if isinstance(value, dict):
        return {str(key): _normalize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    return value


def _structure(value: Any) -> Any:
    """Build the comparison form of a value.

    Dict keys are encoded with their own canonical form so ``1`` and ``"1"``
    stay distinct keys.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, dict):
        return {canonicalize(key): _structure(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_structure(item) for item in value), key=_dump)
    if isinstance(value, (list, tuple)):
        return [_structure(item) for item in value]
    if isinstance(value, BaseModel):
        return _structure({name: getattr(value, name) for name in type(value).model_fields})
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _structure({f.name: getattr(value, f.name) for f in dataclasses.fields(value)})
    try:
        return to_jsonable_python(value)
    except PydanticSerializationError:
        attributes = _attributes(value)
        if attributes is None:
            return repr(value)
        return _structure(attributes)


def _dump(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def to_jsonable(value: Any) -> Any:
    """Convert a value to JSON-compatible primitives.

    Args:
        value: Any field value (models, dataclasses, datetimes, Decimals...)

    Returns:
        Structure made of dicts, lists, strings, numbers, booleans and None
    """
    return to_jsonable_python(_normalize(value), fallback=_fallback)


def canonicalize(value: Any) -> str:
    """Get the canonical form of a value.

    Args:
        value: Field value to canonicalize

    Returns:
        Compact JSON string with sorted keys
    """
    return _dump(_structure(value))


def equal(a: Any, b: Any) -> bool:
    """Check whether two values are structurally identical."""
    return canonicalize(a) == canonicalize(b)


__all__ = ["canonicalize", "equal", "to_jsonable"]
