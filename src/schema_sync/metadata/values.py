"""Helpers for reading and merging entity values.

Entities handed to the metadata query surface may be plain mappings or
arbitrary objects with attributes; these helpers treat both the same way.
"""

from collections.abc import Mapping
from typing import Any


def is_object(value: Any) -> bool:
    """True for mappings and non-scalar objects (not strings, numbers, dates...)."""
    if value is None or isinstance(value, (str, bytes, int, float, bool, list, tuple)):
        return False
    if isinstance(value, Mapping):
        return True
    return hasattr(value, "__dict__") and not hasattr(value, "isoformat")


def get_value(entity: Any, key: str) -> Any:
    """Read *key* from a mapping or an attribute of an object, ``None`` if absent."""
    if entity is None:
        return None
    if isinstance(entity, Mapping):
        return entity.get(key)
    return getattr(entity, key, None)


def merge_deep(target: dict, source: dict) -> dict:
    """Recursively merge *source* into *target* (in place) and return *target*."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            merge_deep(target[key], value)
        else:
            target[key] = value
    return target
