"""
Sanitizing Serializer

Turns evaluated bindings into pure data: every callable is replaced by a
fixed placeholder token, all other structure is preserved.

Input is assumed acyclic. Game data tables are plain trees and no cycle
detection is done; a cyclic value recurses until Python's recursion limit.
"""

from typing import Any


PLACEHOLDER = "[function]"


def materialize(value: Any, placeholder: str = PLACEHOLDER) -> Any:
    """
    Recursively copy value, replacing callables with placeholder.

    - callable -> placeholder
    - list / tuple -> list, element-wise, order preserved
    - dict -> dict, key-wise, all keys preserved
    - anything else (str, numbers, bool, None) -> unchanged
    """
    if callable(value):
        return placeholder
    if isinstance(value, dict):
        return {key: materialize(val, placeholder) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [materialize(item, placeholder) for item in value]
    return value


def contains_callable(value: Any) -> bool:
    """True if any callable occurs anywhere in value."""
    if callable(value):
        return True
    if isinstance(value, dict):
        return any(contains_callable(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return any(contains_callable(v) for v in value)
    return False
