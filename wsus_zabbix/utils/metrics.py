"""Metric key paths and property resolution over WSUS objects."""

from collections.abc import Mapping
from typing import Any, List, Optional, Sequence


def parse_key_path(key: Optional[str]) -> List[str]:
    """
    Split a dot-delimited metric key into property names.

    Args:
        key: Metric key such as "Configuration.TargetingMode"

    Returns:
        List[str]: Property names; empty when no key was given
    """
    if key is None:
        return []
    key = key.strip()
    if not key:
        return []
    return [segment.strip() for segment in key.split(".")]


def _lookup_mapping(mapping: Mapping, name: str) -> Any:
    if name in mapping:
        return mapping[name]
    folded = name.casefold()
    for candidate, value in mapping.items():
        if isinstance(candidate, str) and candidate.casefold() == folded:
            return value
    return None


def get_property(obj: Any, name: str) -> Any:
    """
    Look up a named property, case-insensitively.

    WSUS objects expose get_property(); plain mappings are searched by key.
    Anything else cannot be traversed and yields None.
    """
    if obj is None:
        return None
    accessor = getattr(obj, "get_property", None)
    if callable(accessor):
        return accessor(name)
    if isinstance(obj, Mapping):
        return _lookup_mapping(obj, name)
    return None


def resolve(root: Any, path: Sequence[str]) -> Any:
    """
    Walk a property path starting at root.

    A missing property is a valid "no value" outcome, not an error.

    Args:
        root: Object to start from
        path: Property names in traversal order

    Returns:
        The value at the end of the path, root for an empty path, or None
    """
    current = root
    for segment in path:
        if current is None:
            return None
        current = get_property(current, segment)
    return current
