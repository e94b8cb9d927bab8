"""Deep merge used to layer configuration documents.

Merge rules:
- Mappings merge recursively; the override wins for scalar keys.
- Lists replace the base list, unless the override list starts with a ``"+"``
  marker, in which case its remaining items are appended to the base list.
"""
from __future__ import annotations

from typing import Any, Dict, List

APPEND_MARKER = "+"


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` onto ``base`` without mutating either.

    Example:
        >>> deep_merge({"runner": {"concurrency": 4, "timeoutMs": 1}}, {"runner": {"concurrency": 8}})
        {'runner': {'concurrency': 8, 'timeoutMs': 1}}
    """
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = merge_lists(current, value)
        else:
            result[key] = value
    return result


def merge_lists(base: List[Any], override: List[Any]) -> List[Any]:
    """Merge two lists: replace by default, append when prefixed with ``"+"``.

    >>> merge_lists(["src/**/*"], ["lib/**/*"])
    ['lib/**/*']
    >>> merge_lists(["src/**/*"], ["+", "lib/**/*"])
    ['src/**/*', 'lib/**/*']
    """
    if override and override[0] == APPEND_MARKER:
        return [*base, *override[1:]]
    return list(override)


__all__ = ["deep_merge", "merge_lists", "APPEND_MARKER"]
