from __future__ import annotations

from typing import Any, List


def ensure_list(value: Any) -> List[Any]:
    """Return a raw "single object or array" field as a list.

    - None -> []
    - list / tuple -> list copy, order preserved
    - anything else -> [value]

    Time:  O(n)
    Space: O(n)
    """

    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def ensure_child_list(container: Any, key: str) -> List[Any]:
    """Normalize a wrapped collection such as ``{"creators": {"creator": ...}}``.

    ``container`` is the wrapper mapping (may be None); ``key`` is the repeated
    child element name.
    """

    if not isinstance(container, dict):
        return []
    return ensure_list(container.get(key))
