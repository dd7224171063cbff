"""
Canonical JSON and cycle-safe fingerprints for traversal inputs.

Provides a single canonical JSON policy and the fingerprint used by the cycle
guard to recognise a value already visited within one normalize call. This
module is zero-IO and uses only the Python standard library.

Notes:
    - Canonical JSON:
        - sort_keys=True
        - separators=(",", ":")
        - ensure_ascii=False
    - ``fingerprint`` follows the same policy but never recurses: it walks the
      value with an explicit stack, so deeply nested or cyclic inputs neither
      loop forever nor hit the interpreter recursion limit.
    - A composite value met again while it is still on the ancestor stack is
      written as ``"[Circular ~]"`` (the root) or ``"[Circular ~.a.b]"`` (the
      ancestor reached through keys ``a`` then ``b`` from the root).
    - Known limitation: structurally identical but distinct values share a
      fingerprint, and a stored string equal to a marker is indistinguishable
      from a real cycle.
"""

from __future__ import annotations

import json
from typing import Any

from .constants import CIRCULAR_PATH_PREFIX, CIRCULAR_ROOT_MARKER
from .containers import Representation, representation_of

__all__ = [
    "json_dumps_canonical",
    "fingerprint",
    "reference_fingerprint",
]

_JSON_SCALARS = (str, int, float, bool, type(None))

# Work-stack opcodes
_VALUE = 0
_TEXT = 1
_LEAVE = 2


def json_dumps_canonical(obj: Any) -> str:
    """
    Serialize an object to a canonical JSON string.

    Args:
        obj (Any): JSON-serializable object.

    Returns:
        str: Canonical JSON string with sort_keys=True, compact separators,
        and ensure_ascii=False.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _scalar(value: Any) -> str:
    if isinstance(value, _JSON_SCALARS):
        return json_dumps_canonical(value)
    return json_dumps_canonical(str(value))


def _circular_marker(path: list[str], depth: int) -> str:
    if depth == 0:
        return CIRCULAR_ROOT_MARKER
    return CIRCULAR_PATH_PREFIX + ".".join(path[1 : depth + 1]) + "]"


def fingerprint(value: Any) -> str:
    """
    Deterministic, cycle-safe structural encoding of ``value``.

    Args:
        value (Any): Any value; mappings and non-string sequences are walked.

    Returns:
        str: Canonical JSON text with back-references to ancestors replaced by
        cycle markers. Mapping keys are stringified and sorted, so key order
        does not change the result.

    Examples:
        >>> fingerprint({"b": 1, "a": [1, 2]})
        '{"a":[1,2],"b":1}'
        >>> node = {"id": 1}
        >>> node["self"] = node
        >>> fingerprint(node)
        '{"id":1,"self":"[Circular ~]"}'
    """
    parts: list[str] = []
    ancestors: list[int] = []
    path: list[str] = []
    stack: list[tuple[int, Any, str]] = [(_VALUE, value, "")]

    while stack:
        op, item, key = stack.pop()
        if op == _TEXT:
            parts.append(item)
            continue
        if op == _LEAVE:
            ancestors.pop()
            path.pop()
            continue

        kind = representation_of(item)
        if kind is Representation.SCALAR:
            parts.append(_scalar(item))
            continue

        ident = id(item)
        if ident in ancestors:
            parts.append(_scalar(_circular_marker(path, ancestors.index(ident))))
            continue

        ancestors.append(ident)
        path.append(key)
        stack.append((_LEAVE, None, ""))

        if kind is Representation.SEQUENCE:
            parts.append("[")
            stack.append((_TEXT, "]", ""))
            children = [(str(i), child, None) for i, child in enumerate(item)]
        else:
            parts.append("{")
            stack.append((_TEXT, "}", ""))
            children = sorted(
                ((str(k), child, _scalar(str(k)) + ":") for k, child in item.items()),
                key=lambda entry: entry[0],
            )

        for index in range(len(children) - 1, -1, -1):
            child_key, child, label = children[index]
            stack.append((_VALUE, child, child_key))
            if label is not None:
                stack.append((_TEXT, label, ""))
            if index:
                stack.append((_TEXT, ",", ""))

    return "".join(parts)


def reference_fingerprint(value: Any) -> str:
    """Identity-based key: distinct objects never collide, equal copies never match."""
    return f"<ref {type(value).__name__} {id(value):#x}>"
