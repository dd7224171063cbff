"""
Core exception types raised by entity schema construction.

Provides typed exceptions for core-domain failures:
- SchemaError for schema-level configuration problems.
- InvalidKind for an entity schema built without a usable string key.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Failures raised by user-supplied resolvers or strategies are never wrapped;
      they propagate to the caller of normalize/denormalize unchanged.

Examples:
    Catch a construction failure.

    >>> from flatgraph.core.entity import EntitySchema
    >>> from flatgraph.core.errors import InvalidKind
    >>> try:
    ...     EntitySchema("")
    ... except InvalidKind as e:
    ...     bad = e.value
    >>> bad
    ''
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "SchemaError",
    "InvalidKind",
]


class SchemaError(ValueError):
    """Schema-level configuration failure."""


class InvalidKind(SchemaError):
    """
    Entity schema key is missing, empty, or not a string.

    Attributes:
        value (Any): The offending key, kept for diagnostics.
    """

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Expected a string key for Entity, but found {value!r}.")
