"""
Lightweight typing aliases used across the entity schema and the engine.

Provides callable aliases for the strategy hooks and the traversal callbacks.
This module contains no runtime logic and is zero-IO.

Notes:
    - Intended for annotations only; the engine supplies concrete callables.
    - Identity is deliberately ``Any``: resolvers may return strings, ints or
      composite hashable values such as tuples.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

__all__ = [
    "Identity",
    "IdResolver",
    "MergeStrategy",
    "ProcessStrategy",
    "FallbackStrategy",
    "AddEntity",
    "Visit",
    "Unvisit",
    "DedupeMode",
]

Identity = Any

# (input, parent, key) -> identity
IdResolver = Callable[[Any, Any, Any], Identity]
# (canonical_a, canonical_b) -> canonical
MergeStrategy = Callable[[Any, Any], Any]
# (input, parent, key) -> canonical
ProcessStrategy = Callable[[Any, Any, Any], Any]
# (identity, schema) -> value used when the store has no entry
FallbackStrategy = Callable[[Identity, Any], Any]

# (schema, canonical, original_input, parent, key) -> None
AddEntity = Callable[[Any, Any, Any, Any, Any], None]
# (value, parent, key, schema, add_entity, visited_entities) -> normalized value
Visit = Callable[[Any, Any, Any, Any, AddEntity, Any], Any]
# (value, schema) -> denormalized value
Unvisit = Callable[[Any, Any], Any]

DedupeMode = Literal["structural", "reference"]
