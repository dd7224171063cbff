"""
Core package aggregator for flatgraph contracts (entity schema, strategies, cycle guard).

## Contracts (single source of truth)
- EntitySchema: entity type descriptor with normalize/denormalize entry points.
- EntityOptions: frozen record of the identity/merge/process/fallback hooks.
- CycleGuard: per-call visited set keyed by structural fingerprints.
- Containers: representation detection (plain vs keyed) and field access.
- Hashing: canonical JSON and cycle-safe fingerprints.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file/network IO, no logging.
- The core does not know how values are stored. The `visit`, `unvisit` and
  `add_entity` callables are supplied by a traversal engine (see flatgraph.engine).

## Examples
```python
from flatgraph.core import EntitySchema

user = EntitySchema("users")
post = EntitySchema("posts", {"author": user})
user.define({"posts": [post]})

user.get_id({"id": "5", "name": "x"}, None, None)  # '5'
```
"""

from __future__ import annotations

from .containers import Representation, representation_of
from .cycles import CycleGuard
from .entity import EntitySchema
from .errors import InvalidKind, SchemaError
from .options import EntityOptions, default_fallback, default_merge, default_process

__all__ = [
    "EntitySchema",
    "EntityOptions",
    "CycleGuard",
    "Representation",
    "representation_of",
    "InvalidKind",
    "SchemaError",
    "default_merge",
    "default_process",
    "default_fallback",
]
