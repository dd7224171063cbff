"""
flatgraph.engine: Traversal engine around flatgraph.core entity schemas.

## Responsibilities
- Supply the collaborators EntitySchema expects: the `visit` and `unvisit`
  dispatchers and the `add_entity` callback (EntityStore.add).
- Own per-call state: one EntityStore and one CycleGuard per normalize call,
  one Unvisitor cache per denormalize call.
- Provide the polymorphic UnionSchema and the array/object shorthands.
- Export entity tables as polars DataFrames.

## Public API
- normalize(data, schema, settings=None) -> NormalizedResult
- denormalize(value, schema, entities, settings=None)
- UnionSchema: per-value choice between entity schemas.
- EntityStore: flat entity tables with merge-on-conflict.
- EngineSettings: configuration (env > TOML > defaults).
- entity_frames(entities, settings=None): polars export.

## Import DAG discipline
- Depends on stdlib, polars and flatgraph.core.*; flatgraph.core never imports this package.

## Examples
```python
from flatgraph.core import EntitySchema
from flatgraph.engine import denormalize, normalize

user = EntitySchema("users")
post = EntitySchema("posts", {"author": user})
user.define({"posts": [post]})

out = normalize({"id": 1, "posts": [{"id": 7, "author": {"id": 1}}]}, user)
out.entities["posts"][7]  # {'id': 7, 'author': 1}
view = denormalize(out.result, user, out.entities)
view["posts"][0]["author"] is view  # True
```

## Notes
- Logging uses the stdlib `logging` module under the `flatgraph.engine.*` logger
  names; no handlers are installed.
"""

from __future__ import annotations

from .config import EngineSettings
from .denormalize import Unvisitor, denormalize
from .errors import (
    EngineConfigError,
    EngineError,
    NormalizeInputError,
    TableExportError,
    UnsupportedSchemaError,
)
from .normalize import NormalizedResult, Visitor, normalize, visit
from .store import EntityStore
from .tables import entity_frames
from .union import UnionSchema

__all__ = [
    "EngineSettings",
    "EntityStore",
    "NormalizedResult",
    "UnionSchema",
    "Unvisitor",
    "Visitor",
    "visit",
    "normalize",
    "denormalize",
    "entity_frames",
    "EngineError",
    "EngineConfigError",
    "NormalizeInputError",
    "TableExportError",
    "UnsupportedSchemaError",
]
