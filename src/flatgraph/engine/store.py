"""
Flat entity tables filled during normalization.

EntityStore maps entity type key -> identity -> canonical value. Its ``add``
method is the ``add_entity`` callback handed to ``EntitySchema.normalize``.

Notes
- Identities must be hashable; they are used verbatim as table keys
  (``"5"`` and ``5`` are different identities).
- When an identity is recorded twice, the stored value becomes
  ``schema.merge(existing, incoming)``. Observations are folded in the order
  ``add`` is called, which for the engine's depth-first traversal is post-order:
  nested entities are stored before the entity that contains them.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from flatgraph.core.entity import EntitySchema
from flatgraph.core.typing import Identity

logger = logging.getLogger(__name__)

EntityTables = dict[str, dict[Identity, Any]]


class EntityStore:
    """
    Mutable per-call store of canonical entities.

    Examples:
        >>> from flatgraph.core import EntitySchema
        >>> users = EntitySchema("users")
        >>> store = EntityStore()
        >>> store.add(users, {"id": 1, "name": "a"}, {"id": 1, "name": "a"}, None, None)
        >>> store.add(users, {"id": 1, "age": 3}, {"id": 1, "age": 3}, None, None)
        >>> store.get("users", 1)
        {'id': 1, 'name': 'a', 'age': 3}
    """

    def __init__(self, tables: Mapping[str, Mapping[Identity, Any]] | None = None) -> None:
        self._tables: EntityTables = {k: dict(v) for k, v in (tables or {}).items()}

    def add(self, schema: EntitySchema, canonical: Any, input: Any, parent: Any, key: Any) -> None:
        """Record ``canonical`` under ``(schema.key, schema.get_id(input, parent, key))``."""
        identity = schema.get_id(input, parent, key)
        table = self._tables.setdefault(schema.key, {})
        if identity in table:
            logger.debug("merging %s[%r]", schema.key, identity)
            table[identity] = schema.merge(table[identity], canonical)
        else:
            logger.debug("storing %s[%r]", schema.key, identity)
            table[identity] = canonical

    def get(self, schema_key: str, identity: Identity) -> Any:
        """Stored value, or None when the type or identity is unknown."""
        return self._tables.get(schema_key, {}).get(identity)

    @property
    def tables(self) -> EntityTables:
        return self._tables

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, tuple) or len(item) != 2:
            return False
        schema_key, identity = item
        return identity in self._tables.get(schema_key, {})

    def __len__(self) -> int:
        return sum(len(t) for t in self._tables.values())

    def __repr__(self) -> str:
        sizes = {k: len(v) for k, v in self._tables.items()}
        return f"EntityStore({sizes!r})"
