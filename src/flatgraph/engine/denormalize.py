"""
Denormalization: (result, flat entity tables) -> nested view.

Purpose
- Provide the ``unvisit`` dispatcher that EntitySchema.denormalize calls back
  into for nested schemas.
- Provide the top-level ``denormalize`` entry point.

Entity resolution
- An identity is looked up in the entity tables under the schema key. Missing
  identities go through the schema's ``fallback_strategy``; a fallback of None
  (the default) yields None.
- An entity value that is already composite (never normalized) is denormalized
  directly.
- Each ``(schema key, identity)`` is rebuilt once per call. PLAIN entities are
  copied before being filled in, and the copy is cached before its fields are
  resolved, so cyclic graphs come back as cyclic object graphs and the stored
  tables are never mutated. KEYED entities are rebuilt as new containers; a
  cycle through a KEYED entity refers to the container as stored.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from flatgraph.core.containers import (
    Representation,
    has_field,
    is_composite,
    representation_of,
    with_fields,
)
from flatgraph.core.entity import EntitySchema
from flatgraph.core.typing import Identity

from .config import EngineSettings
from .errors import UnsupportedSchemaError
from .normalize import recursion_headroom, single_schema
from .store import EntityStore
from .union import UnionSchema

logger = logging.getLogger(__name__)

__all__ = [
    "Unvisitor",
    "denormalize",
]


class Unvisitor:
    """
    ``unvisit`` dispatcher bound to one set of entity tables.

    Args:
        entities (Mapping | EntityStore): Entity type key -> identity -> value.
        strict_schemas (bool): Raise UnsupportedSchemaError for schema objects
            that are not understood; otherwise return the value unchanged.

    Notes:
        Holds the per-call cache; build a new Unvisitor for every top-level call.
        Values under an array schema that are not sequences pass through
        unchanged, mirroring ``visit``.
    """

    def __init__(
        self,
        entities: Mapping[str, Mapping[Identity, Any]] | EntityStore,
        strict_schemas: bool = True,
    ) -> None:
        self._entities = entities.tables if isinstance(entities, EntityStore) else entities
        self.strict_schemas = strict_schemas
        self._cache: dict[tuple[str, Any], Any] = {}

    def _lookup(self, identity: Identity, schema: EntitySchema) -> Any:
        if is_composite(identity):
            return identity
        table = self._entities.get(schema.key)
        if table is not None and identity in table:
            return table[identity]
        logger.debug("no %s entity for %r; using fallback", schema.key, identity)
        return schema.fallback(identity)

    def _unvisit_entity(self, identity: Identity, schema: EntitySchema) -> Any:
        entity = self._lookup(identity, schema)
        if not is_composite(entity):
            return entity

        ref = identity if not is_composite(identity) else id(identity)
        cache_key = (schema.key, ref)
        if cache_key not in self._cache:
            if representation_of(entity) is Representation.PLAIN:
                entity = dict(entity)
            self._cache[cache_key] = entity
            self._cache[cache_key] = schema.denormalize(entity, self.unvisit)
        return self._cache[cache_key]

    def __call__(self, value: Any, schema: Any) -> Any:
        return self.unvisit(value, schema)

    def unvisit(self, value: Any, schema: Any) -> Any:
        if isinstance(schema, list):
            if representation_of(value) is not Representation.SEQUENCE:
                return value
            element = single_schema(schema)
            return [self.unvisit(v, element) for v in value]

        if isinstance(schema, Mapping):
            if not is_composite(value) or representation_of(value) is Representation.SEQUENCE:
                return value
            updates = {}
            for field, nested in schema.items():
                if has_field(value, field):
                    updates[field] = self.unvisit(value[field], nested)
            return with_fields(value, updates)

        if value is None or schema is None:
            return value

        if isinstance(schema, EntitySchema):
            return self._unvisit_entity(value, schema)

        if isinstance(schema, UnionSchema):
            return schema.denormalize(value, self.unvisit)

        if self.strict_schemas:
            raise UnsupportedSchemaError(f"cannot denormalize with schema {schema!r}")
        return value


def denormalize(
    value: Any,
    schema: Any,
    entities: Mapping[str, Mapping[Identity, Any]] | EntityStore,
    settings: EngineSettings | None = None,
) -> Any:
    """
    Rebuild a nested view of ``value`` from ``entities``.

    Args:
        value (Any): A normalized result (identity, list of identities, or a
            mapping holding them).
        schema (Any): The schema ``value`` was normalized with.
        entities (Mapping | EntityStore): Entity tables from normalize.
        settings (EngineSettings | None): Defaults to ``EngineSettings()``.

    Returns:
        Any: The denormalized value. ``entities`` is left untouched.

    Examples:
        >>> from flatgraph.core import EntitySchema
        >>> user = EntitySchema("users")
        >>> post = EntitySchema("posts", {"author": user})
        >>> entities = {"users": {1: {"id": 1}}, "posts": {7: {"id": 7, "author": 1}}}
        >>> denormalize(7, post, entities)
        {'id': 7, 'author': {'id': 1}}
    """
    settings = settings or EngineSettings()
    unvisitor = Unvisitor(entities, strict_schemas=settings.strict_schemas)
    with recursion_headroom(settings.recursion_limit):
        return unvisitor.unvisit(value, schema)
