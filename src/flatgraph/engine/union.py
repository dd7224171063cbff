"""
Polymorphic field schema: one of several entity types, chosen per value.

A UnionSchema maps a schema name to an EntitySchema and decides, for every
value, which name applies. Normalized values carry both parts:

    {"id": <identity>, "schema": <name>}

Notes
- Values whose name is not in the mapping pass through normalize unchanged.
- On denormalize, values without a known ``schema`` field are returned as is.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from flatgraph.core.constants import UNION_ID_FIELD, UNION_SCHEMA_FIELD
from flatgraph.core.containers import get_field
from flatgraph.core.cycles import CycleGuard
from flatgraph.core.entity import EntitySchema
from flatgraph.core.errors import SchemaError
from flatgraph.core.typing import AddEntity, Unvisit, Visit

__all__ = ["UnionSchema"]


class UnionSchema:
    """
    Field schema selecting an entity type per value.

    Args:
        schemas (Mapping[str, EntitySchema]): Schema name -> entity schema.
        schema_attribute (str | Callable): Field of the value holding the schema
            name, or ``(input, parent, key) -> name``.

    Raises:
        SchemaError: If ``schema_attribute`` is an empty string.

    Examples:
        >>> from flatgraph.core import EntitySchema
        >>> owner = UnionSchema(
        ...     {"users": EntitySchema("users"), "groups": EntitySchema("groups")},
        ...     schema_attribute="type",
        ... )
        >>> owner.schema_name({"id": 1, "type": "groups"}, None, None)
        'groups'
    """

    def __init__(
        self,
        schemas: Mapping[str, EntitySchema],
        schema_attribute: str | Callable[[Any, Any, Any], Any],
    ) -> None:
        if isinstance(schema_attribute, str) and not schema_attribute:
            raise SchemaError("schema_attribute must be a non-empty field name or a callable")
        self._schema_attribute = schema_attribute
        self._schemas: dict[str, EntitySchema] = {}
        self.define(schemas)

    @property
    def schemas(self) -> Mapping[str, EntitySchema]:
        return dict(self._schemas)

    def define(self, schemas: Mapping[str, EntitySchema]) -> None:
        self._schemas = {**self._schemas, **schemas}

    def schema_name(self, input: Any, parent: Any, key: Any) -> Any:
        if callable(self._schema_attribute):
            return self._schema_attribute(input, parent, key)
        return get_field(input, self._schema_attribute)

    def normalize(
        self,
        input: Any,
        parent: Any,
        key: Any,
        visit: Visit,
        add_entity: AddEntity,
        visited_entities: CycleGuard,
    ) -> Any:
        name = self.schema_name(input, parent, key)
        schema = self._schemas.get(name)
        if schema is None:
            return input
        identity = visit(input, parent, key, schema, add_entity, visited_entities)
        if identity is None:
            return identity
        return {UNION_ID_FIELD: identity, UNION_SCHEMA_FIELD: name}

    def denormalize(self, input: Any, unvisit: Unvisit) -> Any:
        name = get_field(input, UNION_SCHEMA_FIELD)
        schema = self._schemas.get(name)
        if schema is None:
            return input
        identity = get_field(input, UNION_ID_FIELD)
        return unvisit(input if identity is None else identity, schema)

    def __repr__(self) -> str:
        return f"UnionSchema(schemas={sorted(self._schemas)!r})"
