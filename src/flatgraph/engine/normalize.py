"""
Normalization: nested input -> (result, flat entity tables).

Purpose
- Provide the ``visit`` dispatcher that EntitySchema.normalize calls back into
  for nested schemas.
- Provide the top-level ``normalize`` entry point, which owns one EntityStore
  and one CycleGuard per call.

Schema kinds understood by ``visit``
- EntitySchema / UnionSchema: delegate to ``schema.normalize``.
- ``[schema]``: array shorthand; every element (or mapping value) is visited
  with ``schema``; the result is a list.
- ``{field: schema}``: object shorthand; listed fields are visited, other fields
  are copied; the container kind is preserved.
- ``None``: passthrough.

Non-composite values (scalars, strings, None) are returned unchanged whatever the
schema, so already-normalized identities survive a second pass.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from flatgraph.core.containers import (
    Representation,
    has_field,
    is_composite,
    representation_of,
    with_fields,
)
from flatgraph.core.cycles import CycleGuard
from flatgraph.core.entity import EntitySchema
from flatgraph.core.typing import AddEntity

from .config import EngineSettings
from .errors import NormalizeInputError, UnsupportedSchemaError
from .store import EntityStore, EntityTables
from .union import UnionSchema

logger = logging.getLogger(__name__)

__all__ = [
    "NormalizedResult",
    "Visitor",
    "visit",
    "normalize",
    "recursion_headroom",
]


@dataclass(frozen=True)
class NormalizedResult:
    """
    Output of a top-level normalize call.

    Attributes:
        result (Any): The input with every entity replaced by its identity.
        entities (EntityTables): Entity type key -> identity -> canonical value.
    """

    result: Any
    entities: EntityTables


def single_schema(schema: list[Any]) -> Any:
    """Element schema of an array shorthand."""
    if len(schema) != 1:
        raise UnsupportedSchemaError(
            f"Expected schema definition to be a single schema, but found {len(schema)}."
        )
    return schema[0]


@contextmanager
def recursion_headroom(limit: int) -> Iterator[None]:
    """
    Raise the interpreter recursion limit to at least ``limit`` for a block.

    Notes:
        The limit is process-wide. A traversal in another thread runs under
        whatever limit is current, and the block that raised the limit lowers
        it again on exit.
    """
    previous = sys.getrecursionlimit()
    if limit > previous:
        sys.setrecursionlimit(limit)
    try:
        yield
    finally:
        if limit > previous:
            sys.setrecursionlimit(previous)


class Visitor:
    """
    ``visit`` dispatcher bound to a strictness setting.

    Args:
        strict_schemas (bool): Raise UnsupportedSchemaError for schema objects
            that are not understood; otherwise return the value unchanged.

    Notes:
        Nested schemas are handed the bound ``visit`` method rather than the
        instance, so every level of nesting stays a plain Python frame.
    """

    def __init__(self, strict_schemas: bool = True) -> None:
        self.strict_schemas = strict_schemas

    def __call__(
        self,
        value: Any,
        parent: Any,
        key: Any,
        schema: Any,
        add_entity: AddEntity,
        visited_entities: CycleGuard,
    ) -> Any:
        return self.visit(value, parent, key, schema, add_entity, visited_entities)

    def visit(
        self,
        value: Any,
        parent: Any,
        key: Any,
        schema: Any,
        add_entity: AddEntity,
        visited_entities: CycleGuard,
    ) -> Any:
        if not is_composite(value) or schema is None:
            return value

        if isinstance(schema, (EntitySchema, UnionSchema)):
            return schema.normalize(value, parent, key, self.visit, add_entity, visited_entities)

        if isinstance(schema, list):
            element = single_schema(schema)
            if representation_of(value) is Representation.SEQUENCE:
                values = list(value)
            else:
                values = list(value.values())
            return [self.visit(v, parent, key, element, add_entity, visited_entities) for v in values]

        if isinstance(schema, Mapping):
            if representation_of(value) is Representation.SEQUENCE:
                return value
            updates = {}
            for field, nested in schema.items():
                if has_field(value, field):
                    updates[field] = self.visit(value[field], value, field, nested, add_entity, visited_entities)
            return with_fields(value, updates)

        if self.strict_schemas:
            raise UnsupportedSchemaError(f"cannot normalize with schema {schema!r}")
        return value


visit = Visitor()


def normalize(data: Any, schema: Any, settings: EngineSettings | None = None) -> NormalizedResult:
    """
    Flatten ``data`` according to ``schema``.

    Args:
        data (Any): Mapping or sequence to normalize.
        schema (Any): EntitySchema, UnionSchema, or a list/dict shorthand of them.
        settings (EngineSettings | None): Defaults to ``EngineSettings()``.

    Returns:
        NormalizedResult: The identity-substituted result and the entity tables.

    Raises:
        NormalizeInputError: If ``data`` is not a mapping or sequence.
        UnsupportedSchemaError: On malformed schemas (strict mode).

    Examples:
        >>> from flatgraph.core import EntitySchema
        >>> user = EntitySchema("users")
        >>> user.define({"friends": [user]})
        >>> out = normalize({"id": 1, "friends": [{"id": 2}]}, user)
        >>> out.result
        1
        >>> sorted(out.entities["users"])
        [1, 2]
        >>> out.entities["users"][1]
        {'id': 1, 'friends': [2]}
    """
    settings = settings or EngineSettings()
    if not is_composite(data):
        raise NormalizeInputError(
            f"Unexpected input given to normalize. Expected a mapping or sequence, found {type(data).__name__}."
        )

    store = EntityStore()
    guard = CycleGuard(settings.dedupe)
    visitor = Visitor(settings.strict_schemas)
    with recursion_headroom(settings.recursion_limit):
        result = visitor.visit(data, data, None, schema, store.add, guard)

    logger.debug(
        "normalized %d entities in %d tables (%d distinct inputs visited)",
        len(store),
        len(store.tables),
        len(guard),
    )
    return NormalizedResult(result=result, entities=store.tables)
