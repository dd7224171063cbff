"""
EntitySchema: the descriptor of one entity type in a nested object graph.

An EntitySchema names an entity type (``key``), knows how to derive the identity
of an input, and maps fields of that input to nested schemas. A traversal engine
drives it through two entry points:

- ``normalize`` flattens one input: it processes the input into a canonical
  value, replaces nested raw values with what the engine's ``visit`` returns for
  them, hands the result to the engine's ``add_entity`` and returns the identity.
- ``denormalize`` rebuilds a nested view of a stored canonical value by feeding
  each schema field through the engine's ``unvisit``.

Responsibilities
- Validate the key at construction (InvalidKind).
- Hold the strategy hooks (EntityOptions) and the additive field map.
- Short-circuit inputs already seen in the current call (CycleGuard).

Notes:
    - Zero-IO; the core never imports flatgraph.engine.
    - Field maps may reference schemas that are defined later. Close a cycle such
      as user <-> post with ``define`` before traversing:

      >>> user = EntitySchema("users")
      >>> post = EntitySchema("posts", {"author": user})
      >>> user.define({"posts": [post]})
      >>> sorted(user.fields)
      ['posts']
    - ``normalize`` never mutates its input or the processed value; nested
      substitutions produce a new canonical value.
    - ``denormalize`` mutates PLAIN entities in place. The engine passes a private
      copy, which is what lets a cyclic graph resolve to one shared object.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from .containers import (
    Representation,
    denormalize_keyed,
    has_field,
    is_composite,
    representation_of,
    with_fields,
)
from .cycles import CycleGuard
from .errors import InvalidKind
from .options import EntityOptions
from .typing import AddEntity, Identity, Unvisit, Visit

__all__ = ["EntitySchema"]


class EntitySchema:
    """
    Descriptor for one entity type.

    Args:
        key (str): Entity type name; keys the type's table in the entity store.
        definition (Mapping[str, Any] | None): Initial field -> nested schema map.
        options (EntityOptions | None): Strategy record. Keyword overrides
            (``id_attribute``, ``merge_strategy``, ``process_strategy``,
            ``fallback_strategy``) are applied on top of it.

    Raises:
        InvalidKind: If ``key`` is missing, empty, or not a ``str``.
        pydantic.ValidationError: If the strategy overrides are invalid.

    Examples:
        >>> article = EntitySchema("articles", id_attribute="slug")
        >>> article.key, article.id_attribute
        ('articles', 'slug')
        >>> article.get_id({"slug": "hello"}, None, None)
        'hello'
    """

    def __init__(
        self,
        key: str,
        definition: Mapping[str, Any] | None = None,
        *,
        options: EntityOptions | None = None,
        **overrides: Any,
    ) -> None:
        if not isinstance(key, str) or not key:
            raise InvalidKind(key)

        if options is None:
            options = EntityOptions(**overrides)
        elif overrides:
            current = {name: getattr(options, name) for name in EntityOptions.model_fields}
            options = EntityOptions(**{**current, **overrides})

        self._key = key
        self._options = options
        self._get_id = options.resolver()
        self._fields: dict[str, Any] = {}
        self.define(definition or {})

    @property
    def key(self) -> str:
        return self._key

    @property
    def id_attribute(self) -> Any:
        """Configured field name or resolver callable."""
        return self._options.id_attribute

    @property
    def options(self) -> EntityOptions:
        return self._options

    @property
    def fields(self) -> Mapping[str, Any]:
        """Read-only view of the field -> nested schema map."""
        return MappingProxyType(self._fields)

    def define(self, definition: Mapping[str, Any]) -> None:
        """
        Merge ``definition`` into the field map; later entries win per field.

        Args:
            definition (Mapping[str, Any]): Field -> nested schema entries.

        Notes:
            Not safe to call while a traversal using this schema is in flight.
        """
        self._fields = {**self._fields, **definition}

    def get_id(self, input: Any, parent: Any, key: Any) -> Identity:
        return self._get_id(input, parent, key)

    def merge(self, entity_a: Any, entity_b: Any) -> Any:
        return self._options.merge_strategy(entity_a, entity_b)

    def process(self, input: Any, parent: Any, key: Any) -> Any:
        return self._options.process_strategy(input, parent, key)

    def fallback(self, identity: Identity) -> Any:
        return self._options.fallback_strategy(identity, self)

    def normalize(
        self,
        input: Any,
        parent: Any,
        key: Any,
        visit: Visit,
        add_entity: AddEntity,
        visited_entities: CycleGuard,
    ) -> Identity:
        """
        Flatten ``input`` into a canonical entity and return its identity.

        Args:
            input (Any): Raw entity value.
            parent (Any): Canonical value of the enclosing entity (or the enclosing
                raw value for top-level and shorthand schemas).
            key (Any): Field of ``parent`` holding ``input``.
            visit (Visit): Engine dispatcher for nested schemas.
            add_entity (AddEntity): Engine callback storing the canonical value.
            visited_entities (CycleGuard): Guard owned by the current top-level call.

        Returns:
            Identity: ``get_id(input, parent, key)``.

        Notes:
            An input whose key is already in ``visited_entities`` is not processed,
            visited or stored again; only its identity is returned.
        """
        seen_key = visited_entities.key_for(input)
        if seen_key in visited_entities:
            return self.get_id(input, parent, key)
        visited_entities.add(seen_key)

        processed = self.process(input, parent, key)
        substitutions = {}
        for field, nested in self._fields.items():
            if has_field(processed, field) and is_composite(processed[field]):
                substitutions[field] = visit(
                    processed[field], processed, field, nested, add_entity, visited_entities
                )
        canonical = with_fields(processed, substitutions)

        add_entity(self, canonical, input, parent, key)
        return self.get_id(input, parent, key)

    def denormalize(self, entity: Any, unvisit: Unvisit) -> Any:
        """
        Rebuild nested values of a stored entity.

        Args:
            entity (Any): Stored canonical value (PLAIN copy or KEYED container).
            unvisit (Unvisit): Engine dispatcher ``(value, schema) -> value``.

        Returns:
            Any: ``entity`` itself, updated in place, for PLAIN values; a new
            container for KEYED values.
        """
        if representation_of(entity) is Representation.KEYED:
            return denormalize_keyed(self._fields, entity, unvisit)

        for field, nested in self._fields.items():
            if has_field(entity, field):
                entity[field] = unvisit(entity[field], nested)
        return entity

    def __repr__(self) -> str:
        return f"EntitySchema(key={self._key!r}, fields={sorted(self._fields)!r})"
