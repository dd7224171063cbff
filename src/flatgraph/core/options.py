"""
Pydantic v2 configuration record for entity schemas.

Collects the independently substitutable strategy hooks of an EntitySchema,
each with a named default:

- id_attribute: field name (default DEFAULT_ID_ATTRIBUTE) or resolver callable.
- merge_strategy: default_merge, a representation-preserving shallow union
  where the newer value wins.
- process_strategy: default_process, a representation-preserving shallow copy.
- fallback_strategy: default_fallback, which yields None for unknown identities.

Notes:
    - Zero-IO (stdlib + pydantic only).
    - The record is frozen; build a new one (or use ``model_copy(update=...)``)
      to change a strategy.
    - default_merge is not associative under repeated conflicting writes: the
      last writer wins per pairwise call, so the final value depends on the order
      in which the store discovers observations.
"""

from __future__ import annotations

import copy
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from .constants import DEFAULT_ID_ATTRIBUTE
from .containers import Representation, attribute_resolver, representation_of, with_fields
from .typing import FallbackStrategy, IdResolver, MergeStrategy, ProcessStrategy

__all__ = [
    "EntityOptions",
    "default_merge",
    "default_process",
    "default_fallback",
]


def default_merge(entity_a: Any, entity_b: Any) -> Any:
    """
    Shallow field union; fields of ``entity_b`` override those of ``entity_a``.

    The result keeps the representation of ``entity_a``: a read-only container
    is rebuilt as the same type, anything else becomes a fresh ``dict``.

    Examples:
        >>> default_merge({"a": 1, "b": 2}, {"b": 3, "c": 4})
        {'a': 1, 'b': 3, 'c': 4}
    """
    if representation_of(entity_a) is Representation.KEYED:
        return with_fields(entity_a, dict(entity_b))
    return {**entity_a, **entity_b}


def default_process(input: Any, parent: Any, key: Any) -> Any:
    """
    Shallow copy of ``input`` that keeps its representation.

    Plain mappings become a fresh ``dict``. Read-only containers are returned as
    is, since field substitution rebuilds them anyway.
    """
    kind = representation_of(input)
    if kind is Representation.PLAIN:
        return dict(input)
    if kind is Representation.KEYED:
        return input
    return copy.copy(input)


def default_fallback(identity: Any, schema: Any) -> Any:
    return None


class EntityOptions(BaseModel):
    """
    Strategy hooks of an EntitySchema.

    Attributes:
        id_attribute (str | Callable): Field name read from the input, or a
            resolver ``(input, parent, key) -> identity`` used verbatim.
        merge_strategy (Callable): ``(canonical_a, canonical_b) -> canonical``.
        process_strategy (Callable): ``(input, parent, key) -> canonical``.
        fallback_strategy (Callable): ``(identity, schema) -> value`` consulted by
            the engine when an identity is missing from the entity tables.

    Raises:
        pydantic.ValidationError: If ``id_attribute`` is an empty string, or a
            hook is not callable.

    Examples:
        >>> opts = EntityOptions(id_attribute="slug")
        >>> opts.resolver()({"slug": "intro"}, None, None)
        'intro'
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    id_attribute: str | IdResolver = DEFAULT_ID_ATTRIBUTE
    merge_strategy: MergeStrategy = default_merge
    process_strategy: ProcessStrategy = default_process
    fallback_strategy: FallbackStrategy = default_fallback

    @field_validator("id_attribute")
    @classmethod
    def _id_attribute_not_empty(cls, v: Any) -> Any:
        if isinstance(v, str) and not v:
            raise ValueError("id_attribute must be a non-empty field name or a callable")
        return v

    def resolver(self) -> IdResolver:
        """Identity resolver for this configuration."""
        if callable(self.id_attribute):
            return self.id_attribute
        return attribute_resolver(self.id_attribute)
