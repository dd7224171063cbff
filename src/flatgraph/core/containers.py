"""
Representation detection and field access for entity inputs.

Entities arrive in one of two keyed representations, and every field read or
rebuild is routed through an explicit detection step instead of ad-hoc
attribute probing.

Responsibilities
- Classify a value into a Representation (plain, keyed, sequence, scalar).
- Read, test and replace fields in a representation-preserving way.
- Build the default field-name identity resolver.
- Rebuild read-only containers during denormalization (``denormalize_keyed``).

Representations
- PLAIN: any ``collections.abc.MutableMapping`` (e.g. ``dict``). Indexed directly
  and mutated in place where the caller owns the value.
- KEYED: a read-only ``collections.abc.Mapping`` (e.g. ``types.MappingProxyType``
  or an immutable map type). Never mutated; updates build a new container.
- SEQUENCE: lists, tuples and other non-string sequences.
- SCALAR: everything else, including ``str``/``bytes`` and ``None``.

Notes:
    - Zero-IO, stdlib only.
    - A KEYED container is rebuilt with ``type(container)(mapping)``; types whose
      constructor does not accept a mapping must be wrapped by a custom
      ``process_strategy``.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, MutableMapping, Sequence
from enum import Enum
from types import MappingProxyType
from typing import Any

from .typing import IdResolver, Unvisit

__all__ = [
    "Representation",
    "representation_of",
    "is_composite",
    "has_field",
    "get_field",
    "with_fields",
    "attribute_resolver",
    "denormalize_keyed",
]


class Representation(Enum):
    """Representation kind of a traversed value."""

    PLAIN = "plain"
    KEYED = "keyed"
    SEQUENCE = "sequence"
    SCALAR = "scalar"


_KEYED_KINDS = (Representation.PLAIN, Representation.KEYED)


def representation_of(value: Any) -> Representation:
    """
    Classify a value by representation kind.

    Args:
        value (Any): Any traversed value.

    Returns:
        Representation: PLAIN for mutable mappings, KEYED for read-only mappings,
        SEQUENCE for non-string sequences, SCALAR otherwise.

    Examples:
        >>> from types import MappingProxyType
        >>> representation_of({"id": 1}).value
        'plain'
        >>> representation_of(MappingProxyType({"id": 1})).value
        'keyed'
        >>> representation_of("abc").value
        'scalar'
    """
    if isinstance(value, MutableMapping):
        return Representation.PLAIN
    if isinstance(value, Mapping):
        return Representation.KEYED
    if isinstance(value, (str, bytes, bytearray)):
        return Representation.SCALAR
    if isinstance(value, Sequence):
        return Representation.SEQUENCE
    return Representation.SCALAR


def is_composite(value: Any) -> bool:
    """True for mappings and non-string sequences."""
    return representation_of(value) is not Representation.SCALAR


def has_field(container: Any, name: Any) -> bool:
    """True if ``container`` is keyed and holds ``name`` as its own field."""
    if representation_of(container) in _KEYED_KINDS:
        return name in container
    return False


def get_field(container: Any, name: Any, default: Any = None) -> Any:
    """
    Read a named field, picking the access path from the representation kind.

    Args:
        container (Any): Entity input or canonical value.
        name (Any): Field name.
        default (Any): Returned when the field is absent or the value is not keyed.

    Returns:
        Any: The field value, or ``default``.
    """
    kind = representation_of(container)
    if kind is Representation.PLAIN:
        return container[name] if name in container else default
    if kind is Representation.KEYED:
        return container.get(name, default)
    return default


def _rebuild_keyed(container: Mapping[Any, Any], data: dict[Any, Any]) -> Mapping[Any, Any]:
    if isinstance(container, MappingProxyType):
        return MappingProxyType(data)
    return type(container)(data)  # type: ignore[call-arg]


def with_fields(container: Any, updates: Mapping[Any, Any]) -> Any:
    """
    Return a new container equal to ``container`` with ``updates`` applied.

    Args:
        container (Any): PLAIN or KEYED value.
        updates (Mapping[Any, Any]): Field replacements.

    Returns:
        Any: ``container`` itself when there is nothing to update, otherwise a new
        container of the same kind. The input is never mutated.

    Raises:
        TypeError: If ``container`` is neither PLAIN nor KEYED and updates are given.
    """
    if not updates:
        return container
    kind = representation_of(container)
    if kind is Representation.PLAIN:
        updated = copy.copy(container)
        updated.update(updates)
        return updated
    if kind is Representation.KEYED:
        return _rebuild_keyed(container, {**container, **updates})
    raise TypeError(f"cannot set fields on {type(container).__name__} value")


def attribute_resolver(name: str) -> IdResolver:
    """
    Build an identity resolver that reads the field ``name`` from the input.

    Args:
        name (str): Field holding the identity.

    Returns:
        IdResolver: Callable ``(input, parent, key) -> identity``. Inputs that are
        not keyed, or lack the field, resolve to ``None``.

    Examples:
        >>> get_id = attribute_resolver("id")
        >>> get_id({"id": "5", "name": "x"}, None, None)
        '5'
    """

    def resolve(input: Any, parent: Any, key: Any) -> Any:
        return get_field(input, name)

    resolve.__qualname__ = f"attribute_resolver.<{name}>"
    return resolve


def denormalize_keyed(
    fields: Mapping[str, Any],
    container: Mapping[Any, Any],
    unvisit: Unvisit,
) -> Mapping[Any, Any]:
    """
    Denormalize a read-only container by rebuilding it.

    Args:
        fields (Mapping[str, Any]): Entity field map (field -> nested schema).
        container (Mapping[Any, Any]): KEYED entity as stored.
        unvisit (Unvisit): Engine dispatcher ``(value, schema) -> value``.

    Returns:
        Mapping[Any, Any]: New container of the same type, with every schema field
        present in ``container`` replaced by ``unvisit(container.get(field), schema)``.
        Non-schema fields are carried over untouched.
    """
    data = dict(container)
    for name, nested in fields.items():
        if name in container:
            data[name] = unvisit(container.get(name), nested)
    return _rebuild_keyed(container, data)
