"""
Polars export of flat entity tables.

Purpose
- Materialize each entity type's table as a polars DataFrame for inspection,
  joins or persistence by the caller.

Layout
- One frame per entity type key, one row per identity, in store order.
- The identity column (``EngineSettings.frame_id_column``, default "entity_id")
  comes first and holds ``str(identity)`` so mixed identity types share one dtype.
- Mapping entities contribute one column per field (keys stringified); a field
  sharing the identity column's name is dropped in favour of the identity.
  Non-mapping entities land in a single "value" column.
- Nested normalized values keep polars' inferred dtypes (lists of identities
  become pl.List, nested mappings pl.Struct).

Notes
- Zero file IO here; writing frames is left to the caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import polars as pl

from flatgraph.core.containers import Representation, representation_of
from flatgraph.core.typing import Identity

from .config import EngineSettings
from .errors import TableExportError
from .store import EntityStore

__all__ = ["entity_frames"]


def _row(identity: Identity, canonical: Any, id_column: str) -> dict[str, Any]:
    row: dict[str, Any] = {id_column: str(identity)}
    if representation_of(canonical) in (Representation.PLAIN, Representation.KEYED):
        for field, value in canonical.items():
            name = str(field)
            if name != id_column:
                row[name] = value
    else:
        row["value"] = canonical
    return row


def entity_frames(
    entities: Mapping[str, Mapping[Identity, Any]] | EntityStore,
    settings: EngineSettings | None = None,
) -> dict[str, pl.DataFrame]:
    """
    Export entity tables as polars DataFrames.

    Args:
        entities (Mapping | EntityStore): Entity type key -> identity -> canonical value.
        settings (EngineSettings | None): Supplies the identity column name.

    Returns:
        dict[str, pl.DataFrame]: Entity type key -> frame.

    Raises:
        TableExportError: If a table's rows cannot be combined into one frame.

    Examples:
        >>> frames = entity_frames({"users": {1: {"id": 1, "name": "ada"}}})
        >>> frames["users"].columns
        ['entity_id', 'id', 'name']
    """
    settings = settings or EngineSettings()
    tables = entities.tables if isinstance(entities, EntityStore) else entities
    id_column = settings.frame_id_column

    frames: dict[str, pl.DataFrame] = {}
    for key, table in tables.items():
        rows = [_row(identity, canonical, id_column) for identity, canonical in table.items()]
        if not rows:
            frames[key] = pl.DataFrame({id_column: []}, schema={id_column: pl.Utf8})
            continue
        try:
            frames[key] = pl.from_dicts(rows, infer_schema_length=None)
        except (pl.exceptions.PolarsError, TypeError, ValueError) as exc:
            raise TableExportError(f"cannot build frame for entity table {key!r}: {exc}") from exc
    return frames
