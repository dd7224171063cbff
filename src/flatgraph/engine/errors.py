"""
Custom exceptions for the flatgraph.engine module.

Purpose
- Provide engine-layer error types for traversal dispatch, input checks,
  configuration and table export.
- Keep flatgraph.core as the source of truth for schema construction errors
  (see flatgraph.core.errors).

Notes
- Exceptions raised by user-supplied resolvers and strategies are never wrapped
  in these types; they propagate unchanged and abort the whole call.
"""

from __future__ import annotations


class EngineError(Exception):
    """
    Base class for engine-layer errors.

    Notes:
        Use this as a catch-all for engine failures, distinct from flatgraph.core errors.
    """


class UnsupportedSchemaError(EngineError):
    """
    Raised when visit/unvisit meet a schema object they cannot dispatch.

    Examples:
        - A list shorthand with more or fewer than one element
        - A bare int or string used where a schema is expected
    """


class NormalizeInputError(EngineError):
    """Raised when the top-level input to normalize is not a mapping or sequence."""


class EngineConfigError(EngineError):
    """Raised when an EngineSettings file exists but cannot be parsed."""


class TableExportError(EngineError):
    """
    Raised when an entity table cannot be materialized as a polars DataFrame.

    Notes:
        Usually caused by canonical values whose fields hold mixed, non-coercible types.
    """
