"""
Core defaults shared by the entity schema and the engine.

This module is zero-IO and uses only the Python standard library.

Notes:
    - Changing DEFAULT_ID_ATTRIBUTE changes the identity of every schema built
      without an explicit ``id_attribute``.
    - The cycle markers are emitted by ``flatgraph.core.hashing.fingerprint``.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_ID_ATTRIBUTE",
    "CIRCULAR_ROOT_MARKER",
    "CIRCULAR_PATH_PREFIX",
    "UNION_ID_FIELD",
    "UNION_SCHEMA_FIELD",
]

# Field read by the default identity resolver.
DEFAULT_ID_ATTRIBUTE: str = "id"

# Emitted in place of a value that refers back to the root of the fingerprinted value.
CIRCULAR_ROOT_MARKER: str = "[Circular ~]"

# Prefix of the marker for a deeper ancestor; followed by the dotted key path and "]".
CIRCULAR_PATH_PREFIX: str = "[Circular ~."

# Normalized union values are {"id": <identity>, "schema": <name>}.
UNION_ID_FIELD: str = "id"
UNION_SCHEMA_FIELD: str = "schema"
