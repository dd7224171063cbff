"""
Visited-value bookkeeping for one top-level normalize call.

A CycleGuard is the ``visited_entities`` argument threaded by reference through
every recursive ``EntitySchema.normalize`` call. It records the key of each
entity input already normalized, so that a value reachable through several
paths (including a true reference cycle) is processed and stored once.

Notes:
    - One guard per top-level call. The engine builds a fresh one for every
      ``flatgraph.engine.normalize`` invocation; never share or reuse it.
    - Modes:
        - "structural" (default): keys are ``hashing.fingerprint`` strings, so
          deep-equal inputs are deduplicated even when they are distinct objects.
        - "reference": keys are derived from object identity, so only the same
          object is deduplicated.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from .hashing import fingerprint, reference_fingerprint
from .typing import DedupeMode

__all__ = ["CycleGuard"]


class CycleGuard:
    """
    Set of visited-value keys owned by a single normalize call.

    Attributes:
        mode (DedupeMode): How keys are derived from values.

    Examples:
        >>> guard = CycleGuard()
        >>> k = guard.key_for({"id": 1})
        >>> k in guard
        False
        >>> guard.add(k)
        >>> guard.key_for({"id": 1}) in guard
        True
    """

    def __init__(self, mode: DedupeMode = "structural") -> None:
        if mode not in ("structural", "reference"):
            raise ValueError(f"unknown dedupe mode {mode!r}")
        self.mode: DedupeMode = mode
        self._seen: set[str] = set()

    def key_for(self, value: Any) -> str:
        if self.mode == "reference":
            return reference_fingerprint(value)
        return fingerprint(value)

    def add(self, key: str) -> None:
        self._seen.add(key)

    def __contains__(self, key: object) -> bool:
        return key in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def __iter__(self) -> Iterator[str]:
        return iter(self._seen)

    def __repr__(self) -> str:
        return f"CycleGuard(mode={self.mode!r}, seen={len(self._seen)})"
