"""
Configuration for the flatgraph.engine module.

Defines EngineSettings, a frozen dataclass carrying runtime configuration for
traversal and table export. Defaults favour the structural dedupe behaviour and
strict schema dispatch.

Loading precedence
- Environment variables (prefix ``FLATGRAPH_``)
- ``./flatgraph.toml`` (``[engine]`` table or top-level keys), or
  ``./pyproject.toml`` under ``[tool.flatgraph.engine]``
- Dataclass defaults

Notes
- Unknown or malformed values are ignored with a warning and the previous value
  is kept. A TOML file that exists but does not parse raises EngineConfigError.
- Settings are read once per call by the caller; nothing here is cached.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from flatgraph.core.typing import DedupeMode

from .errors import EngineConfigError

logger = logging.getLogger(__name__)

_DEDUPE_MODES = ("structural", "reference")


def _bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
    return False


@dataclass(frozen=True)
class EngineSettings:
    """
    Runtime settings for the flatgraph.engine layer.

    Attributes:
        dedupe (Literal["structural","reference"]): Key derivation for the per-call
            CycleGuard. "structural" deduplicates deep-equal inputs; "reference"
            deduplicates only the same object.
        strict_schemas (bool): If True, visit/unvisit raise UnsupportedSchemaError
            for schema objects they cannot dispatch; if False such values pass
            through unchanged.
        frame_id_column (str): Column that carries the identity in polars exports.
        recursion_limit (int): Interpreter recursion limit in force while a
            top-level normalize or denormalize runs. Nesting depth costs a few
            frames per level; the previous limit is restored afterwards, and a
            higher current limit is never lowered.

    Examples:
        >>> EngineSettings(dedupe="reference").dedupe
        'reference'
    """

    dedupe: DedupeMode = "structural"
    strict_schemas: bool = True
    frame_id_column: str = "entity_id"
    recursion_limit: int = 20_000

    @classmethod
    def _apply_mapping(cls, base: EngineSettings, cfg: dict[str, Any] | None) -> EngineSettings:
        """Apply a loose config mapping onto EngineSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        if "dedupe" in cfg:
            mode = str(cfg["dedupe"]).strip().lower()
            if mode in _DEDUPE_MODES:
                s = replace(s, dedupe=mode)  # type: ignore[arg-type]
            else:
                logger.warning("ignoring dedupe=%r (expected one of %s)", cfg["dedupe"], _DEDUPE_MODES)

        if "strict_schemas" in cfg:
            s = replace(s, strict_schemas=_bool(cfg["strict_schemas"]))

        if "frame_id_column" in cfg:
            col = cfg["frame_id_column"]
            if isinstance(col, str) and col.strip():
                s = replace(s, frame_id_column=col.strip())
            else:
                logger.warning("ignoring frame_id_column=%r", col)

        if "recursion_limit" in cfg:
            try:
                limit = int(cfg["recursion_limit"])
            except (TypeError, ValueError):
                limit = 0
            if limit > 0:
                s = replace(s, recursion_limit=limit)
            else:
                logger.warning("ignoring recursion_limit=%r", cfg["recursion_limit"])

        return s

    @classmethod
    def from_env(cls, base: EngineSettings | None = None, prefix: str = "FLATGRAPH_") -> EngineSettings:
        """
        Build EngineSettings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - FLATGRAPH_DEDUPE ("structural" | "reference")
            - FLATGRAPH_STRICT_SCHEMAS (1/0/true/false/yes/no/on/off)
            - FLATGRAPH_FRAME_ID_COLUMN
            - FLATGRAPH_RECURSION_LIMIT (positive int)
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for name in ("DEDUPE", "STRICT_SCHEMAS", "FRAME_ID_COLUMN", "RECURSION_LIMIT"):
            v = os.getenv(prefix + name)
            if v:
                mapping[name.lower()] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> EngineSettings:
        """
        Build EngineSettings from a TOML file.

        Search order when `path` is None:
            1) ./flatgraph.toml (with either an [engine] table or direct keys)
            2) ./pyproject.toml under [tool.flatgraph.engine]

        Returns defaults if no file is present.

        Raises:
            EngineConfigError: If a candidate file exists but is not valid TOML.
        """
        s = cls()

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "flatgraph.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            try:
                with p.open("rb") as fh:
                    data = tomllib.load(fh)
            except tomllib.TOMLDecodeError as exc:
                raise EngineConfigError(f"invalid TOML in {p}: {exc}") from exc

            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("flatgraph", {}).get("engine") if isinstance(tool, dict) else None
            elif isinstance(data.get("engine"), dict):
                cfg = data["engine"]
            else:
                cfg = data
            if cfg:
                logger.debug("loaded engine settings from %s", p)
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> EngineSettings:
        """
        Load EngineSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (flatgraph.toml, pyproject.toml).

        Returns:
            EngineSettings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
