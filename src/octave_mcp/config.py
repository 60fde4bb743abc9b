from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

DEFAULT_BINARY = "octave"
DEFAULT_TIMEOUT_SECONDS = 10
DEFAULT_CONCURRENCY_LIMIT = 10
DEFAULT_SCRIPT_LENGTH_LIMIT = 10000
DEFAULT_GRAPHICS_TOOLKIT = "qt"

ENV_BINARY = "OCTAVE_BINARY"
ENV_TIMEOUT = "OCTAVE_SCRIPT_TIMEOUT"
ENV_CONCURRENCY = "OCTAVE_CONCURRENCY_LIMIT"
ENV_LENGTH_LIMIT = "OCTAVE_SCRIPT_LENGTH_LIMIT"
ENV_GRAPHICS_TOOLKIT = "OCTAVE_GRAPHICS_TOOLKIT"

# (field name, env var, default) for the positive integer settings.
_INT_SETTINGS = (
    ("timeout_seconds", ENV_TIMEOUT, DEFAULT_TIMEOUT_SECONDS),
    ("concurrency_limit", ENV_CONCURRENCY, DEFAULT_CONCURRENCY_LIMIT),
    ("script_length_limit", ENV_LENGTH_LIMIT, DEFAULT_SCRIPT_LENGTH_LIMIT),
)
_STR_SETTINGS = (
    ("binary", ENV_BINARY, DEFAULT_BINARY),
    ("graphics_toolkit", ENV_GRAPHICS_TOOLKIT, DEFAULT_GRAPHICS_TOOLKIT),
)


def _positive_int(value: Any, source: str, default: int) -> int:
    """Parse a positive integer, falling back to ``default`` with a warning.

    Example:
        ```python
        limit = _positive_int("12", "OCTAVE_CONCURRENCY_LIMIT", 10)  # 12
        ```
    """
    if isinstance(value, bool):
        parsed = None
    elif isinstance(value, int):
        parsed = value
    else:
        try:
            parsed = int(str(value).strip())
        except ValueError:
            parsed = None
    if parsed is None or parsed <= 0:
        logger.warning("Invalid value %r for %s, using default %d", value, source, default)
        return default
    return parsed


def _read_settings_toml(path: Path) -> dict[str, Any]:
    """Read a settings TOML file and return the ``[octave]`` table.

    A file without an ``[octave]`` table is read as a flat table.

    Example:
        ```python
        raw = _read_settings_toml(Path("/etc/octave-mcp.toml"))
        ```
    """
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    table = raw.get("octave", raw)
    if not isinstance(table, dict):
        raise ValueError("Settings config must be a TOML table")
    return table


@dataclass(frozen=True, slots=True)
class OctaveSettings:
    """Runtime limits for the Octave execution core.

    Example:
        ```python
        settings = OctaveSettings(timeout_seconds=5, concurrency_limit=2)
        ```
    """

    binary: str = DEFAULT_BINARY
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT
    script_length_limit: int = DEFAULT_SCRIPT_LENGTH_LIMIT
    graphics_toolkit: str = DEFAULT_GRAPHICS_TOOLKIT

    def __post_init__(self) -> None:
        """Reject non-positive limits on programmatic construction.

        Example:
            ```python
            OctaveSettings(concurrency_limit=0)  # raises ValueError
            ```
        """
        for name, _, _ in _INT_SETTINGS:
            if getattr(self, name) <= 0:
                raise ValueError(f"'{name}' must be a positive integer")
        if not self.binary.strip():
            raise ValueError("'binary' must be a non-empty string")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        base: dict[str, Any] | None = None,
    ) -> "OctaveSettings":
        """Build settings from ``OCTAVE_*`` environment variables.

        Invalid values are logged and replaced with their defaults. ``base``
        supplies values (e.g. from a file) that the environment overrides.
        Values are read once here; a running runner keeps them, so later
        changes to ``OCTAVE_SCRIPT_LENGTH_LIMIT`` (or any other variable)
        apply only to settings built afterwards.

        Example:
            ```python
            settings = OctaveSettings.from_env({"OCTAVE_SCRIPT_TIMEOUT": "30"})
            ```
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name, var, default in _INT_SETTINGS:
            if env.get(var, "").strip():
                values[name] = _positive_int(env[var], var, default)
            elif base is not None and name in base:
                values[name] = _positive_int(base[name], name, default)
        for name, var, default in _STR_SETTINGS:
            raw = env.get(var, "").strip()
            if raw:
                values[name] = raw
            elif base is not None and str(base.get(name, "")).strip():
                values[name] = str(base[name]).strip()
        return cls(**values)

    @classmethod
    def from_file(
        cls,
        config_path: str,
        environ: Mapping[str, str] | None = None,
    ) -> "OctaveSettings":
        """Create settings from a TOML file, with environment overrides.

        Example:
            ```python
            settings = OctaveSettings.from_file("/etc/octave-mcp.toml")
            ```
        """
        raw = _read_settings_toml(Path(config_path))
        return cls.from_env(environ, base=raw)
