from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .errors import OctaveEnvironmentError, UnsupportedFormatError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("png", "svg")
MIME_TYPES = {"png": "image/png", "svg": "image/svg+xml"}
TEMP_DIR_PREFIX = "octave-plot-"
OUTPUT_STEM = "plot"

_HEADER = (
    'graphics_toolkit("{toolkit}");\n'
    'set(0, "defaultfigurevisible", "off");\n'
)
# print() is skipped when no figure exists, so nothing is written.
_FOOTER = (
    '\nif (! isempty (get (0, "children")))\n'
    '  print("-d{fmt}", "{path}");\n'
    "endif\n"
)


def normalize_format(fmt: str) -> str:
    """Lower-case and check a plot format.

    Example:
        ```python
        normalize_format("PNG")  # "png"
        normalize_format("jpg")  # raises UnsupportedFormatError
        ```
    """
    normalized = (fmt or "").strip().lower()
    if normalized not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(normalized)
    return normalized


def _octave_string(value: str) -> str:
    """Escape text for use inside a double-quoted Octave string.

    Example:
        ```python
        _octave_string('a"b')  # 'a\\\\"b'
        ```
    """
    return value.replace("\\", "\\\\").replace('"', '\\"')


def wrapper_overhead(output_path: Path, fmt: str, toolkit: str) -> int:
    """Number of characters `build_plot_script` adds around the caller's script.

    Example:
        ```python
        budget = 10000 - wrapper_overhead(Path("/tmp/x/plot.png"), "png", "qt")
        ```
    """
    return len(build_plot_script("", output_path, fmt, toolkit))


def build_plot_script(script: str, output_path: Path, fmt: str, toolkit: str) -> str:
    """Wrap a script so it renders off-screen and prints the current figure to a file.

    Example:
        ```python
        wrapped = build_plot_script("plot([1,2,3]);", Path("/tmp/d/plot.png"), "png", "qt")
        ```
    """
    header = _HEADER.format(toolkit=_octave_string(toolkit))
    footer = _FOOTER.format(fmt=fmt, path=_octave_string(str(output_path)))
    return header + script + footer


@contextmanager
def plot_workspace() -> Iterator[Path]:
    """Yield a fresh owner-only temp directory and remove it on every exit path.

    Cleanup failures are logged, never raised.

    Example:
        ```python
        with plot_workspace() as workdir:
            target = workdir / "plot.png"
        ```
    """
    try:
        workdir = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
    except OSError as exc:
        raise OctaveEnvironmentError(f"failed to create temp dir: {exc}") from exc
    try:
        try:
            os.chmod(workdir, 0o700)
        except OSError as exc:
            raise OctaveEnvironmentError(f"failed to restrict temp dir permissions: {exc}") from exc
        yield workdir
    finally:
        try:
            shutil.rmtree(workdir)
        except OSError as exc:
            logger.warning("Failed to remove plot temp dir %s: %s", workdir, exc)
