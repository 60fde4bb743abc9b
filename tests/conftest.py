from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from helpers import FakeEngine, Handler
from octave_mcp import OctaveRunner, OctaveSettings


@pytest.fixture
def make_runner() -> Callable[..., tuple[OctaveRunner, FakeEngine]]:
    def _make(
        handler: Handler | None = None,
        *,
        delay: float = 0.0,
        **settings: object,
    ) -> tuple[OctaveRunner, FakeEngine]:
        engine = FakeEngine(handler, delay=delay)
        runner = OctaveRunner(OctaveSettings(**settings), engine=engine)  # type: ignore[arg-type]
        return runner, engine

    return _make


@pytest.fixture
def plot_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point tempfile at a private root so tests can see which plot dirs remain."""
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr("tempfile.tempdir", str(root))
    return root
