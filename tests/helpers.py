from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Callable

from octave_mcp.execution import ExecutionOutcome, ExecutionRequest

_PRINT_CALL = re.compile(r'print\("-d(\w+)", "(.+)"\);')

Handler = Callable[[ExecutionRequest], ExecutionOutcome]


def ok(stdout: str = "") -> ExecutionOutcome:
    return ExecutionOutcome(stdout=stdout, stderr="", returncode=0, timed_out=False)


def failed(stderr: str, stdout: str = "", returncode: int = 1) -> ExecutionOutcome:
    return ExecutionOutcome(stdout=stdout, stderr=stderr, returncode=returncode, timed_out=False)


def plot_target(script: str) -> Path:
    match = _PRINT_CALL.search(script)
    assert match is not None, "wrapped script has no print() call"
    return Path(match.group(2))


def writes_plot(data: bytes) -> Handler:
    """Act like octave drawing a figure: write ``data`` where print() points."""

    def _handler(request: ExecutionRequest) -> ExecutionOutcome:
        plot_target(request.script).write_bytes(data)
        return ok()

    return _handler


class FakeEngine:
    """In-process stand-in for LocalEngine that records what it was asked to run."""

    version = "9.2.0"

    def __init__(self, handler: Handler | None = None, delay: float = 0.0) -> None:
        self.handler = handler
        self.delay = delay
        self.requests: list[ExecutionRequest] = []
        self.running = 0
        self.max_running = 0

    async def execute(self, request: ExecutionRequest) -> ExecutionOutcome:
        self.requests.append(request)
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.handler is not None:
                return self.handler(request)
            return ok()
        finally:
            self.running -= 1
