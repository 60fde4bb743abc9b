from __future__ import annotations

from typing import Protocol

from .types import ExecutionOutcome, ExecutionRequest


class ExecutionEngine(Protocol):
    version: str

    async def execute(self, request: ExecutionRequest) -> ExecutionOutcome:
        """Execute one request and return the raw execution outcome.

        Example:
            ```python
            outcome = await engine.execute(ExecutionRequest(script="x = 1", timeout_seconds=10))
            ```
        """
        ...
