from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ExecutionRequest:
    """Normalized request sent to an execution engine.

    Example:
        ```python
        req = ExecutionRequest(script="x = 1 + 1", timeout_seconds=10)
        ```
    """

    script: str
    timeout_seconds: float


@dataclass(slots=True)
class ExecutionOutcome:
    """Raw, unfiltered response returned by an execution engine.

    Example:
        ```python
        out = ExecutionOutcome(stdout="x = 2\n", stderr="", returncode=0, timed_out=False)
        ```
    """

    stdout: str
    stderr: str
    returncode: int
    timed_out: bool
    error: str | None = None

    @property
    def ok(self) -> bool:
        """True when the process exited cleanly within its deadline.

        Example:
            ```python
            ExecutionOutcome("", "", 0, False).ok  # True
            ```
        """
        return self.returncode == 0 and not self.timed_out
