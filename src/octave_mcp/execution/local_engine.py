from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
import subprocess
from typing import Mapping

from ..errors import InterpreterUnavailableError
from .types import ExecutionOutcome, ExecutionRequest

logger = logging.getLogger(__name__)

_VERSION_PATTERN = re.compile(r"\d+\.\d+\.\d+")
# Non-interactive, quiet, no GUI window.
OCTAVE_FLAGS = ("--no-gui", "--silent")
# Lets the qt graphics toolkit render figures without a display.
OFFSCREEN_ENV = {"QT_QPA_PLATFORM": "offscreen"}


def probe_version(binary: str, timeout_seconds: float) -> str:
    """Run ``<binary> --version`` and return the semantic version it reports.

    Example:
        ```python
        version = probe_version("octave", timeout_seconds=10)  # "9.2.0"
        ```
    """
    if shutil.which(binary) is None:
        raise InterpreterUnavailableError(
            f"Could not find '{binary}', make sure it's installed and available in the PATH"
        )
    try:
        probe = subprocess.run(
            [binary, "--version"],
            capture_output=True,
            text=True,
            timeout=timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise InterpreterUnavailableError(
            f"'{binary} --version' did not answer within {timeout_seconds}s"
        ) from exc
    except OSError as exc:
        raise InterpreterUnavailableError(f"Could not run '{binary}': {exc}") from exc
    if probe.returncode != 0:
        raise InterpreterUnavailableError(
            f"'{binary} --version' exited with status {probe.returncode}: {probe.stderr.strip()}"
        )
    match = _VERSION_PATTERN.search(probe.stdout) or _VERSION_PATTERN.search(probe.stderr)
    if match is None:
        raise InterpreterUnavailableError(
            f"Could not parse a version from '{binary} --version' output"
        )
    return match.group(0)


class LocalEngine:
    """Execute Octave scripts as local subprocesses.

    Example:
        ```python
        engine = LocalEngine(binary="octave", probe_timeout_seconds=10)
        engine.version  # "9.2.0"
        ```
    """

    def __init__(
        self,
        *,
        binary: str = "octave",
        probe_timeout_seconds: float = 10,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Probe the interpreter and remember its version.

        Raises `InterpreterUnavailableError` when the binary is unusable.

        Example:
            ```python
            engine = LocalEngine(binary="/usr/bin/octave")
            ```
        """
        cleaned = binary.strip()
        if not cleaned:
            raise ValueError("LocalEngine requires a non-empty 'binary'")
        self._binary = cleaned
        self._env = {**(os.environ if env is None else env), **OFFSCREEN_ENV}
        self._version = probe_version(cleaned, probe_timeout_seconds)
        logger.info("Found %s version %s", cleaned, self._version)

    @property
    def version(self) -> str:
        """Interpreter version captured at construction.

        Example:
            ```python
            engine.version
            ```
        """
        return self._version

    def command(self, script: str) -> list[str]:
        """Return the argv used to evaluate ``script``. No shell is involved.

        Example:
            ```python
            engine.command("x = 1")  # ["octave", "--no-gui", "--silent", "--eval", "x = 1"]
            ```
        """
        return [self._binary, *OCTAVE_FLAGS, "--eval", script]

    async def execute(self, request: ExecutionRequest) -> ExecutionOutcome:
        """Run one script and collect its output under the request deadline.

        The process is killed when the deadline passes or the calling task is
        cancelled; cancellation is re-raised after the process is reaped.

        Example:
            ```python
            outcome = await engine.execute(ExecutionRequest(script="disp(42)", timeout_seconds=10))
            ```
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command(request.script),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env,
            )
        except OSError as exc:
            return ExecutionOutcome(
                stdout="",
                stderr=str(exc),
                returncode=127,
                timed_out=False,
                error=f"Failed to start {self._binary}: {exc}",
            )

        try:
            out, err = await asyncio.wait_for(proc.communicate(), timeout=request.timeout_seconds)
        except TimeoutError:
            await _terminate(proc)
            return ExecutionOutcome(
                stdout="",
                stderr="",
                returncode=124,
                timed_out=True,
                error=f"Execution timed out after {request.timeout_seconds}s",
            )
        finally:
            if proc.returncode is None:
                await _terminate(proc)

        return ExecutionOutcome(
            stdout=out.decode("utf-8", errors="replace"),
            stderr=err.decode("utf-8", errors="replace"),
            returncode=proc.returncode if proc.returncode is not None else -1,
            timed_out=False,
        )


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    """Kill a running process and reap it.

    Example:
        ```python
        await _terminate(proc)
        ```
    """
    if proc.returncode is not None:
        return
    try:
        proc.kill()
    except ProcessLookupError:
        pass
    await asyncio.shield(proc.wait())
