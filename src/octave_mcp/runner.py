from __future__ import annotations

import logging

from .config import OctaveSettings
from .errors import (
    AdmissionError,
    ArtifactError,
    EmptyScriptError,
    ExecutionError,
    ExecutionTimeoutError,
    PlotGenerationError,
)
from .execution.engine import ExecutionEngine
from .execution.gate import ConcurrencyGate
from .execution.local_engine import LocalEngine
from .execution.types import ExecutionOutcome, ExecutionRequest
from .filters import filter_output
from .plot import OUTPUT_STEM, build_plot_script, normalize_format, plot_workspace, wrapper_overhead
from .policy import sanitize_script, validate_script

logger = logging.getLogger(__name__)


def _diagnostic(outcome: ExecutionOutcome) -> str:
    """Build the filtered ``stderr + "\\n" + stdout`` text for a failed run.

    Example:
        ```python
        text = _diagnostic(ExecutionOutcome("", "error: boom\\n", 1, False))
        ```
    """
    stderr = outcome.stderr or outcome.error or ""
    return filter_output(stderr) + "\n" + filter_output(outcome.stdout.strip())


class OctaveRunner:
    """Admission control, concurrency bound and plot pipeline around an engine.

    Example:
        ```python
        runner = OctaveRunner(OctaveSettings.from_env())
        text = await runner.execute_script("x = 2 + 4")
        png = await runner.generate_plot("plot([1,2,3,4]);", "png")
        ```
    """

    def __init__(
        self,
        settings: OctaveSettings | None = None,
        *,
        engine: ExecutionEngine | None = None,
    ) -> None:
        """Create the runner, probing the interpreter unless an engine is given.

        Example:
            ```python
            runner = OctaveRunner(OctaveSettings(concurrency_limit=2))
            ```
        """
        self._settings = settings or OctaveSettings()
        if engine is None:
            engine = LocalEngine(
                binary=self._settings.binary,
                probe_timeout_seconds=self._settings.timeout_seconds,
            )
        self._engine = engine
        self._gate = ConcurrencyGate(self._settings.concurrency_limit)

    @property
    def settings(self) -> OctaveSettings:
        """Settings this runner was built with.

        Example:
            ```python
            runner.settings.timeout_seconds
            ```
        """
        return self._settings

    @property
    def gate(self) -> ConcurrencyGate:
        """The concurrency gate shared by every execution of this runner.

        Example:
            ```python
            runner.gate.in_use
            ```
        """
        return self._gate

    def get_version(self) -> str:
        """Return the interpreter version probed at startup.

        Example:
            ```python
            runner.get_version()  # "9.2.0"
            ```
        """
        return self._engine.version

    async def execute_script(self, script: str) -> str:
        """Validate, sanitize and run a script; return its filtered, trimmed stdout.

        Raises an `AdmissionError` before anything runs, `ExecutionError` (with
        ``.output`` set) when Octave fails, or `ExecutionTimeoutError` past the
        deadline. Task cancellation propagates unchanged.

        Example:
            ```python
            await runner.execute_script("x = 2 + 4")  # "x = 6"
            ```
        """
        if not script:
            raise EmptyScriptError()
        validate_script(script)
        sanitized = sanitize_script(script, self._settings.script_length_limit)
        if not sanitized:
            raise EmptyScriptError()
        # Stripping NUL bytes can join a denied name back together.
        validate_script(sanitized)

        request = ExecutionRequest(script=sanitized, timeout_seconds=self._settings.timeout_seconds)
        async with self._gate.slot():
            logger.debug("Executing script (%d chars), %d slot(s) in use", len(sanitized), self._gate.in_use)
            outcome = await self._engine.execute(request)

        if outcome.timed_out:
            logger.warning("Script timed out after %ss", request.timeout_seconds)
            raise ExecutionTimeoutError(
                outcome.error or f"Execution timed out after {request.timeout_seconds}s",
                output=_diagnostic(outcome),
                returncode=outcome.returncode,
            )
        if outcome.returncode != 0:
            logger.info("Script failed with exit status %d", outcome.returncode)
            raise ExecutionError(
                outcome.error or f"octave exited with status {outcome.returncode}",
                output=_diagnostic(outcome),
                returncode=outcome.returncode,
            )
        return filter_output(outcome.stdout.strip())

    async def generate_plot(self, script: str, fmt: str) -> bytes:
        """Run a plotting script off-screen and return the image bytes.

        The figure is printed into a private temp directory which is removed
        before this returns, whatever the outcome.

        Example:
            ```python
            png = await runner.generate_plot("plot([1,2,3,4]);", "png")
            png[:4]  # b"\\x89PNG"
            ```
        """
        fmt = normalize_format(fmt)
        if not script:
            raise EmptyScriptError()
        validate_script(script)
        validate_script(sanitize_script(script, len(script)))

        toolkit = self._settings.graphics_toolkit
        with plot_workspace() as workdir:
            output_path = workdir / f"{OUTPUT_STEM}.{fmt}"
            budget = self._settings.script_length_limit - wrapper_overhead(output_path, fmt, toolkit)
            if budget <= 0:
                raise AdmissionError(
                    f"script length limit {self._settings.script_length_limit} is too small for the plot wrapper"
                )
            body = sanitize_script(script, budget)
            wrapped = build_plot_script(body, output_path, fmt, toolkit)
            try:
                await self.execute_script(wrapped)
            except ExecutionError as exc:
                raise PlotGenerationError(f"plot generation failed: {exc}", output=exc.output) from exc
            try:
                return output_path.read_bytes()
            except OSError as exc:
                raise ArtifactError(f"failed to read plot file: {exc.strerror or exc}") from exc
