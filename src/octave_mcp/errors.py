from __future__ import annotations


class OctaveError(Exception):
    """Base class for every failure raised by the Octave execution core.

    Example:
        ```python
        try:
            await runner.execute_script("x = 1")
        except OctaveError as exc:
            print(exc)
        ```
    """


class AdmissionError(OctaveError, ValueError):
    """A request was refused before any process was spawned.

    Example:
        ```python
        raise AdmissionError("script cannot be empty")
        ```
    """


class EmptyScriptError(AdmissionError):
    """Raised for an empty script.

    Example:
        ```python
        raise EmptyScriptError()
        ```
    """

    def __init__(self) -> None:
        """Build the fixed empty-script message.

        Example:
            ```python
            str(EmptyScriptError())  # "script cannot be empty"
            ```
        """
        super().__init__("script cannot be empty")


class UnsupportedFormatError(AdmissionError):
    """Raised for a plot format other than png or svg.

    Example:
        ```python
        raise UnsupportedFormatError("jpg")
        ```
    """

    def __init__(self, fmt: str) -> None:
        """Store the offending format.

        Example:
            ```python
            err = UnsupportedFormatError("jpg")
            ```
        """
        self.format = fmt
        super().__init__(f"unsupported format: {fmt} (must be png or svg)")


class ScriptRejectedError(AdmissionError):
    """Raised when a script matches a known-bad pattern.

    Example:
        ```python
        raise ScriptRejectedError("dangerous function", "system(", "system (")
        ```
    """

    def __init__(self, category: str, label: str, fragment: str) -> None:
        """Record the pattern category, its label and the literal matched text.

        Example:
            ```python
            err = ScriptRejectedError("shell chaining", "&&", "&&")
            ```
        """
        self.category = category
        self.label = label
        self.fragment = fragment
        super().__init__(
            f"script rejected: {category} '{label}' is not allowed (matched {fragment!r})"
        )


class OctaveEnvironmentError(OctaveError):
    """The host environment cannot support the request.

    Example:
        ```python
        raise OctaveEnvironmentError("failed to create temp dir: disk full")
        ```
    """


class InterpreterUnavailableError(OctaveEnvironmentError):
    """The Octave binary is missing or did not report a usable version.

    Example:
        ```python
        raise InterpreterUnavailableError("octave not found on PATH")
        ```
    """


class ExecutionError(OctaveError):
    """The interpreter ran but failed.

    ``output`` holds the filtered ``stderr + "\\n" + stdout`` diagnostic.

    Example:
        ```python
        try:
            await runner.execute_script("error('boom')")
        except ExecutionError as exc:
            print(exc.output)
        ```
    """

    def __init__(self, message: str, *, output: str = "", returncode: int | None = None) -> None:
        """Attach the diagnostic text and exit status.

        Example:
            ```python
            err = ExecutionError("octave exited with status 1", output="error: boom\\n", returncode=1)
            ```
        """
        self.output = output
        self.returncode = returncode
        super().__init__(message)


class ExecutionTimeoutError(ExecutionError):
    """The interpreter exceeded its per-execution deadline.

    Example:
        ```python
        raise ExecutionTimeoutError("execution timed out after 10s", output="\\n")
        ```
    """


class PlotGenerationError(OctaveError):
    """The wrapped plot script failed to execute.

    Example:
        ```python
        raise PlotGenerationError("plot generation failed: octave exited with status 1")
        ```
    """

    def __init__(self, message: str, *, output: str = "") -> None:
        """Attach the diagnostic of the failed nested execution.

        Example:
            ```python
            err = PlotGenerationError("plot generation failed: boom", output="error: boom")
            ```
        """
        self.output = output
        super().__init__(message)


class ArtifactError(OctaveError):
    """The script ran successfully but produced no readable plot file.

    Example:
        ```python
        raise ArtifactError("failed to read plot file: no such file")
        ```
    """
