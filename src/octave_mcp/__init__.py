from .config import OctaveSettings
from .errors import (
    AdmissionError,
    ArtifactError,
    EmptyScriptError,
    ExecutionError,
    ExecutionTimeoutError,
    InterpreterUnavailableError,
    OctaveEnvironmentError,
    OctaveError,
    PlotGenerationError,
    ScriptRejectedError,
    UnsupportedFormatError,
)
from .execution.local_engine import LocalEngine
from .filters import filter_output
from .policy import sanitize_script, validate_script
from .runner import OctaveRunner

__all__ = [
    "AdmissionError",
    "ArtifactError",
    "EmptyScriptError",
    "ExecutionError",
    "ExecutionTimeoutError",
    "InterpreterUnavailableError",
    "LocalEngine",
    "OctaveEnvironmentError",
    "OctaveError",
    "OctaveRunner",
    "OctaveSettings",
    "PlotGenerationError",
    "ScriptRejectedError",
    "UnsupportedFormatError",
    "filter_output",
    "sanitize_script",
    "validate_script",
]
