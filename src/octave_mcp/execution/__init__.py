from .engine import ExecutionEngine
from .gate import ConcurrencyGate
from .types import ExecutionOutcome, ExecutionRequest

__all__ = [
    "ConcurrencyGate",
    "ExecutionEngine",
    "ExecutionOutcome",
    "ExecutionRequest",
]
