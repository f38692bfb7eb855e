"""Data types for sandboxed evaluation."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .errors import ErrorKind, EvaluationError

class EvaluationState(str, Enum):
    """Lifecycle of a single evaluation.

    idle -> loading -> invoking -> completed | timed_out | faulted
    """
    IDLE = "idle"
    LOADING = "loading"
    INVOKING = "invoking"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAULTED = "faulted"


@dataclass(frozen=True)
class CodeSubmission:
    """One piece of untrusted code plus the input to call it with."""
    source_text: str
    input: Any = None
    entry_point_name: Optional[str] = None

@dataclass
class ExecutionResult:
    """Outcome of evaluating one CodeSubmission."""
    state: EvaluationState
    value: Any = None
    elapsed_within_bound: bool = False
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    elapsed_ms: int = 0
    stdout: str = ""
    stderr: str = ""
    entry_point_name: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state == EvaluationState.COMPLETED

    @classmethod
    def completed(cls, value: Any, elapsed_ms: int, time_limit_ms: int, **extra) -> "ExecutionResult":
        return cls(
            state=EvaluationState.COMPLETED,
            value=value,
            elapsed_within_bound=elapsed_ms <= time_limit_ms,
            elapsed_ms=elapsed_ms,
            **extra,
        )

    @classmethod
    def from_error(cls, error: EvaluationError, elapsed_ms: int = 0, **extra) -> "ExecutionResult":
        """Build the terminal result for a failed evaluation."""
        if error.kind == ErrorKind.TIMEOUT:
            state = EvaluationState.TIMED_OUT
        else:
            state = EvaluationState.FAULTED
        message = str(error) or type(error).__name__
        return cls(
            state=state,
            error_message=message,
            error_kind=error.kind,
            elapsed_ms=elapsed_ms,
            elapsed_within_bound=error.kind != ErrorKind.TIMEOUT,
            **extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize as either a value record or an error record."""
        data: Dict[str, Any] = {
            "state": self.state.value,
            "elapsed_ms": self.elapsed_ms,
            "elapsed_within_bound": self.elapsed_within_bound,
        }
        if self.ok:
            data["value"] = self.value
        else:
            data["error"] = {
                "kind": self.error_kind.value if self.error_kind else ErrorKind.FAULT.value,
                "message": self.error_message,
            }
        return data
