"""Error kinds reported by the sandboxed evaluator."""

from enum import Enum


class ErrorKind(str, Enum):
    """Coarse error classification exposed to callers."""
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    FAULT = "fault"


class EvaluationError(Exception):
    """Base exception for evaluation failures."""
    kind: ErrorKind = ErrorKind.FAULT


class EntryPointNotFound(EvaluationError):
    """No callable entry point could be located in the submission."""
    kind = ErrorKind.NOT_FOUND


class EvaluationTimeout(EvaluationError):
    """Execution exceeded its time bound."""
    kind = ErrorKind.TIMEOUT


class RuntimeFault(EvaluationError):
    """The submission failed to load or raised while running."""
    kind = ErrorKind.FAULT
