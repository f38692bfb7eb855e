"""Sandbox module for evaluating untrusted submissions."""

from .entrypoint import find_entry_point
from .errors import EntryPointNotFound, ErrorKind, EvaluationError, EvaluationTimeout, RuntimeFault
from .executor import SandboxEvaluator
from .types import CodeSubmission, EvaluationState, ExecutionResult
from .validator import CodeValidator, ValidationError

__all__ = [
    "SandboxEvaluator",
    "CodeSubmission",
    "ExecutionResult",
    "EvaluationState",
    "ErrorKind",
    "EvaluationError",
    "EntryPointNotFound",
    "EvaluationTimeout",
    "RuntimeFault",
    "CodeValidator",
    "ValidationError",
    "find_entry_point",
]
