"""Test-case scoring on top of the sandboxed evaluator."""

from .compare import canonical, normalize_value, outputs_match
from .harness import ScoreReport, ScoringHarness, TestCase, TestCaseResult

__all__ = [
    "ScoringHarness",
    "ScoreReport",
    "TestCase",
    "TestCaseResult",
    "canonical",
    "normalize_value",
    "outputs_match",
]
