"""Run a submission against a set of test cases and compute a pass percentage."""

import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, List, Optional

from ..sandbox import SandboxEvaluator, find_entry_point
from .compare import canonical, normalize_value, outputs_match

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TestCase:
    """One input/expected-output pair."""
    __test__ = False  # not a pytest class

    input: Any
    expected: Any

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TestCase":
        expected = data.get("expected", data.get("output"))
        return cls(input=data.get("input"), expected=expected)


@dataclass
class TestCaseResult:
    """Outcome of a single test case."""
    __test__ = False

    input: Any
    expected: str
    actual: str
    passed: bool
    error: Optional[str] = None
    elapsed_ms: int = 0


@dataclass
class ScoreReport:
    """Aggregate outcome over all test cases."""
    passed_tests: int
    total_tests: int
    score: int  # 0..100
    entry_point: Optional[str] = None
    test_results: List[TestCaseResult] = field(default_factory=list)
    execution_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ScoringHarness:
    """
    Scores a submission by evaluating it once per test case.

    Every test case gets a fresh sandbox, so state left behind by one case
    cannot affect another.
    """

    def __init__(self, evaluator: Optional[SandboxEvaluator] = None):
        self.evaluator = evaluator or SandboxEvaluator()

    def score(
        self,
        source_text: str,
        test_cases: Iterable[Any],
        entry_point_name: Optional[str] = None,
        time_limit_ms: Optional[int] = None,
    ) -> ScoreReport:
        cases = [c if isinstance(c, TestCase) else TestCase.from_dict(c) for c in test_cases]
        entry_point = entry_point_name or find_entry_point(source_text)

        results = []
        total_ms = 0
        for case in cases:
            outcome = self.evaluator.evaluate(
                source_text,
                entry_point_name=entry_point_name,
                input_value=normalize_value(case.input),
                time_limit_ms=time_limit_ms,
            )
            total_ms += outcome.elapsed_ms
            expected = canonical(case.expected)

            if outcome.ok:
                passed = outputs_match(outcome.value, case.expected)
                results.append(TestCaseResult(
                    input=case.input,
                    expected=expected,
                    actual=canonical(outcome.value),
                    passed=passed,
                    elapsed_ms=outcome.elapsed_ms,
                ))
            else:
                passed = False
                results.append(TestCaseResult(
                    input=case.input,
                    expected=expected,
                    actual=f"Error: {outcome.error_message}",
                    passed=False,
                    error=outcome.error_kind.value if outcome.error_kind else None,
                    elapsed_ms=outcome.elapsed_ms,
                ))
            logger.debug("Test case %r: %s", case.input, "passed" if passed else "failed")

        passed_tests = sum(1 for r in results if r.passed)
        total_tests = len(results)
        score = round(100 * passed_tests / total_tests) if total_tests else 0

        logger.info("Scored submission: %d/%d passed (%d%%)", passed_tests, total_tests, score)
        return ScoreReport(
            passed_tests=passed_tests,
            total_tests=total_tests,
            score=score,
            entry_point=entry_point,
            test_results=results,
            execution_time_ms=total_ms,
        )
