"""Tests for the scoring harness."""

import pytest
from judge.sandbox import SandboxEvaluator, ExecutionResult, EvaluationTimeout
from judge.scoring import ScoringHarness, canonical, normalize_value, outputs_match
from judge.scoring import TestCase as Case


class RecordingEvaluator:
    """Stands in for SandboxEvaluator; returns canned results in order."""

    def __init__(self, results):
        self.results = list(results)
        self.calls = []

    def evaluate(self, source_text, entry_point_name=None, input_value=None, time_limit_ms=None):
        self.calls.append(input_value)
        return self.results.pop(0)


@pytest.fixture(scope="module")
def harness():
    return ScoringHarness(SandboxEvaluator(default_time_limit_ms=2000))


REVERSE = "def solution(arr):\n    return arr[::-1]\n"


class TestCompare:

    def test_json_string_matches_list(self):
        assert outputs_match([3, 2, 1], "[3,2,1]")

    def test_whitespace_in_expected_ignored(self):
        assert outputs_match([3, 2, 1], " [3, 2, 1] ")

    def test_dict_key_order_ignored(self):
        assert outputs_match({"b": 1, "a": 2}, '{"a": 2, "b": 1}')

    def test_plain_string(self):
        assert outputs_match("abc", "abc")
        assert not outputs_match("abc", "abd")

    def test_scalars(self):
        assert outputs_match(5, "5")
        assert outputs_match(True, "true")
        assert not outputs_match(5, "6")

    def test_normalize_keeps_non_json(self):
        assert normalize_value("hello world") == "hello world"
        assert normalize_value("[1, 2]") == [1, 2]

    def test_canonical_form(self):
        assert canonical([1, 2]) == "[1,2]"


class TestAggregation:
    """Scoring arithmetic with a stand-in evaluator."""

    def test_all_passed(self):
        evaluator = RecordingEvaluator([
            ExecutionResult.completed([3, 2, 1], 5, 1000),
            ExecutionResult.completed([5], 5, 1000),
        ])
        report = ScoringHarness(evaluator).score(REVERSE, [
            {"input": "[1,2,3]", "expected": "[3,2,1]"},
            {"input": "[5]", "expected": "[5]"},
        ])
        assert report.passed_tests == 2
        assert report.total_tests == 2
        assert report.score == 100
        assert report.execution_time_ms == 10

    def test_inputs_are_decoded(self):
        evaluator = RecordingEvaluator([ExecutionResult.completed([], 1, 1000)])
        ScoringHarness(evaluator).score(REVERSE, [{"input": "[1,2,3]", "expected": "[]"}])
        assert evaluator.calls == [[1, 2, 3]]

    def test_partial_score_rounds(self):
        evaluator = RecordingEvaluator([
            ExecutionResult.completed(1, 1, 1000),
            ExecutionResult.completed(2, 1, 1000),
            ExecutionResult.completed(0, 1, 1000),
        ])
        report = ScoringHarness(evaluator).score(REVERSE, [
            Case(input=1, expected=1),
            Case(input=2, expected=2),
            Case(input=3, expected=3),
        ])
        assert report.passed_tests == 2
        assert report.score == 67

    def test_failed_evaluation_reported(self):
        evaluator = RecordingEvaluator([
            ExecutionResult.from_error(EvaluationTimeout("Execution timeout (1000ms)"), elapsed_ms=1000),
        ])
        report = ScoringHarness(evaluator).score(REVERSE, [{"input": "1", "expected": "1"}])
        result = report.test_results[0]
        assert not result.passed
        assert result.error == "timeout"
        assert result.actual.startswith("Error: ")
        assert report.score == 0

    def test_legacy_output_key(self):
        """Test cases may use 'output' instead of 'expected'."""
        evaluator = RecordingEvaluator([ExecutionResult.completed(7, 1, 1000)])
        report = ScoringHarness(evaluator).score(REVERSE, [{"input": 1, "output": 7}])
        assert report.score == 100

    def test_no_test_cases(self):
        report = ScoringHarness(RecordingEvaluator([])).score(REVERSE, [])
        assert report.total_tests == 0
        assert report.score == 0

    def test_report_dict(self):
        evaluator = RecordingEvaluator([ExecutionResult.completed([1], 1, 1000)])
        data = ScoringHarness(evaluator).score(REVERSE, [{"input": [1], "expected": [1]}]).to_dict()
        assert data["score"] == 100
        assert data["test_results"][0]["passed"] is True
        assert data["entry_point"] == "solution"


class TestScoringInSandbox:
    """End-to-end scoring through real sandboxes."""

    def test_reverse_scores_full_marks(self, harness):
        report = harness.score(REVERSE, [
            {"input": "[1,2,3]", "expected": "[3,2,1]"},
            {"input": "[5]", "expected": "[5]"},
            {"input": "[]", "expected": "[]"},
        ])
        assert report.passed_tests == 3
        assert report.total_tests == 3
        assert report.score == 100

    def test_wrong_answer(self, harness):
        code = "def solution(arr):\n    return arr\n"
        report = harness.score(code, [
            {"input": "[1,2,3]", "expected": "[3,2,1]"},
            {"input": "[5]", "expected": "[5]"},
        ])
        assert report.passed_tests == 1
        assert report.score == 50
        assert report.test_results[0].actual == "[1,2,3]"

    def test_missing_entry_point(self, harness):
        report = harness.score("x = 1", [{"input": "1", "expected": "1"}])
        assert report.score == 0
        assert report.test_results[0].error == "not_found"
        assert report.entry_point is None

    def test_cases_do_not_share_state(self, harness):
        """A counter kept in a global restarts for every case."""
        code = """
calls = []

def solution(x):
    calls.append(x)
    return len(calls)
"""
        report = harness.score(code, [
            {"input": "1", "expected": "1"},
            {"input": "2", "expected": "1"},
        ])
        assert report.score == 100
