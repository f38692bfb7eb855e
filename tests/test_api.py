"""Tests for the HTTP service."""

import pytest
from fastapi.testclient import TestClient

from judge.db import Store
from judge.main import create_app
from judge.sandbox import SandboxEvaluator


REVERSE = "def solution(arr):\n    return arr[::-1]\n"


@pytest.fixture
def store(tmp_path):
    return Store(f"sqlite:///{tmp_path / 'judge.db'}")


@pytest.fixture
def client(store):
    app = create_app(store=store, evaluator=SandboxEvaluator(default_time_limit_ms=2000))
    with TestClient(app) as test_client:
        yield test_client


class TestService:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == "Interview Judge"
        assert "X-Process-Time" in response.headers

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    def test_store_closed_on_shutdown(self, store):
        """The lifespan owns the store's lifecycle."""
        closed = []
        store.close = lambda: closed.append(True)
        with TestClient(create_app(store=store)):
            assert not closed
        assert closed == [True]


class TestExecute:

    def test_completed(self, client):
        response = client.post("/api/execute", json={"source_text": REVERSE, "input": [1, 2, 3]})
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "completed"
        assert data["value"] == [3, 2, 1]
        assert data["error"] is None
        assert data["entry_point"] == "solution"

    def test_not_found(self, client):
        response = client.post("/api/execute", json={"source_text": "x = 1"})
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "faulted"
        assert data["error"]["kind"] == "not_found"

    def test_fault(self, client):
        code = "def solution(x):\n    return 1 / 0\n"
        data = client.post("/api/execute", json={"source_text": code, "input": 1}).json()
        assert data["error"]["kind"] == "fault"
        assert "ZeroDivisionError" in data["error"]["message"]

    def test_timeout(self, client):
        code = "def solution(x):\n    while True:\n        pass\n"
        data = client.post(
            "/api/execute",
            json={"source_text": code, "time_limit_ms": 500},
        ).json()
        assert data["state"] == "timed_out"
        assert data["error"]["kind"] == "timeout"
        assert data["elapsed_within_bound"] is False

    def test_explicit_entry_point(self, client):
        code = "def helper(x):\n    return x\n\ndef main(x):\n    return helper(x) + 1\n"
        data = client.post(
            "/api/execute",
            json={"source_text": code, "entry_point": "main", "input": 1},
        ).json()
        assert data["value"] == 2

    def test_invalid_time_limit(self, client):
        response = client.post("/api/execute", json={"source_text": REVERSE, "time_limit_ms": 0})
        assert response.status_code == 422

    def test_nan_return_is_fault(self, client):
        """Non-finite floats are not valid JSON and must not reach the response."""
        code = "def solution(x):\n    return float('nan')\n"
        response = client.post("/api/execute", json={"source_text": code, "input": 1})
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "faulted"
        assert data["error"]["kind"] == "fault"
        assert data["value"] is None


class TestEvaluate:

    def _evaluate(self, client, **overrides):
        payload = {
            "question_id": "reverse-array",
            "code": REVERSE,
            "language": "python",
            "test_cases": [
                {"input": "[1,2,3]", "expected": "[3,2,1]"},
                {"input": "[5]", "expected": "[5]"},
                {"input": "[]", "expected": "[]"},
            ],
        }
        payload.update(overrides)
        return client.post("/api/evaluate", json=payload)

    def test_full_score(self, client):
        response = self._evaluate(client)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "scored"
        assert data["score"] == 100
        assert data["passed_tests"] == 3
        assert data["total_tests"] == 3
        assert len(data["test_results"]) == 3

    def test_attempt_recorded(self, client):
        attempt_id = self._evaluate(client).json()["attempt_id"]

        response = client.get(f"/api/attempts/{attempt_id}")
        assert response.status_code == 200
        data = response.json()
        assert data["question_id"] == "reverse-array"
        assert data["score"] == 100
        assert data["entry_point"] == "solution"
        assert len(data["test_results"]) == 3

    def test_list_attempts(self, client):
        self._evaluate(client)
        self._evaluate(client, question_id="other")

        response = client.get("/api/attempts", params={"question_id": "other"})
        assert response.status_code == 200
        attempts = response.json()
        assert len(attempts) == 1
        assert attempts[0]["question_id"] == "other"

        assert len(client.get("/api/attempts").json()) == 2

    @pytest.mark.parametrize("limit", [-1, 0, 501])
    def test_list_attempts_limit_bounds(self, client, limit):
        response = client.get("/api/attempts", params={"limit": limit})
        assert response.status_code == 422

    def test_list_attempts_limit(self, client):
        self._evaluate(client)
        self._evaluate(client)

        assert len(client.get("/api/attempts", params={"limit": 1}).json()) == 1

    def test_error_attempt(self, client):
        """An attempt where no case could run is stored as an error."""
        data = self._evaluate(client, code="x = 1").json()
        assert data["status"] == "error"
        assert data["score"] == 0

        stored = client.get(f"/api/attempts/{data['attempt_id']}").json()
        assert stored["status"] == "error"
        assert stored["error_message"].startswith("Error: ")

    def test_unsupported_language(self, client):
        response = self._evaluate(client, language="javascript")
        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "UNSUPPORTED_LANGUAGE"

    def test_attempt_not_found(self, client):
        response = client.get("/api/attempts/does-not-exist")
        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "NOT_FOUND"
