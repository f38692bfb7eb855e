"""Pydantic schemas for API."""

from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field

from ..config import EVAL_MAX_TIME_LIMIT_MS


# Execution schemas
class ExecuteRequest(BaseModel):
    source_text: str = Field(..., min_length=1, description="Python code defining the entry point")
    entry_point: Optional[str] = Field(None, max_length=128, pattern=r'^[A-Za-z_][A-Za-z0-9_]*$')
    input: Any = None
    time_limit_ms: Optional[int] = Field(None, gt=0, le=EVAL_MAX_TIME_LIMIT_MS)


class ExecutionError(BaseModel):
    kind: str  # "timeout", "not_found", "fault"
    message: str


class ExecuteResponse(BaseModel):
    state: str  # "completed", "timed_out", "faulted"
    value: Any = None
    error: Optional[ExecutionError] = None
    entry_point: Optional[str] = None
    elapsed_ms: int = 0
    elapsed_within_bound: bool = False
    stdout: str = ""


# Evaluation schemas
class TestCaseIn(BaseModel):
    input: Any = None
    expected: Any = None


class EvaluateRequest(BaseModel):
    question_id: str = Field(..., min_length=1, max_length=64)
    code: str = Field(..., min_length=1, description="Python code with the solution function")
    language: str = "python"
    entry_point: Optional[str] = Field(None, max_length=128, pattern=r'^[A-Za-z_][A-Za-z0-9_]*$')
    test_cases: List[TestCaseIn] = Field(default_factory=list)
    time_limit_ms: Optional[int] = Field(None, gt=0, le=EVAL_MAX_TIME_LIMIT_MS)


class TestResult(BaseModel):
    input: Any = None
    expected: str
    actual: str
    passed: bool
    error: Optional[str] = None
    elapsed_ms: int = 0


class EvaluateResponse(BaseModel):
    attempt_id: str
    question_id: str
    status: str  # "scored", "error"
    score: int
    passed_tests: int
    total_tests: int
    entry_point: Optional[str] = None
    test_results: List[TestResult] = []
    execution_time_ms: int = 0


# Attempt schemas
class AttemptInfo(BaseModel):
    id: str
    question_id: str
    language: str
    entry_point: Optional[str]
    status: str
    score: Optional[float]
    passed_tests: int
    total_tests: int
    test_results: Optional[List[Dict[str, Any]]] = None
    error_message: Optional[str] = None
    execution_time_ms: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True
