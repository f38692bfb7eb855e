"""Scored evaluation endpoint and attempt history."""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.orm import Session

from ..db import Attempt
from ..scoring import ScoringHarness
from .deps import get_db, get_harness
from .schemas import EvaluateRequest, EvaluateResponse, AttemptInfo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["attempts"])

SUPPORTED_LANGUAGES = frozenset({"python"})


@router.post("/evaluate", response_model=EvaluateResponse)
def evaluate_attempt(
    request: EvaluateRequest,
    db: Session = Depends(get_db),
    harness: ScoringHarness = Depends(get_harness),
):
    """
    Score code against the supplied test cases and record the attempt.

    Each test case runs in its own sandbox. The response carries the
    per-case breakdown and the pass percentage.
    """
    language = request.language.lower()
    if language not in SUPPORTED_LANGUAGES:
        raise HTTPException(
            status_code=400,
            detail={
                "error_code": "UNSUPPORTED_LANGUAGE",
                "message": f"Language '{request.language}' is not supported. Use one of: {', '.join(sorted(SUPPORTED_LANGUAGES))}",
            }
        )

    report = harness.score(
        request.code,
        [case.model_dump() for case in request.test_cases],
        entry_point_name=request.entry_point,
        time_limit_ms=request.time_limit_ms,
    )

    breakdown = report.to_dict()["test_results"]

    # An attempt that could not run any case at all is an error, not a zero
    errors = [r for r in report.test_results if r.error is not None]
    status = "error" if report.total_tests and len(errors) == report.total_tests else "scored"
    error_message = errors[0].actual if status == "error" else None

    attempt = Attempt(
        id=str(uuid.uuid4()),
        question_id=request.question_id,
        language=language,
        source_text=request.code,
        entry_point=report.entry_point,
        status=status,
        score=report.score,
        passed_tests=report.passed_tests,
        total_tests=report.total_tests,
        test_results=breakdown,
        error_message=error_message,
        execution_time_ms=report.execution_time_ms,
    )
    db.add(attempt)
    db.commit()
    logger.info("Recorded attempt %s for question %s (%s)", attempt.id, request.question_id, status)

    return EvaluateResponse(
        attempt_id=attempt.id,
        question_id=request.question_id,
        status=status,
        score=report.score,
        passed_tests=report.passed_tests,
        total_tests=report.total_tests,
        entry_point=report.entry_point,
        test_results=breakdown,
        execution_time_ms=report.execution_time_ms,
    )


@router.get("/attempts/{attempt_id}", response_model=AttemptInfo)
async def get_attempt(attempt_id: str, db: Session = Depends(get_db)):
    """Get a recorded attempt."""
    attempt = db.query(Attempt).filter(Attempt.id == attempt_id).first()
    if not attempt:
        raise HTTPException(
            status_code=404,
            detail={"error_code": "NOT_FOUND", "message": "Attempt not found"}
        )
    return attempt


@router.get("/attempts", response_model=list[AttemptInfo])
async def list_attempts(
    question_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """List recent attempts, newest first."""
    query = db.query(Attempt)
    if question_id:
        query = query.filter(Attempt.question_id == question_id)
    return query.order_by(Attempt.created_at.desc()).limit(limit).all()
