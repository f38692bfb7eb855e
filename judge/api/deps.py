"""Request dependencies backed by the objects created at startup."""

from typing import Iterator

from fastapi import Request
from sqlalchemy.orm import Session

from ..db import Store
from ..sandbox import SandboxEvaluator
from ..scoring import ScoringHarness


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for FastAPI to get database session."""
    db = get_store(request).SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_evaluator(request: Request) -> SandboxEvaluator:
    return request.app.state.evaluator


def get_harness(request: Request) -> ScoringHarness:
    return ScoringHarness(request.app.state.evaluator)
