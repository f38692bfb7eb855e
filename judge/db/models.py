"""SQLAlchemy models for Interview Judge."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, JSON, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Attempt(Base):
    """A scored attempt at a question."""

    __tablename__ = "attempts"

    id = Column(String(36), primary_key=True)  # UUID
    question_id = Column(String(64), nullable=False)
    language = Column(String(32), nullable=False, default="python")

    # Submission data
    source_text = Column(Text, nullable=False)
    entry_point = Column(String(128), nullable=True)

    # Results
    status = Column(String(32), default="scored")  # scored, error
    score = Column(Float, nullable=True)  # 0..100
    passed_tests = Column(Integer, default=0)
    total_tests = Column(Integer, default=0)
    test_results = Column(JSON, nullable=True)
    error_message = Column(Text, nullable=True)
    execution_time_ms = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_attempts_question_created", "question_id", "created_at"),
    )

    def __repr__(self):
        return f"<Attempt {self.id[:8]} score={self.score}>"
