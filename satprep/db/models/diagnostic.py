"""
Diagnostic models.

- QuestionRecord: the question bank, including the correct answer, which
  never leaves the service
- DiagnosticSessionRecord: the question battery issued to a learner
- DiagnosticSubmissionRecord: the stored outcome of a submitted session,
  keyed by session so resubmissions can be answered idempotently
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class QuestionRecord(Base):
    """A question in the bank."""

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid4().hex)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    difficulty: Mapped[str] = mapped_column(String(16), default="medium", index=True)
    format: Mapped[str] = mapped_column(String(16), default="text", nullable=False)
    media_url: Mapped[str | None] = mapped_column(Text)
    explanation: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<QuestionRecord id={self.id} subject={self.subject} format={self.format}>"


class DiagnosticSessionRecord(Base):
    """An ordered battery of questions issued to one learner."""

    __tablename__ = "diagnostic_sessions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid4().hex)
    learner_id: Mapped[str] = mapped_column(
        ForeignKey("learners.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=func.now())
    submitted_at: Mapped[datetime | None] = mapped_column()


class DiagnosticSubmissionRecord(Base):
    """The accepted submission for a session and the result returned for it."""

    __tablename__ = "diagnostic_submissions"

    session_id: Mapped[str] = mapped_column(
        ForeignKey("diagnostic_sessions.id", ondelete="CASCADE"), primary_key=True
    )
    learner_id: Mapped[str] = mapped_column(
        ForeignKey("learners.id", ondelete="CASCADE"), nullable=False, index=True
    )
    fingerprint: Mapped[str] = mapped_column(String(64), nullable=False)
    learning_style: Mapped[str] = mapped_column(String(32), nullable=False)
    result: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=func.now())
