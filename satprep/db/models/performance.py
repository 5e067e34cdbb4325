"""Recorded scores and study time."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class PerformanceRecord(Base):
    """One diagnostic answer score or one timed study block."""

    __tablename__ = "performance_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(
        ForeignKey("learners.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    subtopic: Mapped[str] = mapped_column(Text, nullable=False)
    score: Mapped[int | None] = mapped_column(Integer)  # null for pure study time
    study_time: Mapped[int] = mapped_column(Integer, default=0)  # minutes
    recorded_at: Mapped[datetime] = mapped_column(default=func.now())
