"""Study plan models: one plan per learner, with ordered daily/weekly tasks."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from sqlalchemy import JSON, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .learner import LearnerRecord


class StudyPlanRecord(Base):
    """A learner's current plan."""

    __tablename__ = "study_plans"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid4().hex)
    learner_id: Mapped[str] = mapped_column(
        ForeignKey("learners.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    session_id: Mapped[str | None] = mapped_column(String(32))
    learning_style: Mapped[str | None] = mapped_column(String(32))
    progress: Mapped[int] = mapped_column(Integer, default=0)
    weak_areas: Mapped[list[str]] = mapped_column(JSON, default=list)
    mastered_areas: Mapped[list[str]] = mapped_column(JSON, default=list)
    struggling_areas: Mapped[list[str]] = mapped_column(JSON, default=list)
    recommendations: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(default=func.now())
    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    learner: Mapped[LearnerRecord] = relationship(back_populates="study_plan")
    tasks: Mapped[list[StudyTaskRecord]] = relationship(
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="StudyTaskRecord.position",
    )

    def tasks_of(self, task_type: str) -> list[StudyTaskRecord]:
        return [t for t in self.tasks if t.task_type == task_type]


class StudyTaskRecord(Base):
    """A daily or weekly goal."""

    __tablename__ = "study_tasks"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid4().hex)
    plan_id: Mapped[str] = mapped_column(
        ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_type: Mapped[str] = mapped_column(String(16), nullable=False)  # 'daily' | 'weekly'
    task: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="pending")
    due_date: Mapped[date | None] = mapped_column()
    position: Mapped[int] = mapped_column(Integer, default=0)

    plan: Mapped[StudyPlanRecord] = relationship(back_populates="tasks")
