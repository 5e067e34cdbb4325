"""Learner accounts and their bearer credentials."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .study_plan import StudyPlanRecord


class LearnerRecord(Base):
    """A learner. The learning style is derived by a diagnostic or set explicitly."""

    __tablename__ = "learners"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid4().hex)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    api_token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    learning_style: Mapped[str | None] = mapped_column(String(32))
    created_at: Mapped[datetime] = mapped_column(default=func.now())

    study_plan: Mapped[StudyPlanRecord | None] = relationship(
        back_populates="learner", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<LearnerRecord id={self.id} name={self.name!r}>"
