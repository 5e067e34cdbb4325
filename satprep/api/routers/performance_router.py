"""
Performance router.

Endpoints for recording scores and study time and reading them back with
per-subject aggregates.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session

from satprep.api.auth import get_current_learner
from satprep.core.models import PerformanceEntry, PerformanceSummary, Subject, WireModel
from satprep.db.database import get_session
from satprep.db.models import LearnerRecord
from satprep.services.performance_service import PerformanceService

router = APIRouter()


class PerformanceCreateRequest(WireModel):
    """A score and/or a block of study time."""

    subject: Subject
    subtopic: str = Field(..., min_length=1)
    study_time: int = Field(0, ge=0, description="Minutes")
    score: int | None = Field(None, ge=0, le=100)


@router.post("", response_model=PerformanceEntry, response_model_by_alias=True, status_code=201)
def record_performance(
    request: PerformanceCreateRequest,
    learner: LearnerRecord = Depends(get_current_learner),
    db: Session = Depends(get_session),
) -> PerformanceEntry:
    return PerformanceService(db).save(
        learner,
        request.subject.value,
        request.subtopic,
        score=request.score,
        study_time=request.study_time,
    )


@router.get("", response_model=PerformanceSummary, response_model_by_alias=True)
def get_performance(
    subject: Subject | None = Query(None, description="Only this subject"),
    learner: LearnerRecord = Depends(get_current_learner),
    db: Session = Depends(get_session),
) -> PerformanceSummary:
    """Recorded entries, newest first, with per-subject averages and study time."""
    return PerformanceService(db).summary(learner, subject.value if subject else None)
