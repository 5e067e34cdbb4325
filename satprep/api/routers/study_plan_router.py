"""
Study plan router.

Endpoints for reading the plan, updating task status and adaptive
re-planning from recorded performance.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from satprep.api.auth import get_current_learner
from satprep.core.models import (
    AdaptivePlanResult,
    StudyPlan,
    TaskStatus,
    TaskType,
    TaskUpdateResult,
    WireModel,
)
from satprep.db.database import get_session
from satprep.db.models import LearnerRecord
from satprep.services.study_plan_service import StudyPlanService

router = APIRouter()


class TaskUpdateRequest(WireModel):
    """Status change for one task."""

    task_id: str
    task_type: TaskType
    status: TaskStatus


@router.get("", response_model=StudyPlan, response_model_by_alias=True)
def get_study_plan(
    learner: LearnerRecord = Depends(get_current_learner),
    db: Session = Depends(get_session),
) -> StudyPlan:
    """Current plan with progress recomputed."""
    return StudyPlanService(db).get_plan(learner)


@router.patch("/task", response_model=TaskUpdateResult, response_model_by_alias=True)
def update_task(
    request: TaskUpdateRequest,
    learner: LearnerRecord = Depends(get_current_learner),
    db: Session = Depends(get_session),
) -> TaskUpdateResult:
    return StudyPlanService(db).update_task(
        learner, request.task_id, request.task_type, request.status
    )


@router.post("/adaptive", response_model=AdaptivePlanResult, response_model_by_alias=True)
def generate_adaptive_plan(
    learner: LearnerRecord = Depends(get_current_learner),
    db: Session = Depends(get_session),
) -> AdaptivePlanResult:
    """Re-plan from the learner's performance history."""
    return StudyPlanService(db).generate_adaptive(learner)
