"""Learner profile router."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from satprep.api.auth import get_current_learner
from satprep.core.models import LearningStyle, WireModel
from satprep.db.database import get_session
from satprep.db.models import LearnerRecord
from satprep.services.learner_service import LearnerService

router = APIRouter()


class LearningStyleBody(WireModel):
    learning_style: LearningStyle


@router.put("/me/learning-style", response_model=LearningStyleBody, response_model_by_alias=True)
def set_learning_style(
    request: LearningStyleBody,
    learner: LearnerRecord = Depends(get_current_learner),
    db: Session = Depends(get_session),
) -> LearningStyleBody:
    """Explicitly override the learner's learning style."""
    style = LearnerService(db).set_learning_style(learner, request.learning_style)
    return LearningStyleBody(learning_style=style)
