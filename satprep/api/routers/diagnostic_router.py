"""
Diagnostic router.

Endpoints for:
- Opening a diagnostic session (question battery)
- Grading answers (the scoring authority)
- Submitting a completed run
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from satprep.api.auth import get_current_learner
from satprep.core.models import (
    Answer,
    DiagnosticResult,
    DiagnosticSession,
    GradedAnswer,
    LearningStyle,
    WireModel,
)
from satprep.db.database import get_session
from satprep.db.models import LearnerRecord
from satprep.services.diagnostic_service import DiagnosticService

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class GradeRequest(WireModel):
    """Answers to grade for a session."""

    session_id: str
    answers: list[Answer]


class GradeResponse(WireModel):
    results: list[GradedAnswer]


class SubmitRequest(WireModel):
    """A completed diagnostic run."""

    session_id: str
    answers: list[Answer]
    learning_style: LearningStyle


# ========================================
# Endpoints
# ========================================


@router.get("/questions", response_model=DiagnosticSession, response_model_by_alias=True)
def get_questions(
    learner: LearnerRecord = Depends(get_current_learner),
    db: Session = Depends(get_session),
) -> DiagnosticSession:
    """Open a diagnostic session and return its questions."""
    return DiagnosticService(db).create_session(learner)


@router.post("/grade", response_model=GradeResponse, response_model_by_alias=True)
def grade_answers(
    request: GradeRequest,
    learner: LearnerRecord = Depends(get_current_learner),
    db: Session = Depends(get_session),
) -> GradeResponse:
    """Decide correctness for a set of answers."""
    results = DiagnosticService(db).grade(learner, request.session_id, request.answers)
    return GradeResponse(results=results)


@router.post("/submit", response_model=DiagnosticResult, response_model_by_alias=True)
def submit_diagnostic(
    request: SubmitRequest,
    learner: LearnerRecord = Depends(get_current_learner),
    db: Session = Depends(get_session),
) -> DiagnosticResult:
    """Submit a completed run and receive the generated study plan."""
    return DiagnosticService(db).submit(
        learner, request.session_id, request.answers, request.learning_style
    )
