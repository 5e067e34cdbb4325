"""Bearer-token authentication for the prep API."""

from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from satprep.db.database import get_session
from satprep.db.models import LearnerRecord
from satprep.services.learner_service import LearnerService


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_current_learner(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_session),
) -> LearnerRecord:
    """FastAPI dependency resolving the Authorization header to a learner."""
    return LearnerService(db).authenticate(_bearer_token(authorization))
