"""Learner lookup and profile updates."""

from __future__ import annotations

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from satprep.core.errors import AuthenticationError
from satprep.core.models import LearningStyle
from satprep.db.models import LearnerRecord


class LearnerService:
    def __init__(self, db_session: Session):
        self.db_session = db_session

    def authenticate(self, api_token: str | None) -> LearnerRecord:
        """
        Resolve a bearer token to its learner.

        Raises:
            AuthenticationError: If the token is missing or unknown.
        """
        if not api_token:
            raise AuthenticationError("Missing bearer token.")
        learner = self.db_session.scalar(
            select(LearnerRecord).where(LearnerRecord.api_token == api_token)
        )
        if learner is None:
            raise AuthenticationError("Invalid bearer token.")
        return learner

    def set_learning_style(self, learner: LearnerRecord, style: LearningStyle) -> LearningStyle:
        """Explicit override; the only way a learner becomes kinesthetic."""
        previous = learner.learning_style
        learner.learning_style = style.value
        self.db_session.commit()
        logger.info(f"Learner {learner.id} learning style: {previous} -> {style.value}")
        return style
