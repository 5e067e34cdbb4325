"""
Diagnostic Service.

Server side of the diagnostic: the question bank, the scoring authority and
the submission endpoint that turns a graded run into a study plan.

Submission rules:
- The session must exist and belong to the learner.
- Every question of the session is answered exactly once with one of its
  options, and nothing else is answered.
- The declared learning style must be the one the answers classify to.
- A session is submitted at most once. Resending the same payload returns
  the stored result; a different payload for a submitted session conflicts.
"""

from __future__ import annotations

import hashlib
import json
import random
from collections.abc import Callable, Sequence
from datetime import date, datetime, timezone

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import Settings, get_settings
from satprep.core.errors import (
    ConflictError,
    InsufficientDataError,
    NotFoundError,
    ValidationFailedError,
)
from satprep.core.models import (
    Answer,
    DiagnosticQuestion,
    DiagnosticResult,
    DiagnosticSession,
    GradedAnswer,
    LearningStyle,
    QuestionFormat,
    Subject,
)
from satprep.db.models import (
    DiagnosticSessionRecord,
    DiagnosticSubmissionRecord,
    LearnerRecord,
    QuestionRecord,
)
from satprep.diagnostic.classifier import FORMAT_PRIORITY, classify_learning_style
from satprep.services.performance_service import PerformanceService
from satprep.services.study_plan_service import StudyPlanService, plan_to_model
from satprep.study.plan_generator import generate_study_plan, overall_score, score_subjects

DIAGNOSTIC_SUBTOPIC = "Diagnostic"


def question_model(record: QuestionRecord) -> DiagnosticQuestion:
    """The learner-facing view of a bank question (no answer key)."""
    return DiagnosticQuestion(
        id=record.id,
        text=record.text,
        options=tuple(record.options),
        subject=Subject(record.subject),
        format=QuestionFormat(record.format),
        media_url=record.media_url,
    )


def submission_fingerprint(
    session_id: str, answers: Sequence[Answer], learning_style: LearningStyle
) -> str:
    """Order-independent digest of a submission's content."""
    canonical = {
        "sessionId": session_id,
        "answers": sorted([a.question_id, a.selected_option] for a in answers),
        "learningStyle": learning_style.value,
    }
    blob = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


def interleave_by_format(questions: list[QuestionRecord]) -> list[QuestionRecord]:
    """Round-robin the questions across formats so no format is bunched up."""
    buckets: dict[str, list[QuestionRecord]] = {}
    for question in questions:
        buckets.setdefault(question.format, []).append(question)

    order = [f.value for f in FORMAT_PRIORITY if f.value in buckets]
    ordered: list[QuestionRecord] = []
    while any(buckets[f] for f in order):
        for fmt in order:
            if buckets[fmt]:
                ordered.append(buckets[fmt].pop(0))
    return ordered


class DiagnosticService:
    """Question sampling, grading and submission for one request."""

    def __init__(
        self,
        db_session: Session,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.db_session = db_session
        self.settings = settings or get_settings()
        self._rng = rng or random.Random()
        self._today = today

    # =========================================================================
    # Question bank
    # =========================================================================

    def create_session(self, learner: LearnerRecord) -> DiagnosticSession:
        """
        Sample a diagnostic battery and open a session for it.

        Questions of the configured difficulty are drawn first; other
        difficulties only fill the remainder when the pool is short.

        Raises:
            NotFoundError: If the question bank is empty.
        """
        count = self.settings.diagnostic_question_count
        preferred = self.settings.diagnostic_difficulty

        bank = list(self.db_session.scalars(select(QuestionRecord)))
        if not bank:
            raise NotFoundError("The question bank is empty.")

        primary = [q for q in bank if q.difficulty == preferred]
        fallback = [q for q in bank if q.difficulty != preferred]
        self._rng.shuffle(primary)
        self._rng.shuffle(fallback)
        chosen = interleave_by_format((primary + fallback)[:count])

        record = DiagnosticSessionRecord(
            learner_id=learner.id,
            question_ids=[q.id for q in chosen],
        )
        self.db_session.add(record)
        self.db_session.commit()

        logger.info(
            f"Opened diagnostic session {record.id} for learner {learner.id} "
            f"with {len(chosen)} questions"
        )
        return DiagnosticSession(
            session_id=record.id,
            questions=[question_model(q) for q in chosen],
        )

    # =========================================================================
    # Scoring
    # =========================================================================

    def grade(
        self, learner: LearnerRecord, session_id: str, answers: Sequence[Answer]
    ) -> list[GradedAnswer]:
        """
        Decide correctness for answers to questions of a session.

        Raises:
            ValidationFailedError: Unknown or foreign session, an answer to a
                question outside the session, a repeated question, or an
                option the question does not offer.
        """
        session_record = self._load_session(learner, session_id)
        questions = self._session_questions(session_record)
        return self._grade(questions, answers)

    def submit(
        self,
        learner: LearnerRecord,
        session_id: str,
        answers: Sequence[Answer],
        learning_style: LearningStyle,
    ) -> DiagnosticResult:
        """
        Accept a complete diagnostic run and generate the learner's plan.

        Raises:
            ValidationFailedError: See module docstring.
            ConflictError: If the session was already submitted with
                different content.
        """
        session_record = self._load_session(learner, session_id)
        fingerprint = submission_fingerprint(session_id, answers, learning_style)

        existing = self.db_session.get(DiagnosticSubmissionRecord, session_id)
        if existing is not None:
            return self._replay(existing, fingerprint)

        questions = self._session_questions(session_record)
        if len(answers) != len(questions):
            raise ValidationFailedError(
                f"Expected {len(questions)} answers, got {len(answers)}."
            )
        graded = self._grade(questions, answers)

        question_list = [question_model(questions[qid]) for qid in session_record.question_ids]
        try:
            derived_style = classify_learning_style(question_list, graded)
        except (InsufficientDataError, ValueError) as e:
            raise ValidationFailedError(str(e)) from e
        if derived_style != learning_style:
            raise ValidationFailedError(
                f"Declared learning style {learning_style.value!r} does not match "
                f"the answers ({derived_style.value!r})."
            )

        subject_scores = score_subjects(graded)
        score = overall_score(subject_scores)

        performance = PerformanceService(self.db_session)
        for answer in graded:
            performance.record(
                learner,
                answer.subject.value,
                DIAGNOSTIC_SUBTOPIC,
                score=100 if answer.is_correct else 0,
            )

        learner.learning_style = learning_style.value

        generated = generate_study_plan(
            subject_scores,
            learning_style,
            self._today(),
            weak_threshold=self.settings.weak_threshold,
        )
        plan_record = StudyPlanService(self.db_session, self.settings).replace_plan(
            learner, generated, learning_style=learning_style, session_id=session_id
        )
        result = DiagnosticResult(
            session_id=session_id,
            score=score,
            subject_scores=subject_scores,
            weak_areas=generated.weak_areas,
            learning_style=learning_style,
            study_plan=plan_to_model(plan_record),
        )

        self.db_session.add(
            DiagnosticSubmissionRecord(
                session_id=session_id,
                learner_id=learner.id,
                fingerprint=fingerprint,
                learning_style=learning_style.value,
                result=result.to_payload(),
            )
        )
        session_record.submitted_at = datetime.now(timezone.utc)
        try:
            self.db_session.commit()
        except IntegrityError:
            # A concurrent submission of the same session committed first
            self.db_session.rollback()
            existing = self.db_session.get(DiagnosticSubmissionRecord, session_id)
            if existing is None:
                raise
            return self._replay(existing, fingerprint)

        logger.info(
            f"Diagnostic {session_id} submitted by learner {learner.id}: "
            f"score={score} style={learning_style.value} weak={generated.weak_areas}"
        )
        return result

    # =========================================================================
    # Internals
    # =========================================================================

    def _replay(
        self, existing: DiagnosticSubmissionRecord, fingerprint: str
    ) -> DiagnosticResult:
        if existing.fingerprint != fingerprint:
            logger.warning(f"Divergent resubmission rejected for session {existing.session_id}")
            raise ConflictError(
                "This diagnostic session was already submitted with different answers."
            )
        logger.info(f"Replaying stored result for session {existing.session_id}")
        return DiagnosticResult.model_validate(existing.result)

    def _load_session(self, learner: LearnerRecord, session_id: str) -> DiagnosticSessionRecord:
        record = self.db_session.get(DiagnosticSessionRecord, session_id)
        if record is None or record.learner_id != learner.id:
            raise ValidationFailedError(f"Unknown diagnostic session {session_id!r}.")
        return record

    def _session_questions(self, record: DiagnosticSessionRecord) -> dict[str, QuestionRecord]:
        rows = self.db_session.scalars(
            select(QuestionRecord).where(QuestionRecord.id.in_(record.question_ids))
        )
        return {q.id: q for q in rows}

    @staticmethod
    def _grade(
        questions: dict[str, QuestionRecord], answers: Sequence[Answer]
    ) -> list[GradedAnswer]:
        graded: list[GradedAnswer] = []
        seen: set[str] = set()
        for answer in answers:
            question = questions.get(answer.question_id)
            if question is None:
                raise ValidationFailedError(
                    f"Question {answer.question_id!r} is not part of this session."
                )
            if answer.question_id in seen:
                raise ValidationFailedError(
                    f"Question {answer.question_id!r} was answered more than once."
                )
            if answer.selected_option not in question.options:
                raise ValidationFailedError(
                    f"{answer.selected_option!r} is not an option for question {question.id!r}."
                )
            seen.add(answer.question_id)

            # Format and subject come from the bank, not from the client
            graded.append(
                GradedAnswer(
                    question_id=question.id,
                    selected_option=answer.selected_option,
                    format=QuestionFormat(question.format),
                    subject=Subject(question.subject),
                    is_correct=answer.selected_option == question.correct_answer,
                )
            )
        return graded
