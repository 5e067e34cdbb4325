"""
Diagnostic Submission Flow.

Walks a learner through the diagnostic battery one question at a time, then
grades, classifies and submits the run.

State machine:
    NOT_STARTED -> IN_PROGRESS(i) -> AWAITING_SUBMISSION -> SUBMITTED
                                                         -> FAILED -> (retry) -> SUBMITTED

- A question set that cannot be loaded keeps the flow in NOT_STARTED and
  raises QuestionLoadError; nothing is skipped.
- Only one submission may be outstanding. A second submit() while one is in
  flight raises SubmissionInFlightError.
- After a network failure the flow is FAILED but retryable: submit() again
  re-sends the same answers (and, once assembled, the identical payload).
- After a rejection the flow is FAILED and not retryable.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from enum import Enum
from typing import Any, Protocol

from loguru import logger

from satprep.core.errors import (
    InsufficientDataError,
    InvalidFlowStateError,
    PrepError,
    QuestionLoadError,
    SubmissionInFlightError,
    SubmissionNetworkError,
    SubmissionRejectedError,
)
from satprep.core.models import (
    Answer,
    DiagnosticQuestion,
    DiagnosticResult,
    DiagnosticSession,
    GradedAnswer,
)
from satprep.core.platform_client import build_submission_payload
from satprep.diagnostic.classifier import Classification, classify


class DiagnosticBackend(Protocol):
    """The external collaborators the flow needs."""

    async def fetch_diagnostic_session(self) -> DiagnosticSession: ...

    async def grade_answers(
        self, session_id: str, answers: Sequence[Answer]
    ) -> list[GradedAnswer]: ...

    async def submit_payload(self, payload: dict[str, Any]) -> DiagnosticResult: ...


class FlowState(str, Enum):
    """Lifecycle state of a diagnostic flow."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    AWAITING_SUBMISSION = "awaiting_submission"
    SUBMITTED = "submitted"
    FAILED = "failed"


def validate_question_set(session: DiagnosticSession) -> None:
    """
    Check that a diagnostic session can be run.

    Raises:
        QuestionLoadError: If the session has no id, no questions, or
            repeated question ids.
    """
    if not session.session_id:
        raise QuestionLoadError("The diagnostic session has no identifier.")
    if not session.questions:
        raise QuestionLoadError("The diagnostic question set is empty.")

    seen: set[str] = set()
    for question in session.questions:
        if question.id in seen:
            raise QuestionLoadError(
                "The diagnostic question set is malformed.",
                detail=f"duplicate question id {question.id!r}",
            )
        seen.add(question.id)


class DiagnosticFlow:
    """One learner's pass through the diagnostic battery."""

    def __init__(self, backend: DiagnosticBackend):
        self._backend = backend
        self._state = FlowState.NOT_STARTED
        self._session: DiagnosticSession | None = None
        self._answers: list[Answer] = []
        self._classification: Classification | None = None
        self._payload: dict[str, Any] | None = None
        self._result: DiagnosticResult | None = None
        self._last_error: PrepError | None = None
        self._submit_lock = asyncio.Lock()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def session_id(self) -> str | None:
        return self._session.session_id if self._session else None

    @property
    def questions(self) -> list[DiagnosticQuestion]:
        return list(self._session.questions) if self._session else []

    @property
    def total_questions(self) -> int:
        return len(self._session.questions) if self._session else 0

    @property
    def question_index(self) -> int:
        """Index of the question awaiting an answer."""
        return len(self._answers)

    @property
    def current_question(self) -> DiagnosticQuestion:
        if self._state != FlowState.IN_PROGRESS or self._session is None:
            raise InvalidFlowStateError(
                f"No current question while the diagnostic is {self._state.value}."
            )
        return self._session.questions[self.question_index]

    @property
    def answers(self) -> tuple[Answer, ...]:
        return tuple(self._answers)

    @property
    def progress(self) -> tuple[int, int]:
        """(answered, total)."""
        return len(self._answers), self.total_questions

    @property
    def classification(self) -> Classification | None:
        return self._classification

    @property
    def payload(self) -> dict[str, Any] | None:
        """The frozen submission payload, once assembled."""
        return self._payload

    @property
    def result(self) -> DiagnosticResult | None:
        return self._result

    @property
    def last_error(self) -> PrepError | None:
        return self._last_error

    @property
    def is_submitting(self) -> bool:
        return self._submit_lock.locked()

    @property
    def can_retry(self) -> bool:
        """Whether submit() may be called again after a failure."""
        return (
            self._state == FlowState.FAILED
            and self._last_error is not None
            and self._last_error.recoverable
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    async def start(self) -> DiagnosticSession:
        """
        Load the question battery and begin the run.

        Raises:
            QuestionLoadError: If the questions cannot be loaded or are malformed.
            InvalidFlowStateError: If the flow already started.
        """
        if self._state != FlowState.NOT_STARTED:
            raise InvalidFlowStateError("The diagnostic has already started.")

        try:
            session = await self._backend.fetch_diagnostic_session()
            validate_question_set(session)
        except QuestionLoadError as e:
            self._last_error = e
            logger.error(f"Diagnostic could not start: {e.user_message} ({e.detail})")
            raise
        except PrepError as e:
            self._last_error = QuestionLoadError(
                f"Diagnostic questions could not be loaded: {e.user_message}",
                detail=e.detail,
            )
            logger.error(f"Diagnostic could not start: {e.user_message}")
            raise self._last_error from e

        self._session = session
        self._last_error = None
        self._state = FlowState.IN_PROGRESS
        logger.info(
            f"Diagnostic session {session.session_id} started "
            f"with {len(session.questions)} questions"
        )
        return session

    def record_answer(self, selected_option: str) -> Answer:
        """
        Record the answer to the current question and advance.

        Raises:
            InvalidFlowStateError: If no question is awaiting an answer.
            ValueError: If the option is not one of the question's options.
        """
        question = self.current_question
        if selected_option not in question.options:
            raise ValueError(
                f"{selected_option!r} is not an option for question {question.id!r}"
            )

        answer = Answer.for_question(question, selected_option)
        self._answers.append(answer)

        if len(self._answers) == self.total_questions:
            self._state = FlowState.AWAITING_SUBMISSION
            logger.debug(f"All {self.total_questions} answers recorded; awaiting submission")
        return answer

    async def submit(self) -> DiagnosticResult:
        """
        Grade, classify and submit the run.

        Raises:
            SubmissionInFlightError: If a submission is already outstanding.
            InvalidFlowStateError: If answers are still missing, the run was
                already submitted, or a previous rejection forbids retrying.
            SubmissionNetworkError: On a transient failure (flow becomes
                FAILED, retryable).
            SubmissionRejectedError: On a server-side rejection (flow becomes
                FAILED, not retryable).
        """
        if self._submit_lock.locked():
            raise SubmissionInFlightError("A submission is already in progress.")

        async with self._submit_lock:
            self._check_submittable()
            assert self._session is not None

            try:
                if self._payload is None:
                    await self._assemble_payload()
                else:
                    logger.info(f"Retrying submission for session {self._session.session_id}")
                result = await self._backend.submit_payload(self._payload)
            except (SubmissionNetworkError, SubmissionRejectedError) as e:
                self._fail(e)
                raise

            self._result = result
            self._last_error = None
            self._state = FlowState.SUBMITTED
            return result

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_submittable(self) -> None:
        if self._state == FlowState.AWAITING_SUBMISSION:
            return
        if self._state == FlowState.FAILED:
            if self.can_retry:
                return
            raise InvalidFlowStateError(
                "The submission was rejected and cannot be retried."
            )
        raise InvalidFlowStateError(
            f"Cannot submit while the diagnostic is {self._state.value}."
        )

    async def _assemble_payload(self) -> None:
        """Grade the answers, classify, and freeze the submission payload."""
        assert self._session is not None
        graded = await self._backend.grade_answers(self._session.session_id, self._answers)

        graded_ids = sorted(g.question_id for g in graded)
        answered_ids = sorted(a.question_id for a in self._answers)
        if graded_ids != answered_ids:
            raise SubmissionRejectedError(
                "The scoring service graded a different set of answers.",
                detail=f"sent {len(answered_ids)}, graded {len(graded_ids)}",
            )

        try:
            self._classification = classify(self._session.questions, graded)
        except InsufficientDataError as e:
            raise SubmissionRejectedError(e.user_message) from e
        except ValueError as e:
            raise SubmissionRejectedError(
                "The grading response does not match the question set.", detail=str(e)
            ) from e

        self._payload = build_submission_payload(
            self._session.session_id,
            self._answers,
            self._classification.learning_style,
        )

    def _fail(self, error: PrepError) -> None:
        self._last_error = error
        self._state = FlowState.FAILED
        logger.warning(
            f"Diagnostic submission failed ({'retryable' if error.recoverable else 'final'}): "
            f"{error.user_message}"
        )
