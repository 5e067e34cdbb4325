"""
Unit tests for the diagnostic submission flow.

Uses an in-memory backend so state transitions, retry and in-flight
rejection can be driven deterministically.
"""

import asyncio

import pytest

from satprep.core.errors import (
    InvalidFlowStateError,
    PlatformError,
    QuestionLoadError,
    SubmissionInFlightError,
    SubmissionNetworkError,
    SubmissionRejectedError,
)
from satprep.core.models import (
    DiagnosticResult,
    DiagnosticSession,
    GradedAnswer,
    LearningStyle,
    QuestionFormat,
    StudyPlan,
    Subject,
)
from satprep.diagnostic.flow import DiagnosticFlow, FlowState
from tests.factories import make_question


def _session() -> DiagnosticSession:
    return DiagnosticSession(
        session_id="sess-1",
        questions=[
            make_question("q0", QuestionFormat.DIAGRAM, Subject.MATH),
            make_question("q1", QuestionFormat.AUDIO, Subject.READING),
            make_question("q2", QuestionFormat.TEXT, Subject.WRITING),
        ],
    )


class FakeBackend:
    """Question bank + scoring authority double."""

    def __init__(self, session=None, correct_ids=("q0",)):
        self.session = session or _session()
        self.correct_ids = set(correct_ids)
        self.fetch_error: Exception | None = None
        self.submit_errors: list[Exception] = []
        self.grade_override: list[GradedAnswer] | None = None
        self.gate: asyncio.Event | None = None
        self.entered = asyncio.Event()
        self.grade_calls = 0
        self.payloads: list[dict] = []

    async def fetch_diagnostic_session(self):
        if self.fetch_error:
            raise self.fetch_error
        return self.session

    async def grade_answers(self, session_id, answers):
        self.grade_calls += 1
        if self.grade_override is not None:
            return self.grade_override
        return [
            GradedAnswer(**a.model_dump(), is_correct=a.question_id in self.correct_ids)
            for a in answers
        ]

    async def submit_payload(self, payload):
        self.payloads.append(payload)
        self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.submit_errors:
            raise self.submit_errors.pop(0)
        return DiagnosticResult(
            session_id=payload["sessionId"],
            score=33,
            subject_scores={},
            weak_areas=[],
            learning_style=LearningStyle(payload["learningStyle"]),
            study_plan=StudyPlan(id="plan-1", learner_id="learner-1"),
        )


async def _answered_flow(backend: FakeBackend) -> DiagnosticFlow:
    flow = DiagnosticFlow(backend)
    await flow.start()
    while flow.state == FlowState.IN_PROGRESS:
        flow.record_answer(flow.current_question.options[0])
    return flow


class TestStart:
    @pytest.mark.asyncio
    async def test_start_enters_first_question(self):
        flow = DiagnosticFlow(FakeBackend())

        await flow.start()

        assert flow.state == FlowState.IN_PROGRESS
        assert flow.session_id == "sess-1"
        assert flow.question_index == 0
        assert flow.current_question.id == "q0"
        assert flow.progress == (0, 3)

    @pytest.mark.asyncio
    async def test_load_error_blocks_start(self):
        backend = FakeBackend()
        backend.fetch_error = QuestionLoadError("down")
        flow = DiagnosticFlow(backend)

        with pytest.raises(QuestionLoadError):
            await flow.start()

        assert flow.state == FlowState.NOT_STARTED
        assert isinstance(flow.last_error, QuestionLoadError)
        with pytest.raises(InvalidFlowStateError):
            flow.current_question

    @pytest.mark.asyncio
    async def test_other_platform_errors_become_load_errors(self):
        backend = FakeBackend()
        backend.fetch_error = PlatformError("Invalid bearer token.", status_code=401)
        flow = DiagnosticFlow(backend)

        with pytest.raises(QuestionLoadError, match="Invalid bearer token"):
            await flow.start()

    @pytest.mark.asyncio
    async def test_empty_question_set_is_fatal(self):
        flow = DiagnosticFlow(FakeBackend(DiagnosticSession(session_id="s", questions=[])))
        with pytest.raises(QuestionLoadError, match="empty"):
            await flow.start()
        assert flow.state == FlowState.NOT_STARTED

    @pytest.mark.asyncio
    async def test_duplicate_question_ids_are_fatal(self):
        session = DiagnosticSession(
            session_id="s", questions=[make_question("q0"), make_question("q0")]
        )
        with pytest.raises(QuestionLoadError, match="malformed"):
            await DiagnosticFlow(FakeBackend(session)).start()

    @pytest.mark.asyncio
    async def test_cannot_start_twice(self):
        flow = DiagnosticFlow(FakeBackend())
        await flow.start()
        with pytest.raises(InvalidFlowStateError):
            await flow.start()


class TestAnswering:
    @pytest.mark.asyncio
    async def test_answer_copies_question_tags(self):
        flow = DiagnosticFlow(FakeBackend())
        await flow.start()

        answer = flow.record_answer("B")

        assert answer.question_id == "q0"
        assert answer.format == QuestionFormat.DIAGRAM
        assert answer.subject == Subject.MATH
        assert flow.question_index == 1
        assert flow.current_question.id == "q1"

    @pytest.mark.asyncio
    async def test_invalid_option_rejected(self):
        flow = DiagnosticFlow(FakeBackend())
        await flow.start()

        with pytest.raises(ValueError):
            flow.record_answer("Z")

        assert flow.question_index == 0
        assert flow.answers == ()

    @pytest.mark.asyncio
    async def test_last_answer_awaits_submission(self):
        flow = await _answered_flow(FakeBackend())

        assert flow.state == FlowState.AWAITING_SUBMISSION
        assert flow.progress == (3, 3)
        with pytest.raises(InvalidFlowStateError):
            flow.record_answer("A")

    @pytest.mark.asyncio
    async def test_submit_before_finishing_rejected(self):
        flow = DiagnosticFlow(FakeBackend())
        await flow.start()
        flow.record_answer("A")

        with pytest.raises(InvalidFlowStateError):
            await flow.submit()


class TestSubmit:
    @pytest.mark.asyncio
    async def test_successful_submission(self):
        backend = FakeBackend(correct_ids={"q0"})
        flow = await _answered_flow(backend)

        result = await flow.submit()

        assert flow.state == FlowState.SUBMITTED
        assert result.learning_style == LearningStyle.VISUAL
        assert flow.classification.best_format == QuestionFormat.DIAGRAM
        assert backend.payloads == [flow.payload]
        assert flow.payload == {
            "sessionId": "sess-1",
            "answers": [
                {"questionId": "q0", "selectedOption": "A", "format": "diagram", "subject": "Math"},
                {"questionId": "q1", "selectedOption": "A", "format": "audio", "subject": "Reading"},
                {"questionId": "q2", "selectedOption": "A", "format": "text", "subject": "Writing"},
            ],
            "learningStyle": "visual",
        }

    @pytest.mark.asyncio
    async def test_network_failure_is_retryable_with_same_payload(self):
        backend = FakeBackend(correct_ids={"q1"})
        backend.submit_errors = [SubmissionNetworkError("timeout")]
        flow = await _answered_flow(backend)

        with pytest.raises(SubmissionNetworkError):
            await flow.submit()

        assert flow.state == FlowState.FAILED
        assert flow.can_retry
        first_payload = flow.payload

        result = await flow.submit()

        assert flow.state == FlowState.SUBMITTED
        assert result.learning_style == LearningStyle.AUDITORY
        assert backend.grade_calls == 1
        assert backend.payloads == [first_payload, first_payload]
        assert len(flow.answers) == 3

    @pytest.mark.asyncio
    async def test_rejection_is_final(self):
        backend = FakeBackend()
        backend.submit_errors = [SubmissionRejectedError("count mismatch", status_code=422)]
        flow = await _answered_flow(backend)

        with pytest.raises(SubmissionRejectedError):
            await flow.submit()

        assert flow.state == FlowState.FAILED
        assert not flow.can_retry
        with pytest.raises(InvalidFlowStateError):
            await flow.submit()
        assert len(backend.payloads) == 1

    @pytest.mark.asyncio
    async def test_grader_answering_other_questions_is_rejected(self):
        backend = FakeBackend()
        backend.grade_override = []
        flow = await _answered_flow(backend)

        with pytest.raises(SubmissionRejectedError):
            await flow.submit()

        assert backend.payloads == []
        assert not flow.can_retry

    @pytest.mark.asyncio
    async def test_second_submit_while_in_flight_rejected(self):
        backend = FakeBackend()
        backend.gate = asyncio.Event()
        flow = await _answered_flow(backend)

        first = asyncio.create_task(flow.submit())
        await backend.entered.wait()

        assert flow.is_submitting
        with pytest.raises(SubmissionInFlightError):
            await flow.submit()

        backend.gate.set()
        await first
        assert flow.state == FlowState.SUBMITTED
        assert len(backend.payloads) == 1

    @pytest.mark.asyncio
    async def test_cannot_resubmit_after_success(self):
        flow = await _answered_flow(FakeBackend())
        await flow.submit()
        with pytest.raises(InvalidFlowStateError):
            await flow.submit()
