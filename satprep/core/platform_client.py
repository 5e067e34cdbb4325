"""
Prep Platform Client

HTTP client for the prep service: question bank, scoring authority and
study-plan generator. Every request carries the learner's bearer token.

Usage:
    async with PrepPlatformClient(config.api) as client:
        session = await client.fetch_diagnostic_session()
        graded = await client.grade_answers(session.session_id, answers)
        result = await client.submit_diagnostic(session.session_id, answers, style)

Read-only calls retry transport errors and 5xx responses with exponential
backoff. Writes are never retried automatically; the diagnostic submission is
retried only by the learner, with the same payload.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from satprep.core.errors import (
    PlatformError,
    QuestionLoadError,
    SubmissionNetworkError,
    SubmissionRejectedError,
)
from satprep.core.models import (
    AdaptivePlanResult,
    Answer,
    DiagnosticResult,
    DiagnosticSession,
    GradedAnswer,
    LearningStyle,
    PerformanceEntry,
    PerformanceSummary,
    StudyPlan,
    TaskStatus,
    TaskType,
    TaskUpdateResult,
)
from satprep.core.modes import ApiConfig


_ANSWER_FIELDS = {"question_id", "selected_option", "format", "subject"}


def _error_detail(response: httpx.Response) -> str:
    """Extract the service's error detail, falling back to the status line."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return response.reason_phrase


def _json_body(response: httpx.Response) -> Any:
    """Decode a success body; raises ValueError when it is not JSON."""
    try:
        return response.json()
    except ValueError as e:
        content_type = response.headers.get("content-type", "unknown")
        raise ValueError(f"expected JSON, got {content_type}: {e}") from e


class PrepPlatformClient:
    """
    Typed async client for the prep service.

    Supports:
    - Bearer token authentication
    - Diagnostic session, grading and submission
    - Study plan reads and task updates
    - Study time recording
    """

    def __init__(
        self,
        config: ApiConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "PrepPlatformClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.config.api_token:
                headers["Authorization"] = f"Bearer {self.config.api_token}"

            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers=headers,
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # Transport helpers
    # =========================================================================

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET with retry on transport errors and 5xx responses."""
        last_error: str = ""
        attempts = self.config.retry_attempts

        for attempt in range(attempts):
            try:
                client = await self._ensure_client()
                response = await client.get(path, params=params)
            except httpx.RequestError as e:
                last_error = str(e) or e.__class__.__name__
                logger.warning(
                    f"Request error on GET {path} attempt {attempt + 1}/{attempts}: {last_error}"
                )
            else:
                if response.status_code < 400:
                    try:
                        return _json_body(response)
                    except ValueError as e:
                        logger.error(f"Unreadable reply on GET {path}: {e}")
                        raise PlatformError(
                            "The prep service sent an unreadable reply.", detail=str(e)
                        ) from e
                if response.status_code < 500:
                    raise PlatformError(
                        _error_detail(response),
                        status_code=response.status_code,
                    )
                last_error = f"{response.status_code} {_error_detail(response)}"
                logger.warning(
                    f"Server error on GET {path} attempt {attempt + 1}/{attempts}: {last_error}"
                )

            if attempt < attempts - 1:
                await asyncio.sleep(self.config.retry_backoff_seconds * 2**attempt)

        logger.error(f"GET {path} failed after {attempts} attempts: {last_error}")
        raise PlatformError(
            "The prep service is unavailable. Please try again later.",
            detail=last_error,
        )

    async def _send(self, method: str, path: str, payload: dict[str, Any]) -> Any:
        """Non-idempotent write; never retried."""
        try:
            client = await self._ensure_client()
            response = await client.request(method, path, json=payload)
        except httpx.RequestError as e:
            logger.error(f"Connection error on {method} {path}: {e}")
            raise PlatformError("Could not reach the prep service.", detail=str(e)) from e

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.warning(f"{method} {path} failed: {response.status_code} {detail}")
            raise PlatformError(detail, status_code=response.status_code)
        try:
            return _json_body(response)
        except ValueError as e:
            logger.error(f"Unreadable reply on {method} {path}: {e}")
            raise PlatformError(
                "The prep service sent an unreadable reply.", detail=str(e)
            ) from e

    async def _post_submission(self, path: str, payload: dict[str, Any]) -> Any:
        """POST for grading/submission, mapping failures onto the submission taxonomy."""
        try:
            client = await self._ensure_client()
            response = await client.post(path, json=payload)
        except httpx.RequestError as e:
            logger.warning(f"Submission transport error on {path}: {e}")
            raise SubmissionNetworkError(
                "Could not reach the scoring service.", detail=str(e)
            ) from e

        if response.status_code >= 500:
            detail = _error_detail(response)
            logger.warning(f"Scoring service error on {path}: {response.status_code} {detail}")
            raise SubmissionNetworkError(
                f"The scoring service failed ({response.status_code}).", detail=detail
            )
        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.error(f"Submission rejected on {path}: {response.status_code} {detail}")
            raise SubmissionRejectedError(
                f"The submission was rejected: {detail}",
                status_code=response.status_code,
                detail=detail,
            )
        # The service replays stored results, so an unreadable reply is retryable
        try:
            return _json_body(response)
        except ValueError as e:
            logger.warning(f"Unreadable scoring reply on {path}: {e}")
            raise SubmissionNetworkError(
                "The scoring service sent an unreadable reply.", detail=str(e)
            ) from e

    # =========================================================================
    # Diagnostic
    # =========================================================================

    async def fetch_diagnostic_session(self) -> DiagnosticSession:
        """
        Start a diagnostic session and fetch its question battery.

        Raises:
            QuestionLoadError: On any transport, HTTP or payload failure.
        """
        try:
            data = await self._get_json(self.config.diagnostic_questions_endpoint)
        except PlatformError as e:
            raise QuestionLoadError(
                f"Diagnostic questions could not be loaded: {e.user_message}",
                detail=e.detail,
            ) from e

        try:
            session = DiagnosticSession.model_validate(data)
        except ValidationError as e:
            raise QuestionLoadError(
                "The diagnostic question set is malformed.", detail=str(e)
            ) from e

        logger.debug(
            f"Fetched diagnostic session {session.session_id} "
            f"with {len(session.questions)} questions"
        )
        return session

    async def grade_answers(
        self, session_id: str, answers: Sequence[Answer]
    ) -> list[GradedAnswer]:
        """Ask the scoring authority which answers are correct."""
        data = await self._post_submission(
            self.config.diagnostic_grade_endpoint,
            {
                "sessionId": session_id,
                "answers": [
                    answer.model_dump(mode="json", by_alias=True, include=_ANSWER_FIELDS)
                    for answer in answers
                ],
            },
        )
        try:
            return [GradedAnswer.model_validate(item) for item in data["results"]]
        except (KeyError, TypeError, ValidationError) as e:
            raise SubmissionRejectedError(
                "The scoring service returned an unreadable grading response.",
                detail=str(e),
            ) from e

    async def submit_diagnostic(
        self,
        session_id: str,
        answers: Sequence[Answer],
        learning_style: LearningStyle,
    ) -> DiagnosticResult:
        """Submit the diagnostic and receive the generated study plan."""
        payload = build_submission_payload(session_id, answers, learning_style)
        return await self.submit_payload(payload)

    async def submit_payload(self, payload: dict[str, Any]) -> DiagnosticResult:
        """Submit an already-assembled diagnostic payload."""
        data = await self._post_submission(self.config.diagnostic_submit_endpoint, payload)
        try:
            result = DiagnosticResult.model_validate(data)
        except ValidationError as e:
            raise SubmissionRejectedError(
                "The scoring service returned an unreadable result.", detail=str(e)
            ) from e

        logger.info(
            f"Diagnostic {result.session_id} submitted: score={result.score} "
            f"style={result.learning_style.value}"
        )
        return result

    # =========================================================================
    # Study Plan
    # =========================================================================

    async def get_study_plan(self) -> StudyPlan:
        """Fetch the learner's current study plan."""
        data = await self._get_json(self.config.study_plan_endpoint)
        return StudyPlan.model_validate(data)

    async def update_task_status(
        self, task_id: str, task_type: TaskType, status: TaskStatus
    ) -> TaskUpdateResult:
        """Change the status of one task in the plan."""
        data = await self._send(
            "PATCH",
            self.config.task_endpoint,
            {"taskId": task_id, "taskType": task_type.value, "status": status.value},
        )
        return TaskUpdateResult.model_validate(data)

    async def generate_adaptive_plan(self) -> AdaptivePlanResult:
        """Re-plan from recorded performance."""
        data = await self._send("POST", self.config.adaptive_plan_endpoint, {})
        return AdaptivePlanResult.model_validate(data)

    async def set_learning_style(self, learning_style: LearningStyle) -> LearningStyle:
        """Explicitly override the learner's learning style."""
        data = await self._send(
            "PUT",
            self.config.learning_style_endpoint,
            {"learningStyle": learning_style.value},
        )
        return LearningStyle(data["learningStyle"])

    # =========================================================================
    # Performance
    # =========================================================================

    async def save_study_time(
        self,
        subject: str,
        subtopic: str,
        study_time: int,
        score: int | None = None,
    ) -> PerformanceEntry:
        """Record a block of study time (minutes)."""
        data = await self._send(
            "POST",
            self.config.performance_endpoint,
            {
                "subject": subject,
                "subtopic": subtopic,
                "studyTime": study_time,
                "score": score,
            },
        )
        return PerformanceEntry.model_validate(data)

    async def get_performance_summary(self, subject: str | None = None) -> PerformanceSummary:
        """Fetch recorded performance with per-subject aggregates."""
        params = {"subject": subject} if subject else None
        data = await self._get_json(self.config.performance_endpoint, params=params)
        return PerformanceSummary.model_validate(data)


def build_submission_payload(
    session_id: str,
    answers: Sequence[Answer],
    learning_style: LearningStyle,
) -> dict[str, Any]:
    """Assemble the JSON body for a diagnostic submission."""
    return {
        "sessionId": session_id,
        "answers": [
            answer.model_dump(mode="json", by_alias=True, include=_ANSWER_FIELDS)
            for answer in answers
        ],
        "learningStyle": learning_style.value,
    }
