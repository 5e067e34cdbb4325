"""
Unit tests for the satprep CLI commands, with the service client replaced.
"""

import itertools

import pytest
from typer.testing import CliRunner

from satprep.cli import prep_cli
from satprep.core.errors import PlatformError, SubmissionNetworkError
from satprep.core.models import (
    DiagnosticResult,
    DiagnosticSession,
    GradedAnswer,
    LearningStyle,
    Notification,
    QuestionFormat,
    StudyPlan,
    StudyTask,
    Subject,
    SubjectScore,
    TaskStatus,
    TaskType,
    TaskUpdateResult,
)
from satprep.study.study_timer import StudyTimer
from tests.factories import make_question

runner = CliRunner()

PLAN = StudyPlan(
    id="plan-1",
    learner_id="learner-1",
    learning_style=LearningStyle.VISUAL,
    daily_goals=[StudyTask(id="task-1", task="Practice 30 Math questions")],
    weekly_goals=[StudyTask(id="task-2", task="Complete 1 full practice exam")],
    progress=0,
    weak_areas=["Math"],
)


class FakeClient:
    """Stands in for PrepPlatformClient; behaviour set per test via class attributes."""

    plan_error: Exception | None = None
    submit_errors: list[Exception] = []
    study_errors: list[Exception] = []
    calls: list[tuple] = []

    def __init__(self, config, transport=None):
        self.config = config

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return None

    async def get_study_plan(self):
        if FakeClient.plan_error:
            raise FakeClient.plan_error
        return PLAN

    async def update_task_status(self, task_id, task_type, status):
        FakeClient.calls.append(("task", task_id, task_type, status))
        return TaskUpdateResult(
            study_plan=PLAN.model_copy(update={"progress": 50}),
            notifications=[
                Notification(type="taskCompleted", message="Task completed: Practice"),
                Notification(type="milestone", message="Congratulations! 50%"),
            ],
        )

    async def set_learning_style(self, style):
        FakeClient.calls.append(("style", style))
        return style

    async def fetch_diagnostic_session(self):
        return DiagnosticSession(
            session_id="sess-1",
            questions=[
                make_question("q0", QuestionFormat.DIAGRAM),
                make_question("q1", QuestionFormat.TEXT, Subject.READING),
            ],
        )

    async def grade_answers(self, session_id, answers):
        return [GradedAnswer(**a.model_dump(), is_correct=a.question_id == "q0") for a in answers]

    async def save_study_time(self, subject, subtopic, study_time, score=None):
        FakeClient.calls.append(("study", subject, subtopic, study_time, score))
        if FakeClient.study_errors:
            raise FakeClient.study_errors.pop(0)

    async def submit_payload(self, payload):
        FakeClient.calls.append(("submit", payload))
        if FakeClient.submit_errors:
            raise FakeClient.submit_errors.pop(0)
        return DiagnosticResult(
            session_id="sess-1",
            score=50,
            subject_scores={
                "Math": SubjectScore(correct=1, total=1),
                "Reading": SubjectScore(correct=0, total=1),
            },
            weak_areas=["Reading"],
            learning_style=LearningStyle(payload["learningStyle"]),
            study_plan=PLAN,
        )


@pytest.fixture(autouse=True)
def fake_client(monkeypatch):
    FakeClient.plan_error = None
    FakeClient.submit_errors = []
    FakeClient.study_errors = []
    FakeClient.calls = []
    monkeypatch.setattr(prep_cli, "PrepPlatformClient", FakeClient)
    return FakeClient


class TestPlanCommands:
    def test_plan_shows_tasks(self):
        result = runner.invoke(prep_cli.app, ["plan"])

        assert result.exit_code == 0, result.output
        assert "task-1" in result.output
        assert "Visual" in result.output

    def test_plan_error_rendered_with_recovery(self, fake_client):
        fake_client.plan_error = PlatformError("No study plan found.", status_code=404)

        result = runner.invoke(prep_cli.app, ["plan"])

        assert result.exit_code == 1
        assert "No study plan found." in result.output
        assert "Return to the main menu" in result.output

    def test_task_update_prints_notifications(self, fake_client):
        result = runner.invoke(prep_cli.app, ["task", "task-1", "--type", "daily", "--status", "completed"])

        assert result.exit_code == 0, result.output
        assert fake_client.calls == [("task", "task-1", TaskType.DAILY, TaskStatus.COMPLETED)]
        assert "Congratulations" in result.output
        assert "50%" in result.output

    def test_style_override(self, fake_client):
        result = runner.invoke(prep_cli.app, ["style", "kinesthetic"])

        assert result.exit_code == 0, result.output
        assert fake_client.calls == [("style", LearningStyle.KINESTHETIC)]
        assert "Kinesthetic" in result.output


class TestDiagnosticCommand:
    def test_full_run(self, fake_client):
        result = runner.invoke(prep_cli.app, ["diagnostic"], input="1\n1\n")

        assert result.exit_code == 0, result.output
        assert "Visual" in result.output
        submitted = [c for c in fake_client.calls if c[0] == "submit"]
        assert len(submitted) == 1
        assert submitted[0][1]["learningStyle"] == "visual"

    def test_network_failure_offers_retry(self, fake_client):
        fake_client.submit_errors = [SubmissionNetworkError("Could not reach the scoring service.")]

        result = runner.invoke(prep_cli.app, ["diagnostic"], input="1\n1\ny\n")

        assert result.exit_code == 0, result.output
        submitted = [c[1] for c in fake_client.calls if c[0] == "submit"]
        assert len(submitted) == 2
        assert submitted[0] == submitted[1]

    def test_declined_retry_exits_with_error(self, fake_client):
        fake_client.submit_errors = [SubmissionNetworkError("Could not reach the scoring service.")]

        result = runner.invoke(prep_cli.app, ["diagnostic"], input="1\n1\nn\n")

        assert result.exit_code == 1
        assert "retry the submission" in result.output

    def test_ctrl_c_abandons_without_traceback(self, fake_client, monkeypatch):
        def interrupt(*args, **kwargs):
            raise KeyboardInterrupt

        monkeypatch.setattr(prep_cli.Prompt, "ask", interrupt)

        result = runner.invoke(prep_cli.app, ["diagnostic"])

        assert result.exit_code == 1
        assert "Diagnostic abandoned" in result.output
        assert "Traceback" not in result.output
        assert not [c for c in fake_client.calls if c[0] == "submit"]


class InstantTimer(StudyTimer):
    """Each clock reading is a minute later than the last."""

    def __init__(self, subject, subtopic, sink):
        ticks = itertools.count(step=60)
        super().__init__(subject, subtopic, sink, clock=lambda: float(next(ticks)))


class TestTimerCommand:
    @pytest.fixture(autouse=True)
    def instant_timer(self, monkeypatch):
        monkeypatch.setattr(prep_cli, "StudyTimer", InstantTimer)

    def test_failed_flush_can_be_retried(self, fake_client):
        fake_client.study_errors = [PlatformError("Could not reach the prep service.")]

        result = runner.invoke(
            prep_cli.app,
            ["timer", "Math", "Algebra", "--duration", "1", "--score", "70"],
            input="y\n",
        )

        assert result.exit_code == 0, result.output
        flushes = [c for c in fake_client.calls if c[0] == "study"]
        assert flushes == [("study", "Math", "Algebra", 2, 70)] * 2
        assert "Recorded 2 min" in result.output

    def test_declined_retry_exits_with_error(self, fake_client):
        fake_client.study_errors = [PlatformError("Could not reach the prep service.")] * 2

        result = runner.invoke(prep_cli.app, ["timer", "Math", "Algebra", "--duration", "1"], input="n\n")

        assert result.exit_code == 1
        assert "Could not reach the prep service." in result.output
