"""
Core domain models shared by the learner client and the prep service.

Wire models are Pydantic models serialized with camelCase aliases, which is
the JSON shape the prep service speaks. Internal tallies are plain dataclasses.

Design:
- QuestionFormat / Subject / LearningStyle: closed vocabularies
- DiagnosticQuestion / Answer / GradedAnswer: diagnostic run records
- FormatScore: per-format tally cell used by the classifier
- StudyTask / StudyPlan: the generated plan and its progress
- DiagnosticResult / TaskUpdateResult: service responses
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from fractions import Fraction

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class QuestionFormat(str, Enum):
    """Sensory presentation channel of a diagnostic question."""

    TEXT = "text"
    DIAGRAM = "diagram"
    AUDIO = "audio"


class Subject(str, Enum):
    """Test subjects covered by the question bank."""

    MATH = "Math"
    READING = "Reading"
    WRITING = "Writing"
    ENGLISH = "English"
    SCIENCE = "Science"


class LearningStyle(str, Enum):
    """Coarse learning-style label used to bias study material."""

    VISUAL = "visual"
    AUDITORY = "auditory"
    KINESTHETIC = "kinesthetic"
    READING_WRITING = "reading/writing"

    @property
    def display_name(self) -> str:
        """Human-readable label."""
        return {
            LearningStyle.VISUAL: "Visual",
            LearningStyle.AUDITORY: "Auditory",
            LearningStyle.KINESTHETIC: "Kinesthetic",
            LearningStyle.READING_WRITING: "Reading/Writing",
        }[self]


class TaskStatus(str, Enum):
    """Lifecycle of a study-plan task."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskType(str, Enum):
    """Cadence bucket of a study-plan task."""

    DAILY = "daily"
    WEEKLY = "weekly"


class WireModel(BaseModel):
    """Base for JSON models exchanged with the prep service."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_payload(self) -> dict:
        """Dump to the camelCase JSON payload."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Diagnostic
# =============================================================================


class DiagnosticQuestion(WireModel):
    """A question from the diagnostic battery. Immutable once fetched."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    options: tuple[str, ...] = Field(..., min_length=2)
    subject: Subject
    format: QuestionFormat
    media_url: str | None = None


class Answer(WireModel):
    """The learner's selected option for one question."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    selected_option: str
    format: QuestionFormat
    subject: Subject

    @classmethod
    def for_question(cls, question: DiagnosticQuestion, selected_option: str) -> Answer:
        """Build an answer copying format and subject from the question."""
        return cls(
            question_id=question.id,
            selected_option=selected_option,
            format=question.format,
            subject=question.subject,
        )


class GradedAnswer(Answer):
    """An answer with correctness decided by the scoring authority."""

    is_correct: bool


class DiagnosticSession(WireModel):
    """One diagnostic run as issued by the question bank."""

    session_id: str
    questions: list[DiagnosticQuestion]


@dataclass
class FormatScore:
    """Correct/total tally for one question format."""

    correct: int = 0
    total: int = 0

    @property
    def ratio(self) -> Fraction | None:
        """Exact accuracy ratio, or None when nothing was answered."""
        if self.total == 0:
            return None
        return Fraction(self.correct, self.total)

    @property
    def accuracy(self) -> float | None:
        """Accuracy as a percentage, or None when nothing was answered."""
        ratio = self.ratio
        return None if ratio is None else float(ratio * 100)


FormatScoreTally = dict[QuestionFormat, FormatScore]


class SubjectScore(WireModel):
    """Per-subject correctness breakdown."""

    correct: int = 0
    total: int = 0

    @computed_field
    @property
    def score(self) -> int:
        """Rounded percentage score; 0 when nothing was answered."""
        if self.total == 0:
            return 0
        return round(self.correct / self.total * 100)


# =============================================================================
# Study Plan
# =============================================================================


class StudyTask(WireModel):
    """A single daily or weekly goal."""

    id: str
    task: str
    status: TaskStatus = TaskStatus.PENDING
    due_date: date | None = None


class Recommendation(WireModel):
    """Extra resources for a struggling subject."""

    subject: str
    subtopics: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    priority: str = "medium"


class StudyPlan(WireModel):
    """Server-persisted plan of daily and weekly tasks."""

    id: str
    learner_id: str
    session_id: str | None = None
    learning_style: LearningStyle | None = None
    daily_goals: list[StudyTask] = Field(default_factory=list)
    weekly_goals: list[StudyTask] = Field(default_factory=list)
    progress: int = Field(0, ge=0, le=100)
    weak_areas: list[str] = Field(default_factory=list)
    mastered_areas: list[str] = Field(default_factory=list)
    struggling_areas: list[str] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    learning_style_recommendations: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def find_task(self, task_id: str) -> tuple[TaskType, StudyTask] | None:
        """Locate a task by id in either cadence bucket."""
        for task in self.daily_goals:
            if task.id == task_id:
                return TaskType.DAILY, task
        for task in self.weekly_goals:
            if task.id == task_id:
                return TaskType.WEEKLY, task
        return None


class DiagnosticResult(WireModel):
    """Scoring authority response to a diagnostic submission."""

    session_id: str
    score: int
    subject_scores: dict[str, SubjectScore]
    weak_areas: list[str]
    learning_style: LearningStyle
    study_plan: StudyPlan


class Notification(WireModel):
    """Event surfaced after a task status change."""

    type: str  # "taskCompleted" or "milestone"
    message: str
    details: dict = Field(default_factory=dict)


class TaskUpdateResult(WireModel):
    """Response to a task status update."""

    study_plan: StudyPlan
    notifications: list[Notification] = Field(default_factory=list)


class AdaptivePlanResult(WireModel):
    """Response to an adaptive re-plan."""

    study_plan: StudyPlan
    weak_areas: list[str] = Field(default_factory=list)
    mastered_areas: list[str] = Field(default_factory=list)
    struggling_areas: list[str] = Field(default_factory=list)
    subject_averages: dict[str, float] = Field(default_factory=dict)


# =============================================================================
# Performance
# =============================================================================


class PerformanceEntry(WireModel):
    """A single recorded score or block of study time."""

    subject: str
    subtopic: str
    score: int | None = Field(None, ge=0, le=100, description="None for pure study time")
    study_time: int = Field(0, ge=0, description="Minutes")
    recorded_at: datetime | None = None


class PerformanceSummary(WireModel):
    """Recorded performance with per-subject aggregates."""

    entries: list[PerformanceEntry] = Field(default_factory=list)
    subject_averages: dict[str, float] = Field(default_factory=dict)
    study_time_by_subject: dict[str, int] = Field(default_factory=dict)
    total_study_time: int = 0
    overall_average: float = 0.0
