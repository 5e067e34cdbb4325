"""
Core Module - Shared domain models and interfaces.

Components:
- models: wire and domain models (questions, answers, plans, results)
- errors: learner-facing and service-side error taxonomy
- modes: client configuration (SATPREP_* environment)
- platform_client: async client for the prep service
"""

from satprep.core.errors import (
    InsufficientDataError,
    InvalidFlowStateError,
    PlatformError,
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
    FormatScore,
    GradedAnswer,
    LearningStyle,
    QuestionFormat,
    StudyPlan,
    StudyTask,
    Subject,
    TaskStatus,
    TaskType,
)
from satprep.core.modes import ApiConfig, PrepCliConfig
from satprep.core.platform_client import PrepPlatformClient

__all__ = [
    # Errors
    "PrepError",
    "InsufficientDataError",
    "QuestionLoadError",
    "SubmissionNetworkError",
    "SubmissionRejectedError",
    "SubmissionInFlightError",
    "InvalidFlowStateError",
    "PlatformError",
    # Models
    "QuestionFormat",
    "Subject",
    "LearningStyle",
    "DiagnosticQuestion",
    "DiagnosticSession",
    "Answer",
    "GradedAnswer",
    "FormatScore",
    "StudyTask",
    "StudyPlan",
    "DiagnosticResult",
    "TaskStatus",
    "TaskType",
    # Client
    "ApiConfig",
    "PrepCliConfig",
    "PrepPlatformClient",
]
