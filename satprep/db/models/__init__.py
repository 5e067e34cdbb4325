# SQLAlchemy models
from .base import Base
from .diagnostic import (
    DiagnosticSessionRecord,
    DiagnosticSubmissionRecord,
    QuestionRecord,
)
from .learner import LearnerRecord
from .performance import PerformanceRecord
from .study_plan import StudyPlanRecord, StudyTaskRecord

__all__ = [
    # Base
    "Base",
    # Learners
    "LearnerRecord",
    # Diagnostic
    "QuestionRecord",
    "DiagnosticSessionRecord",
    "DiagnosticSubmissionRecord",
    # Study plans
    "StudyPlanRecord",
    "StudyTaskRecord",
    # Performance
    "PerformanceRecord",
]
