"""Service layer for the prep API."""

from satprep.services.diagnostic_service import DiagnosticService
from satprep.services.learner_service import LearnerService
from satprep.services.performance_service import PerformanceService
from satprep.services.study_plan_service import StudyPlanService

__all__ = [
    "DiagnosticService",
    "LearnerService",
    "PerformanceService",
    "StudyPlanService",
]
