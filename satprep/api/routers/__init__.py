"""API routers for the prep service."""

from satprep.api.routers import (
    diagnostic_router,
    learner_router,
    performance_router,
    study_plan_router,
)

__all__ = [
    "diagnostic_router",
    "learner_router",
    "performance_router",
    "study_plan_router",
]
