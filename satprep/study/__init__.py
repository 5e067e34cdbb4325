"""Study plans and study time."""

from satprep.study.plan_generator import (
    GeneratedPlan,
    compute_progress,
    crossed_milestone,
    generate_adaptive_plan,
    generate_study_plan,
    score_subjects,
)
from satprep.study.study_timer import StudyTimer

__all__ = [
    "GeneratedPlan",
    "compute_progress",
    "crossed_milestone",
    "generate_adaptive_plan",
    "generate_study_plan",
    "score_subjects",
    "StudyTimer",
]
