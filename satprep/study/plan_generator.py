"""
Study Plan Generator.

Turns diagnostic results (or accumulated performance) into daily and weekly
tasks biased toward the learner's learning style.

Diagnostic plans:
- Weak areas are subjects scoring below the weak threshold, weakest first.
- Each weak area gets two daily tasks in the learner's style, due one day
  apart in weakness order, and two weekly tasks due in seven days.
- One general daily and one general weekly task are always added.

Adaptive plans (from performance averages):
- weak (< 70): extra practice plus a style-specific weekly task
- mastered (>= 80): short advanced review plus an advanced practice test
- struggling (< 50): fundamentals review, high-priority recommendation and
  a style-specific supplemental task
- everything else: maintenance practice
- always: one full practice exam per week
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from uuid import uuid4

from satprep.core.models import (
    GradedAnswer,
    LearningStyle,
    Recommendation,
    StudyTask,
    SubjectScore,
    TaskStatus,
)

MILESTONES: tuple[int, ...] = (25, 50, 75, 100)

DIAGNOSTIC_WEAK_THRESHOLD = 50

# Two templates per style; "{subject}" is filled per weak area
DAILY_TEMPLATES: dict[LearningStyle, tuple[str, str]] = {
    LearningStyle.VISUAL: (
        "Complete 20 {subject} practice questions with diagrams",
        "Watch 1 video tutorial on {subject}",
    ),
    LearningStyle.AUDITORY: (
        "Listen to {subject} podcast or audio lesson",
        "Record yourself explaining key concepts in {subject}",
    ),
    LearningStyle.KINESTHETIC: (
        "Practice 15 hands-on {subject} problems",
        "Create a physical model demonstrating a key {subject} concept",
    ),
    LearningStyle.READING_WRITING: (
        "Read chapter on {subject} and take detailed notes",
        "Write summary of key {subject} concepts in your own words",
    ),
}

WEEKLY_TEMPLATES: dict[LearningStyle, tuple[str, str]] = {
    LearningStyle.VISUAL: (
        "Complete 2 {subject} video tutorials",
        "Create visual mind map of {subject} concepts",
    ),
    LearningStyle.AUDITORY: (
        "Join study group discussion on {subject}",
        "Listen to 3 lectures on {subject}",
    ),
    LearningStyle.KINESTHETIC: (
        "Complete 1 practical project related to {subject}",
        "Attend interactive workshop on {subject} if available",
    ),
    LearningStyle.READING_WRITING: (
        "Complete one practice test on {subject} with written analysis",
        "Read 2 chapters on {subject} and write summary notes",
    ),
}

ADAPTIVE_WEAK_TEMPLATES: dict[LearningStyle, str] = {
    LearningStyle.VISUAL: "Watch 3 {subject} video tutorials",
    LearningStyle.AUDITORY: "Listen to 2 {subject} audio lessons",
    LearningStyle.KINESTHETIC: "Complete 2 interactive {subject} exercises",
    LearningStyle.READING_WRITING: "Read 2 {subject} study guides",
}

ADAPTIVE_STRUGGLING_TEMPLATES: dict[LearningStyle, str] = {
    LearningStyle.VISUAL: "Study {subject} visual reference guides",
    LearningStyle.AUDITORY: "Listen to {subject} concept explanation podcasts",
    LearningStyle.KINESTHETIC: "Complete hands-on {subject} practice exercises",
    LearningStyle.READING_WRITING: "Read simplified {subject} explanation guides",
}

GENERAL_DAILY_TASK = "Review mistake patterns from diagnostic test"
GENERAL_WEEKLY_TASK = "Review your overall progress and adjust study priorities"
PRACTICE_EXAM_TASK = "Complete 1 full practice exam"


@dataclass
class GeneratedPlan:
    """Tasks and analysis produced by a generator run."""

    daily_goals: list[StudyTask] = field(default_factory=list)
    weekly_goals: list[StudyTask] = field(default_factory=list)
    weak_areas: list[str] = field(default_factory=list)
    mastered_areas: list[str] = field(default_factory=list)
    struggling_areas: list[str] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)


def _task(text: str, due: date) -> StudyTask:
    return StudyTask(id=uuid4().hex, task=text, status=TaskStatus.PENDING, due_date=due)


# =============================================================================
# Scoring
# =============================================================================


def score_subjects(graded_answers: Iterable[GradedAnswer]) -> dict[str, SubjectScore]:
    """Per-subject correct/total counts, in order of first appearance."""
    scores: dict[str, SubjectScore] = {}
    for answer in graded_answers:
        cell = scores.setdefault(answer.subject.value, SubjectScore())
        cell.total += 1
        if answer.is_correct:
            cell.correct += 1
    return scores


def overall_score(subject_scores: Mapping[str, SubjectScore]) -> int:
    """Rounded percentage of correct answers across all subjects."""
    correct = sum(s.correct for s in subject_scores.values())
    total = sum(s.total for s in subject_scores.values())
    return round(correct / total * 100) if total else 0


def find_weak_areas(
    subject_scores: Mapping[str, SubjectScore],
    threshold: int = DIAGNOSTIC_WEAK_THRESHOLD,
) -> list[str]:
    """Subjects scoring below the threshold, weakest first (stable on ties)."""
    weak = [
        (subject, score.score)
        for subject, score in subject_scores.items()
        if score.score < threshold
    ]
    weak.sort(key=lambda item: item[1])
    return [subject for subject, _ in weak]


# =============================================================================
# Generation
# =============================================================================


def generate_study_plan(
    subject_scores: Mapping[str, SubjectScore],
    learning_style: LearningStyle,
    today: date,
    weak_threshold: int = DIAGNOSTIC_WEAK_THRESHOLD,
) -> GeneratedPlan:
    """Build a post-diagnostic plan for the learner's weak areas."""
    weak_areas = find_weak_areas(subject_scores, weak_threshold)
    end_of_week = today + timedelta(days=7)

    plan = GeneratedPlan(weak_areas=weak_areas)

    for index, subject in enumerate(weak_areas):
        due = today + timedelta(days=index)
        for template in DAILY_TEMPLATES[learning_style]:
            plan.daily_goals.append(_task(template.format(subject=subject), due))
        for template in WEEKLY_TEMPLATES[learning_style]:
            plan.weekly_goals.append(_task(template.format(subject=subject), end_of_week))

    plan.daily_goals.append(_task(GENERAL_DAILY_TASK, today))
    plan.weekly_goals.append(_task(GENERAL_WEEKLY_TASK, end_of_week))
    return plan


def generate_adaptive_plan(
    subject_averages: Mapping[str, float],
    learning_style: LearningStyle,
    today: date,
    weak_threshold: float = 70,
    mastered_threshold: float = 80,
    struggling_threshold: float = 50,
) -> GeneratedPlan:
    """Re-plan from average scores per subject."""
    end_of_week = today + timedelta(days=7)

    weak = [s for s, avg in subject_averages.items() if avg < weak_threshold]
    mastered = [s for s, avg in subject_averages.items() if avg >= mastered_threshold]
    struggling = [s for s, avg in subject_averages.items() if avg < struggling_threshold]

    plan = GeneratedPlan(weak_areas=weak, mastered_areas=mastered, struggling_areas=struggling)

    for subject in weak:
        plan.daily_goals.append(_task(f"Practice 30 {subject} questions", today))
        plan.weekly_goals.append(
            _task(ADAPTIVE_WEAK_TEMPLATES[learning_style].format(subject=subject), end_of_week)
        )

    for subject in mastered:
        plan.daily_goals.append(_task(f"Quick review: 5 {subject} advanced questions", today))
        plan.weekly_goals.append(_task(f"Take 1 advanced {subject} practice test", end_of_week))

    for subject in struggling:
        plan.daily_goals.append(_task(f"Complete {subject} fundamentals review", today))
        plan.recommendations.append(
            Recommendation(
                subject=subject,
                subtopics=["Fundamentals", "Basic Concepts"],
                resources=[
                    f"Extra {subject} practice worksheets",
                    f"{subject} concept maps",
                    f"Interactive {subject} tutorials",
                ],
                priority="high",
            )
        )
        plan.weekly_goals.append(
            _task(
                ADAPTIVE_STRUGGLING_TEMPLATES[learning_style].format(subject=subject),
                end_of_week,
            )
        )

    for subject in subject_averages:
        if subject not in weak and subject not in mastered:
            plan.daily_goals.append(_task(f"Practice 10 {subject} questions", today))

    plan.weekly_goals.append(_task(PRACTICE_EXAM_TASK, end_of_week))
    return plan


# =============================================================================
# Progress
# =============================================================================


def compute_progress(tasks: Iterable[StudyTask]) -> int:
    """Rounded percentage of completed tasks (0 for an empty plan)."""
    tasks = list(tasks)
    if not tasks:
        return 0
    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    return round(completed / len(tasks) * 100)


def crossed_milestone(old_progress: int, new_progress: int) -> int | None:
    """The first milestone crossed going from old to new progress, if any."""
    for milestone in MILESTONES:
        if old_progress < milestone <= new_progress:
            return milestone
    return None
