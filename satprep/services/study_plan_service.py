"""
Study Plan Service.

Persists generated plans (one per learner, replaced in place so the plan id
survives re-planning), recomputes progress from task status and emits
task-completion and milestone notifications.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from loguru import logger
from sqlalchemy.orm import Session

from config import Settings, get_settings
from satprep.core.errors import NotFoundError
from satprep.core.models import (
    AdaptivePlanResult,
    LearningStyle,
    Notification,
    StudyPlan,
    StudyTask,
    TaskStatus,
    TaskType,
    TaskUpdateResult,
)
from satprep.db.models import LearnerRecord, StudyPlanRecord, StudyTaskRecord
from satprep.diagnostic.classifier import learning_style_recommendations
from satprep.services.performance_service import PerformanceService
from satprep.study.plan_generator import (
    GeneratedPlan,
    compute_progress,
    crossed_milestone,
    generate_adaptive_plan,
)

# Adaptive re-planning for a learner who never took the diagnostic
DEFAULT_LEARNING_STYLE = LearningStyle.READING_WRITING


def _task_model(record: StudyTaskRecord) -> StudyTask:
    return StudyTask(
        id=record.id,
        task=record.task,
        status=TaskStatus(record.status),
        due_date=record.due_date,
    )


def plan_to_model(record: StudyPlanRecord) -> StudyPlan:
    """Convert a persisted plan into its wire model."""
    style = LearningStyle(record.learning_style) if record.learning_style else None
    return StudyPlan(
        id=record.id,
        learner_id=record.learner_id,
        session_id=record.session_id,
        learning_style=style,
        daily_goals=[_task_model(t) for t in record.tasks_of(TaskType.DAILY.value)],
        weekly_goals=[_task_model(t) for t in record.tasks_of(TaskType.WEEKLY.value)],
        progress=record.progress,
        weak_areas=list(record.weak_areas or []),
        mastered_areas=list(record.mastered_areas or []),
        struggling_areas=list(record.struggling_areas or []),
        recommendations=list(record.recommendations or []),
        learning_style_recommendations=learning_style_recommendations(style) if style else [],
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class StudyPlanService:
    """Study plan persistence and progress tracking for one request."""

    def __init__(
        self,
        db_session: Session,
        settings: Settings | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.db_session = db_session
        self.settings = settings or get_settings()
        self._today = today

    # =========================================================================
    # Reads
    # =========================================================================

    def get_record(self, learner: LearnerRecord) -> StudyPlanRecord:
        if learner.study_plan is None:
            raise NotFoundError("No study plan found. Take the diagnostic test first.")
        return learner.study_plan

    def get_plan(self, learner: LearnerRecord) -> StudyPlan:
        """The learner's plan with progress recomputed from task status."""
        record = self.get_record(learner)
        progress = compute_progress(_task_model(t) for t in record.tasks)
        if progress != record.progress:
            record.progress = progress
            self.db_session.commit()
        return plan_to_model(record)

    # =========================================================================
    # Writes
    # =========================================================================

    def replace_plan(
        self,
        learner: LearnerRecord,
        generated: GeneratedPlan,
        *,
        learning_style: LearningStyle,
        session_id: str | None = None,
        keep_recommendations: bool = False,
    ) -> StudyPlanRecord:
        """
        Store a generated plan as the learner's plan.

        An existing plan is updated in place: its id is kept, its tasks are
        replaced and progress restarts at 0. The caller commits.
        """
        record = learner.study_plan
        if record is None:
            record = StudyPlanRecord(learner_id=learner.id)
            learner.study_plan = record
            self.db_session.add(record)
            logger.info(f"Creating study plan for learner {learner.id}")
        else:
            record.tasks.clear()
            logger.info(f"Replacing study plan {record.id} for learner {learner.id}")

        recommendations = [r.model_dump(mode="json") for r in generated.recommendations]
        if recommendations or not keep_recommendations:
            record.recommendations = recommendations

        if session_id is not None:
            record.session_id = session_id
        record.learning_style = learning_style.value
        record.progress = 0
        record.weak_areas = list(generated.weak_areas)
        record.mastered_areas = list(generated.mastered_areas)
        record.struggling_areas = list(generated.struggling_areas)

        position = 0
        for task_type, tasks in (
            (TaskType.DAILY, generated.daily_goals),
            (TaskType.WEEKLY, generated.weekly_goals),
        ):
            for task in tasks:
                record.tasks.append(
                    StudyTaskRecord(
                        id=task.id,
                        task_type=task_type.value,
                        task=task.task,
                        status=task.status.value,
                        due_date=task.due_date,
                        position=position,
                    )
                )
                position += 1

        self.db_session.flush()
        return record

    def update_task(
        self,
        learner: LearnerRecord,
        task_id: str,
        task_type: TaskType,
        status: TaskStatus,
    ) -> TaskUpdateResult:
        """
        Change one task's status.

        Emits a taskCompleted notification when the task newly completes and
        a milestone notification when progress crosses 25/50/75/100.

        Raises:
            NotFoundError: If there is no plan or no such task of that type.
        """
        record = self.get_record(learner)
        task = next(
            (t for t in record.tasks if t.id == task_id and t.task_type == task_type.value),
            None,
        )
        if task is None:
            raise NotFoundError(f"No {task_type.value} task with id {task_id!r}")

        previous_status = task.status
        old_progress = record.progress
        task.status = status.value
        new_progress = compute_progress(_task_model(t) for t in record.tasks)
        record.progress = new_progress
        self.db_session.commit()

        notifications: list[Notification] = []
        if status == TaskStatus.COMPLETED and previous_status != TaskStatus.COMPLETED.value:
            notifications.append(
                Notification(
                    type="taskCompleted",
                    message=f"Task completed: {task.task}",
                    details={"taskId": task.id, "taskType": task_type.value},
                )
            )

        milestone = crossed_milestone(old_progress, new_progress)
        if milestone is not None:
            notifications.append(
                Notification(
                    type="milestone",
                    message=f"Congratulations! You've completed {new_progress}% of your study plan!",
                    details={"milestone": milestone, "progress": new_progress},
                )
            )
            logger.info(f"Learner {learner.id} reached the {milestone}% milestone")

        return TaskUpdateResult(study_plan=plan_to_model(record), notifications=notifications)

    def generate_adaptive(self, learner: LearnerRecord) -> AdaptivePlanResult:
        """Re-plan from the learner's recorded performance."""
        averages = PerformanceService(self.db_session).subject_averages(learner)
        style = (
            LearningStyle(learner.learning_style)
            if learner.learning_style
            else DEFAULT_LEARNING_STYLE
        )
        thresholds = self.settings.get_adaptive_thresholds()

        generated = generate_adaptive_plan(
            averages,
            style,
            self._today(),
            weak_threshold=thresholds["weak"],
            mastered_threshold=thresholds["mastered"],
            struggling_threshold=thresholds["struggling"],
        )
        record = self.replace_plan(
            learner, generated, learning_style=style, keep_recommendations=True
        )
        self.db_session.commit()
        logger.info(
            f"Adaptive plan for learner {learner.id}: weak={generated.weak_areas} "
            f"mastered={generated.mastered_areas} struggling={generated.struggling_areas}"
        )

        return AdaptivePlanResult(
            study_plan=plan_to_model(record),
            weak_areas=generated.weak_areas,
            mastered_areas=generated.mastered_areas,
            struggling_areas=generated.struggling_areas,
            subject_averages=averages,
        )
