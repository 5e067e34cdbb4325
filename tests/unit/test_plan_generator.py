"""
Unit tests for study plan generation and progress tracking.
"""

from datetime import date, timedelta

import pytest

from satprep.core.models import (
    GradedAnswer,
    LearningStyle,
    QuestionFormat,
    StudyTask,
    Subject,
    SubjectScore,
    TaskStatus,
)
from satprep.study.plan_generator import (
    GENERAL_DAILY_TASK,
    GENERAL_WEEKLY_TASK,
    PRACTICE_EXAM_TASK,
    compute_progress,
    crossed_milestone,
    find_weak_areas,
    generate_adaptive_plan,
    generate_study_plan,
    overall_score,
    score_subjects,
)

TODAY = date(2026, 3, 2)


def _graded(subject: Subject, correct: bool) -> GradedAnswer:
    return GradedAnswer(
        question_id=f"{subject.value}-{correct}",
        selected_option="A",
        format=QuestionFormat.TEXT,
        subject=subject,
        is_correct=correct,
    )


class TestScoring:
    def test_score_subjects(self):
        graded = [
            _graded(Subject.MATH, True),
            _graded(Subject.MATH, False),
            _graded(Subject.READING, True),
        ]

        scores = score_subjects(graded)

        assert list(scores) == ["Math", "Reading"]
        assert (scores["Math"].correct, scores["Math"].total, scores["Math"].score) == (1, 2, 50)
        assert scores["Reading"].score == 100
        assert overall_score(scores) == 67

    def test_overall_score_empty(self):
        assert overall_score({}) == 0

    def test_weak_areas_sorted_weakest_first(self):
        scores = {
            "Math": SubjectScore(correct=2, total=5),  # 40
            "Reading": SubjectScore(correct=1, total=5),  # 20
            "Writing": SubjectScore(correct=5, total=5),  # 100
            "Science": SubjectScore(correct=1, total=2),  # 50, not weak
        }
        assert find_weak_areas(scores) == ["Reading", "Math"]


class TestDiagnosticPlan:
    def test_tasks_per_weak_area(self):
        scores = {
            "Math": SubjectScore(correct=2, total=5),
            "Reading": SubjectScore(correct=0, total=5),
            "Writing": SubjectScore(correct=4, total=5),
        }

        plan = generate_study_plan(scores, LearningStyle.VISUAL, TODAY)

        assert plan.weak_areas == ["Reading", "Math"]
        assert len(plan.daily_goals) == 2 * 2 + 1
        assert len(plan.weekly_goals) == 2 * 2 + 1
        assert plan.daily_goals[0].task == "Complete 20 Reading practice questions with diagrams"
        assert plan.daily_goals[0].due_date == TODAY
        assert plan.daily_goals[2].due_date == TODAY + timedelta(days=1)
        assert plan.daily_goals[-1].task == GENERAL_DAILY_TASK
        assert plan.weekly_goals[-1].task == GENERAL_WEEKLY_TASK
        assert all(t.due_date == TODAY + timedelta(days=7) for t in plan.weekly_goals)
        assert all(t.status == TaskStatus.PENDING for t in plan.daily_goals)

    def test_no_weak_areas_still_has_general_tasks(self):
        plan = generate_study_plan(
            {"Math": SubjectScore(correct=5, total=5)}, LearningStyle.AUDITORY, TODAY
        )
        assert [t.task for t in plan.daily_goals] == [GENERAL_DAILY_TASK]
        assert [t.task for t in plan.weekly_goals] == [GENERAL_WEEKLY_TASK]

    @pytest.mark.parametrize("style", list(LearningStyle))
    def test_every_style_has_templates(self, style):
        plan = generate_study_plan(
            {"Math": SubjectScore(correct=0, total=1)}, style, TODAY
        )
        assert all("Math" in t.task for t in plan.daily_goals[:2])

    def test_task_ids_are_unique(self):
        plan = generate_study_plan(
            {s.value: SubjectScore(correct=0, total=1) for s in Subject},
            LearningStyle.READING_WRITING,
            TODAY,
        )
        ids = [t.id for t in plan.daily_goals + plan.weekly_goals]
        assert len(ids) == len(set(ids))


class TestAdaptivePlan:
    def test_categorisation(self):
        averages = {"Math": 40.0, "Reading": 65.0, "Writing": 75.0, "Science": 90.0}

        plan = generate_adaptive_plan(averages, LearningStyle.KINESTHETIC, TODAY)

        assert plan.weak_areas == ["Math", "Reading"]
        assert plan.struggling_areas == ["Math"]
        assert plan.mastered_areas == ["Science"]
        daily = [t.task for t in plan.daily_goals]
        assert "Practice 30 Math questions" in daily
        assert "Complete Math fundamentals review" in daily
        assert "Quick review: 5 Science advanced questions" in daily
        assert "Practice 10 Writing questions" in daily
        weekly = [t.task for t in plan.weekly_goals]
        assert "Complete 2 interactive Reading exercises" in weekly
        assert "Complete hands-on Math practice exercises" in weekly
        assert weekly[-1] == PRACTICE_EXAM_TASK

    def test_struggling_gets_high_priority_recommendation(self):
        plan = generate_adaptive_plan({"Math": 30.0}, LearningStyle.VISUAL, TODAY)

        assert len(plan.recommendations) == 1
        rec = plan.recommendations[0]
        assert rec.subject == "Math"
        assert rec.priority == "high"
        assert "Math concept maps" in rec.resources

    def test_no_history_plans_practice_exam_only(self):
        plan = generate_adaptive_plan({}, LearningStyle.VISUAL, TODAY)
        assert plan.daily_goals == []
        assert [t.task for t in plan.weekly_goals] == [PRACTICE_EXAM_TASK]


class TestProgress:
    def _tasks(self, completed: int, total: int) -> list[StudyTask]:
        return [
            StudyTask(
                id=str(i),
                task="t",
                status=TaskStatus.COMPLETED if i < completed else TaskStatus.PENDING,
            )
            for i in range(total)
        ]

    def test_compute_progress(self):
        assert compute_progress([]) == 0
        assert compute_progress(self._tasks(1, 3)) == 33
        assert compute_progress(self._tasks(2, 3)) == 67
        assert compute_progress(self._tasks(4, 4)) == 100

    def test_in_progress_does_not_count(self):
        tasks = [StudyTask(id="1", task="t", status=TaskStatus.IN_PROGRESS)]
        assert compute_progress(tasks) == 0

    @pytest.mark.parametrize(
        "old,new,expected",
        [
            (0, 20, None),
            (20, 25, 25),
            (0, 60, 25),
            (40, 60, 50),
            (75, 100, 100),
            (50, 50, None),
            (60, 40, None),
        ],
    )
    def test_crossed_milestone(self, old, new, expected):
        assert crossed_milestone(old, new) == expected
