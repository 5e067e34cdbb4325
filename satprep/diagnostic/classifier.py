"""
Format-Accuracy Classifier.

Infers a learning style from how well a learner did on each presentation
format of the diagnostic battery.

Algorithm:
1. Tally every format present in the question set, starting at zero.
2. Count each graded answer against its format.
3. Formats with no answers are never candidates.
4. Highest accuracy wins; ties go to the format with more answers, then to
   FORMAT_PRIORITY.
5. The winning format maps to a style through FORMAT_TO_STYLE.

Correctness comes from the scoring authority (GradedAnswer.is_correct); the
classifier never decides it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from loguru import logger

from satprep.core.errors import InsufficientDataError
from satprep.core.models import (
    DiagnosticQuestion,
    FormatScore,
    FormatScoreTally,
    GradedAnswer,
    LearningStyle,
    QuestionFormat,
)

# Exact-tie order, highest priority first
FORMAT_PRIORITY: tuple[QuestionFormat, ...] = (
    QuestionFormat.DIAGRAM,
    QuestionFormat.AUDIO,
    QuestionFormat.TEXT,
)

FORMAT_TO_STYLE: dict[QuestionFormat, LearningStyle] = {
    QuestionFormat.DIAGRAM: LearningStyle.VISUAL,
    QuestionFormat.AUDIO: LearningStyle.AUDITORY,
    QuestionFormat.TEXT: LearningStyle.READING_WRITING,
}

LEARNING_STYLE_RECOMMENDATIONS: dict[LearningStyle, list[str]] = {
    LearningStyle.VISUAL: [
        "Use diagrams, charts, and graphs to visualize concepts",
        "Highlight key information with different colors",
        "Watch video tutorials and demonstrations",
        "Create mind maps to connect ideas",
        "Use visual flashcards with diagrams",
    ],
    LearningStyle.AUDITORY: [
        "Record and listen to lectures or explanations",
        "Join study groups for discussion",
        "Read material aloud to yourself",
        "Use mnemonic devices and verbal repetition",
        "Explain concepts to others verbally",
    ],
    LearningStyle.KINESTHETIC: [
        "Practice hands-on problems and activities",
        "Take breaks and move around while studying",
        "Use physical models or manipulatives",
        "Incorporate role-play for complex scenarios",
        "Take notes by hand rather than typing",
    ],
    LearningStyle.READING_WRITING: [
        "Take detailed notes in your own words",
        "Rewrite key concepts in list format",
        "Create written summaries of material",
        "Use text-based resources and books",
        "Practice by writing practice questions and answers",
    ],
}


@dataclass
class Classification:
    """Outcome of a classification run."""

    learning_style: LearningStyle
    best_format: QuestionFormat
    tally: FormatScoreTally

    def accuracies(self) -> dict[QuestionFormat, float | None]:
        """Per-format accuracy percentages (None for unanswered formats)."""
        return {fmt: score.accuracy for fmt, score in self.tally.items()}


def build_tally(
    questions: Sequence[DiagnosticQuestion],
    graded_answers: Iterable[GradedAnswer],
) -> FormatScoreTally:
    """
    Build the per-format correct/total tally.

    Every format present in the question set gets an entry, answered or not.

    Raises:
        ValueError: If an answer references an unknown question, repeats a
            question, or carries a format different from its question's.
    """
    tally: FormatScoreTally = {}
    by_id: dict[str, DiagnosticQuestion] = {}
    for question in questions:
        by_id[question.id] = question
        tally.setdefault(question.format, FormatScore())

    seen: set[str] = set()
    for answer in graded_answers:
        question = by_id.get(answer.question_id)
        if question is None:
            raise ValueError(f"Answer for unknown question {answer.question_id!r}")
        if answer.question_id in seen:
            raise ValueError(f"Question {answer.question_id!r} answered more than once")
        if answer.format != question.format:
            raise ValueError(
                f"Answer format {answer.format.value!r} does not match question "
                f"{question.id!r} format {question.format.value!r}"
            )
        seen.add(answer.question_id)

        cell = tally[question.format]
        cell.total += 1
        if answer.is_correct:
            cell.correct += 1

    return tally


def _priority_rank(fmt: QuestionFormat) -> int:
    # Higher rank wins under max()
    return -FORMAT_PRIORITY.index(fmt)


def select_best_format(tally: FormatScoreTally) -> QuestionFormat:
    """
    Pick the best-performing format from a tally.

    Raises:
        InsufficientDataError: If no format has any answers.
    """
    candidates = [(fmt, score) for fmt, score in tally.items() if score.total > 0]
    if not candidates:
        raise InsufficientDataError(
            "No diagnostic answers were scored, so a learning style cannot be derived."
        )

    best_format, _ = max(
        candidates,
        key=lambda item: (item[1].ratio, item[1].total, _priority_rank(item[0])),
    )
    return best_format


def classify(
    questions: Sequence[DiagnosticQuestion],
    graded_answers: Iterable[GradedAnswer],
) -> Classification:
    """Tally answers and derive the learning style with its supporting data."""
    tally = build_tally(questions, graded_answers)
    best_format = select_best_format(tally)
    style = FORMAT_TO_STYLE[best_format]

    logger.debug(
        "Classified learning style {} from format {} ({})",
        style.value,
        best_format.value,
        ", ".join(
            f"{fmt.value}={score.correct}/{score.total}" for fmt, score in tally.items()
        ),
    )
    return Classification(learning_style=style, best_format=best_format, tally=tally)


def classify_learning_style(
    questions: Sequence[DiagnosticQuestion],
    graded_answers: Iterable[GradedAnswer],
) -> LearningStyle:
    """Derive the learning style label for a diagnostic run."""
    return classify(questions, graded_answers).learning_style


def learning_style_recommendations(style: LearningStyle) -> list[str]:
    """Study advice for a learning style."""
    return list(LEARNING_STYLE_RECOMMENDATIONS[style])
