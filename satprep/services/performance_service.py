"""
Performance Service.

Records per-subject scores and study time, and aggregates them for
summaries and adaptive re-planning.
"""

from __future__ import annotations

from collections import defaultdict

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from satprep.core.models import PerformanceEntry, PerformanceSummary
from satprep.db.models import LearnerRecord, PerformanceRecord


def _entry(record: PerformanceRecord) -> PerformanceEntry:
    return PerformanceEntry(
        subject=record.subject,
        subtopic=record.subtopic,
        score=record.score,
        study_time=record.study_time,
        recorded_at=record.recorded_at,
    )


class PerformanceService:
    """Reads and writes a learner's performance history."""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def record(
        self,
        learner: LearnerRecord,
        subject: str,
        subtopic: str,
        score: int | None = None,
        study_time: int = 0,
    ) -> PerformanceRecord:
        """Add one performance row. The caller commits."""
        record = PerformanceRecord(
            learner_id=learner.id,
            subject=subject,
            subtopic=subtopic,
            score=score,
            study_time=study_time,
        )
        self.db_session.add(record)
        self.db_session.flush()
        return record

    def save(
        self,
        learner: LearnerRecord,
        subject: str,
        subtopic: str,
        score: int | None = None,
        study_time: int = 0,
    ) -> PerformanceEntry:
        """Record and commit a single entry."""
        record = self.record(learner, subject, subtopic, score, study_time)
        self.db_session.commit()
        logger.info(
            "Recorded performance for learner {}: {}/{} score={} time={}min",
            learner.id, subject, subtopic, score, study_time,
        )
        return _entry(record)

    def records(self, learner: LearnerRecord, subject: str | None = None) -> list[PerformanceRecord]:
        """Newest first."""
        stmt = select(PerformanceRecord).where(PerformanceRecord.learner_id == learner.id)
        if subject:
            stmt = stmt.where(PerformanceRecord.subject == subject)
        stmt = stmt.order_by(PerformanceRecord.recorded_at.desc(), PerformanceRecord.id.desc())
        return list(self.db_session.scalars(stmt))

    def subject_averages(self, learner: LearnerRecord) -> dict[str, float]:
        """Average score per subject over scored entries."""
        return self._aggregate(self.records(learner))[0]

    def summary(self, learner: LearnerRecord, subject: str | None = None) -> PerformanceSummary:
        records = self.records(learner, subject)
        averages, study_time = self._aggregate(records)
        scored = [r.score for r in records if r.score is not None]
        return PerformanceSummary(
            entries=[_entry(r) for r in records],
            subject_averages=averages,
            study_time_by_subject=study_time,
            total_study_time=sum(study_time.values()),
            overall_average=round(sum(scored) / len(scored), 2) if scored else 0.0,
        )

    @staticmethod
    def _aggregate(
        records: list[PerformanceRecord],
    ) -> tuple[dict[str, float], dict[str, int]]:
        scores: dict[str, list[int]] = defaultdict(list)
        study_time: dict[str, int] = defaultdict(int)
        for record in records:
            if record.score is not None:
                scores[record.subject].append(record.score)
            study_time[record.subject] += record.study_time or 0

        averages = {s: round(sum(v) / len(v), 2) for s, v in scores.items()}
        return averages, dict(study_time)
