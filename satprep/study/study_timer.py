"""
Study session timer.

Measures wall-clock study time for a subject/subtopic and flushes it, once,
to the prep service as whole minutes (rounded up). Used as an async context
manager the flush happens on every exit path, including errors and task
cancellation.

Usage:
    async with StudyTimer("Math", "Algebra", sink=client) as timer:
        await run_practice()
    print(timer.minutes)
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from typing import Any, Protocol

from loguru import logger

from satprep.core.errors import PrepError


class StudyTimeSink(Protocol):
    """Where finished timers are recorded."""

    async def save_study_time(
        self,
        subject: str,
        subtopic: str,
        study_time: int,
        score: int | None = None,
    ) -> Any: ...


class StudyTimer:
    """A start/stop timer whose stop is guaranteed to flush exactly once."""

    def __init__(
        self,
        subject: str,
        subtopic: str,
        sink: StudyTimeSink,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.subject = subject
        self.subtopic = subtopic
        self._sink = sink
        self._clock = clock
        self._started_at: float | None = None
        self._elapsed: float = 0.0
        self._pending: tuple[int, int | None] | None = None
        self.minutes: int | None = None

    @property
    def is_running(self) -> bool:
        return self._started_at is not None

    @property
    def has_unflushed_time(self) -> bool:
        return self._pending is not None

    @property
    def elapsed_seconds(self) -> int:
        if self._started_at is None:
            return int(self._elapsed)
        return int(self._clock() - self._started_at)

    def format_elapsed(self) -> str:
        """Elapsed time as HH:MM:SS."""
        total = self.elapsed_seconds
        hours, rest = divmod(total, 3600)
        minutes, seconds = divmod(rest, 60)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"

    def start(self) -> None:
        if self._started_at is not None:
            raise RuntimeError(f"Timer for {self.subject}/{self.subtopic} is already running")
        if self.minutes is not None or self._pending is not None:
            raise RuntimeError(f"Timer for {self.subject}/{self.subtopic} was already flushed")
        self._started_at = self._clock()
        logger.debug(f"Study timer started: {self.subject}/{self.subtopic}")

    async def stop(self, score: int | None = None) -> int:
        """
        Stop the timer and record the study time.

        The minutes stay pending until the sink accepts them, so stopping
        again after a failed flush sends them again. Once flushed, stopping
        records nothing and returns the recorded minutes (0 if it never ran).
        """
        if self._started_at is not None:
            self._elapsed = self._clock() - self._started_at
            self._started_at = None
            self._pending = (math.ceil(self._elapsed / 60), score)

        if self._pending is None:
            return self.minutes or 0

        minutes, pending_score = self._pending
        if score is not None:
            pending_score = score
        await self._sink.save_study_time(self.subject, self.subtopic, minutes, pending_score)

        self._pending = None
        self.minutes = minutes
        logger.info(f"Recorded {minutes} min of study for {self.subject}/{self.subtopic}")
        return minutes

    async def __aenter__(self) -> "StudyTimer":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            await self.stop()
            return False

        # Unwinding from another error: flush, but never mask the original
        try:
            await self.stop()
        except PrepError as flush_error:
            logger.warning(
                f"Study time for {self.subject}/{self.subtopic} not recorded: "
                f"{flush_error.user_message}"
            )
        return False
