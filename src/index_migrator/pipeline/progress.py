"""Throughput counter and run reporting."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field


class ProgressCounter:
    """Committed-document counter used only for throughput reporting.

    Kept apart from the checkpoint so that the hot path does not contend
    for the checkpoint lock. Each ``add`` runs without an await point, so
    concurrent tasks on one event loop never interleave inside it.
    """

    def __init__(self) -> None:
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def add(self, n: int) -> tuple[int, int]:
        """Add *n* and return ``(previous, new)``."""
        previous = self._value
        self._value = previous + n
        return previous, self._value


def crossed_multiple(previous: int, new: int, step: int) -> bool:
    """True when ``(previous, new]`` contains a positive multiple of *step*."""
    if step <= 0 or new <= previous:
        return False
    return new // step > previous // step


@dataclass
class BatchFailure:
    start_index: int
    size: int
    error: str


@dataclass
class DispatchReport:
    """Outcome counts for the batches dispatched in one run."""

    successful_batches: int = 0
    failed_batches: int = 0
    committed_documents: int = 0
    failures: list[BatchFailure] = field(default_factory=list)


@dataclass
class MigrationSummary:
    """Final figures reported at the end of a run."""

    duration_secs: float
    records_this_run: int
    successful_batches: int
    failed_batches: int
    processed_records: int
    total_records: int
    percentage: float
    safe_resume_point: int
    completed: bool

    def rate(self) -> float:
        if self.duration_secs <= 0:
            return 0.0
        return self.records_this_run / self.duration_secs

    def log(self, logger: logging.Logger) -> None:
        logger.info("Migration summary:")
        logger.info("  Duration: %.2fs", self.duration_secs)
        logger.info("  Records processed this session: %d", self.records_this_run)
        logger.info("  Successful batches: %d", self.successful_batches)
        logger.info("  Failed batches: %d", self.failed_batches)
        if self.records_this_run > 0:
            logger.info("  Rate: %.0f records/sec", self.rate())
        logger.info(
            "  Total progress: %.1f%% (%d/%d)",
            self.percentage,
            self.processed_records,
            self.total_records,
        )
        if not self.completed:
            logger.warning(
                "  Migration incomplete: %d records are safely resumable; "
                "the next run resumes from record %d",
                self.safe_resume_point,
                self.safe_resume_point,
            )
