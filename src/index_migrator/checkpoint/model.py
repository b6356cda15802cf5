"""Progress checkpoint model and the safe resume point computation."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ProgressCheckpoint:
    """How much of one dataset has been committed to the target index.

    ``completed_ranges`` holds one half-open ``(start, end)`` interval per
    committed batch, in completion order. ``processed_records`` is counted
    independently of the ranges and is never recomputed from them.
    """

    dataset_id: str
    total_records: int = 0  # 0 = unknown yet
    processed_records: int = 0
    successful_batches: int = 0
    failed_batches: int = 0
    completed_ranges: list[tuple[int, int]] = field(default_factory=list)
    start_time: int = field(default_factory=lambda: int(time.time()))

    @classmethod
    def create(cls, dataset_id: str, total_records: int = 0) -> ProgressCheckpoint:
        return cls(dataset_id=dataset_id, total_records=total_records)

    def safe_resume_point(self) -> int:
        """Return the end of the committed prefix that is contiguous from 0.

        Ranges are walked in start order. A range starting exactly at the
        frontier extends it. One starting before the frontier is already
        covered, and one starting past it marks a gap that ends the walk.
        """
        frontier = 0
        for start, end in sorted(self.completed_ranges, key=lambda r: r[0]):
            if start == frontier:
                frontier = end
            elif start > frontier:
                break
        return frontier

    def add_completed_batch(self, start_index: int, size: int) -> None:
        self.completed_ranges.append((start_index, start_index + size))
        self.processed_records += size
        self.successful_batches += 1

    def add_failed_batch(self) -> None:
        self.failed_batches += 1

    def set_total_records(self, total: int) -> None:
        """Fix the dataset size if it is still unknown."""
        if self.total_records == 0:
            self.total_records = total

    def progress_percentage(self) -> float:
        if self.total_records == 0:
            return 0.0
        return self.processed_records / self.total_records * 100.0

    def is_completed(self) -> bool:
        return self.processed_records >= self.total_records

    def first_gap(self) -> tuple[int, int] | None:
        """Return the first missing interval after the safe resume point.

        ``None`` when nothing beyond the frontier has been committed.
        """
        frontier = self.safe_resume_point()
        later = [start for start, _ in self.completed_ranges if start > frontier]
        if not later:
            return None
        return frontier, min(later)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataset_id": self.dataset_id,
            "total_records": self.total_records,
            "processed_records": self.processed_records,
            "successful_batches": self.successful_batches,
            "failed_batches": self.failed_batches,
            "completed_ranges": [[start, end] for start, end in self.completed_ranges],
            "start_time": self.start_time,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ProgressCheckpoint:
        return cls(
            dataset_id=d["dataset_id"],
            total_records=int(d.get("total_records", 0)),
            processed_records=int(d.get("processed_records", 0)),
            successful_batches=int(d.get("successful_batches", 0)),
            failed_batches=int(d.get("failed_batches", 0)),
            completed_ranges=[(int(start), int(end)) for start, end in d.get("completed_ranges", [])],
            start_time=int(d.get("start_time", 0)),
        )
