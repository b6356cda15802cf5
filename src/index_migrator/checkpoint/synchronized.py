"""Lock-guarded access to the shared progress checkpoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from index_migrator.checkpoint.model import ProgressCheckpoint
from index_migrator.checkpoint.store import CheckpointStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckpointSnapshot:
    """A consistent read of the checkpoint counters."""

    processed_records: int
    total_records: int
    successful_batches: int
    failed_batches: int
    safe_resume_point: int
    percentage: float
    completed: bool

    @classmethod
    def of(cls, checkpoint: ProgressCheckpoint) -> CheckpointSnapshot:
        return cls(
            processed_records=checkpoint.processed_records,
            total_records=checkpoint.total_records,
            successful_batches=checkpoint.successful_batches,
            failed_batches=checkpoint.failed_batches,
            safe_resume_point=checkpoint.safe_resume_point(),
            percentage=checkpoint.progress_percentage(),
            completed=checkpoint.is_completed(),
        )


class SynchronizedCheckpoint:
    """The only handle through which running tasks touch the checkpoint.

    Each public coroutine is one critical section over a single
    ``asyncio.Lock``. The lock is never held across a network call.
    """

    def __init__(self, checkpoint: ProgressCheckpoint, store: CheckpointStore) -> None:
        self._checkpoint = checkpoint
        self._store = store
        self._lock = asyncio.Lock()

    @property
    def store(self) -> CheckpointStore:
        return self._store

    async def record_success(self, start_index: int, size: int, persist: bool = False) -> None:
        async with self._lock:
            self._checkpoint.add_completed_batch(start_index, size)
            if persist:
                self._save_locked()

    async def record_failure(self, persist: bool = False) -> None:
        async with self._lock:
            self._checkpoint.add_failed_batch()
            if persist:
                self._save_locked()

    async def snapshot(self) -> CheckpointSnapshot:
        async with self._lock:
            return CheckpointSnapshot.of(self._checkpoint)

    async def flush(self) -> bool:
        async with self._lock:
            return self._save_locked()

    async def flush_then(self, action: Callable[[CheckpointSnapshot], None]) -> bool:
        """Save, then run *action* before the lock is released.

        Nothing can be recorded between the save and *action*, which is
        how the shutdown path stops the process on a consistent artifact.
        """
        async with self._lock:
            saved = self._save_locked()
            action(CheckpointSnapshot.of(self._checkpoint))
            return saved

    async def finalize(self) -> CheckpointSnapshot:
        """Remove the artifact if the run is complete, otherwise save it."""
        async with self._lock:
            snapshot = CheckpointSnapshot.of(self._checkpoint)
            if snapshot.completed:
                try:
                    self._store.cleanup()
                except OSError as exc:
                    logger.error("Failed to remove checkpoint %s: %s", self._store.path, exc)
            else:
                self._save_locked()
            return snapshot

    def _save_locked(self) -> bool:
        try:
            self._store.save(self._checkpoint)
        except OSError as exc:
            logger.error("Failed to save checkpoint to %s: %s", self._store.path, exc)
            return False
        return True
