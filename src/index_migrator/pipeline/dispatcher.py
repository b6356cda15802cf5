"""Bounded-concurrency batch dispatch with checkpoint bookkeeping."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from index_migrator.checkpoint.synchronized import SynchronizedCheckpoint
from index_migrator.pipeline.batching import Batch
from index_migrator.pipeline.progress import (
    BatchFailure,
    DispatchReport,
    ProgressCounter,
    crossed_multiple,
)

logger = logging.getLogger(__name__)

SubmitFn = Callable[[Batch], Awaitable[int]]


class Dispatcher:
    """Runs batches through at most ``workers`` concurrent submissions.

    *submit* returns the number of documents the store committed and
    raises on transport or status failure. A successful batch is recorded
    with its full size; a failed one only bumps the failure counter and is
    not retried, so it holds the resume point at its start index.
    """

    def __init__(
        self,
        checkpoint: SynchronizedCheckpoint,
        submit: SubmitFn,
        *,
        workers: int,
        save_every_batches: int = 10,
        save_every_records: int = 10000,
        progress_every: int = 10000,
        remaining_records: int = 0,
        counter: ProgressCounter | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        if save_every_batches < 1:
            raise ValueError(f"save_every_batches must be at least 1, got {save_every_batches}")
        self.workers = workers
        self.save_every_batches = save_every_batches
        self.save_every_records = save_every_records
        self.progress_every = progress_every
        self.remaining_records = remaining_records
        self.counter = counter or ProgressCounter()
        self.max_in_flight = 0
        self._checkpoint = checkpoint
        self._submit = submit

    async def run(self, batches: Iterable[Batch]) -> DispatchReport:
        report = DispatchReport()
        pending: set[asyncio.Task[None]] = set()
        try:
            for seq, batch in enumerate(batches):
                if len(pending) >= self.workers:
                    done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                    for task in done:
                        task.result()
                task = asyncio.create_task(self._dispatch(seq, batch, report), name=f"batch-{seq}")
                pending.add(task)
                self.max_in_flight = max(self.max_in_flight, len(pending))
            if pending:
                done, pending = await asyncio.wait(pending)
                for task in done:
                    task.result()
        finally:
            for task in pending:
                task.cancel()
        return report

    async def _dispatch(self, seq: int, batch: Batch, report: DispatchReport) -> None:
        on_schedule = seq % self.save_every_batches == 0
        try:
            committed = await self._submit(batch)
        except Exception as exc:
            logger.error(
                "Batch %d failed (records %d..%d): %s",
                seq,
                batch.start_index,
                batch.end_index - 1,
                exc,
            )
            report.failed_batches += 1
            report.failures.append(BatchFailure(batch.start_index, batch.size, str(exc)))
            await self._checkpoint.record_failure(persist=on_schedule)
            return

        previous, new_total = self.counter.add(committed)
        persist = on_schedule or crossed_multiple(previous, new_total, self.save_every_records)
        await self._checkpoint.record_success(batch.start_index, batch.size, persist=persist)
        report.successful_batches += 1
        report.committed_documents += committed
        logger.debug("Batch %d committed %d/%d documents", seq, committed, batch.size)

        reached_end = previous < self.remaining_records <= new_total
        if crossed_multiple(previous, new_total, self.progress_every) or reached_end:
            snapshot = await self._checkpoint.snapshot()
            logger.info(
                "Migrated: %d/%d remaining (%.1f%% of total)",
                new_total,
                self.remaining_records,
                snapshot.percentage,
            )
