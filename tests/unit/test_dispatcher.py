"""Tests for bounded-concurrency dispatch."""

from __future__ import annotations

import asyncio

import pytest

from index_migrator.checkpoint.model import ProgressCheckpoint
from index_migrator.checkpoint.store import CheckpointStore
from index_migrator.checkpoint.synchronized import SynchronizedCheckpoint
from index_migrator.pipeline.batching import Batch, plan_batches
from index_migrator.pipeline.dispatcher import Dispatcher


class RecordingStore(CheckpointStore):
    """Counts saves and remembers the processed count at each one."""

    def __init__(self, dataset_path):
        super().__init__(dataset_path)
        self.saved_at: list[int] = []

    def save(self, checkpoint):
        self.saved_at.append(checkpoint.processed_records)
        super().save(checkpoint)


def _batches(n, size):
    return plan_batches(((i, {"token_id": str(i)}) for i in range(n)), size)


def _synced(tmp_path, total):
    store = RecordingStore(tmp_path / "tokens.csv")
    return SynchronizedCheckpoint(ProgressCheckpoint.create("tokens.csv", total_records=total), store), store


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_in_flight_never_exceeds_workers(self, tmp_path):
        synced, _ = _synced(tmp_path, 200)
        in_flight = 0
        peak = 0

        async def submit(batch: Batch) -> int:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.001 * (batch.start_index % 3))
            in_flight -= 1
            return batch.size

        dispatcher = Dispatcher(synced, submit, workers=3, remaining_records=200)
        report = await dispatcher.run(_batches(200, 10))

        assert peak <= 3
        assert dispatcher.max_in_flight <= 3
        assert report.successful_batches == 20
        assert report.committed_documents == 200
        snap = await synced.snapshot()
        assert snap.safe_resume_point == 200

    @pytest.mark.asyncio
    async def test_single_worker_is_sequential(self, tmp_path):
        synced, _ = _synced(tmp_path, 30)
        order = []

        async def submit(batch):
            order.append(batch.start_index)
            await asyncio.sleep(0)
            return batch.size

        dispatcher = Dispatcher(synced, submit, workers=1)
        await dispatcher.run(_batches(30, 10))
        assert order == [0, 10, 20]
        assert dispatcher.max_in_flight == 1

    def test_rejects_zero_workers(self, tmp_path):
        synced, _ = _synced(tmp_path, 0)
        with pytest.raises(ValueError):
            Dispatcher(synced, None, workers=0)


class TestFailures:
    @pytest.mark.asyncio
    async def test_failed_batch_holds_resume_point(self, tmp_path):
        synced, _ = _synced(tmp_path, 25)

        async def submit(batch):
            if batch.start_index == 10:
                raise RuntimeError("bulk indexing failed: HTTP 500")
            return batch.size

        report = await Dispatcher(synced, submit, workers=2).run(_batches(25, 10))

        assert report.successful_batches == 2
        assert report.failed_batches == 1
        assert report.failures[0].start_index == 10
        assert "HTTP 500" in report.failures[0].error
        snap = await synced.snapshot()
        assert snap.processed_records == 15
        assert snap.failed_batches == 1
        assert snap.safe_resume_point == 10
        assert not snap.completed

    @pytest.mark.asyncio
    async def test_partial_commit_still_records_full_range(self, tmp_path):
        synced, _ = _synced(tmp_path, 10)

        async def submit(batch):
            return batch.size - 2

        report = await Dispatcher(synced, submit, workers=1).run(_batches(10, 10))
        assert report.committed_documents == 8
        snap = await synced.snapshot()
        assert snap.safe_resume_point == 10
        assert snap.processed_records == 10


class TestPersistSchedule:
    @pytest.mark.asyncio
    async def test_every_nth_batch(self, tmp_path):
        synced, store = _synced(tmp_path, 100)

        async def submit(batch):
            return batch.size

        dispatcher = Dispatcher(synced, submit, workers=1, save_every_batches=3, save_every_records=0)
        await dispatcher.run(_batches(100, 10))
        # Sequence numbers 0, 3, 6 and 9 are on schedule.
        assert store.saved_at == [10, 40, 70, 100]

    @pytest.mark.asyncio
    async def test_record_threshold(self, tmp_path):
        synced, store = _synced(tmp_path, 100)

        async def submit(batch):
            return batch.size

        dispatcher = Dispatcher(synced, submit, workers=1, save_every_batches=1000, save_every_records=25)
        await dispatcher.run(_batches(100, 10))
        # Batch 0 is on schedule; later saves follow each 25-record crossing.
        assert store.saved_at == [10, 30, 50, 80, 100]

    @pytest.mark.asyncio
    async def test_failures_follow_schedule(self, tmp_path):
        synced, store = _synced(tmp_path, 20)

        async def submit(batch):
            raise RuntimeError("down")

        await Dispatcher(synced, submit, workers=1, save_every_batches=2, save_every_records=0).run(
            _batches(20, 10)
        )
        assert store.saved_at == [0]
