"""Tests for interrupt handling."""

from __future__ import annotations

import asyncio
import os
import signal

import pytest

from index_migrator.checkpoint.model import ProgressCheckpoint
from index_migrator.checkpoint.store import CheckpointStore
from index_migrator.checkpoint.synchronized import SynchronizedCheckpoint
from index_migrator.pipeline.shutdown import INTERRUPT_EXIT_CODE, ShutdownCoordinator


@pytest.fixture
def synced(tmp_path):
    cp = ProgressCheckpoint.create("tokens.csv", total_records=50)
    cp.add_completed_batch(0, 10)
    cp.add_completed_batch(20, 10)
    return SynchronizedCheckpoint(cp, CheckpointStore(tmp_path / "tokens.csv"))


class TestShutdownCoordinator:
    @pytest.mark.asyncio
    async def test_saves_then_terminates_with_130(self, synced):
        codes = []

        def terminate(code):
            # The checkpoint must already be on disk and the lock still held.
            assert synced.store.exists()
            assert synced._lock.locked()
            codes.append(code)

        coordinator = ShutdownCoordinator(synced, terminate=terminate)
        task = asyncio.create_task(coordinator.run())
        await asyncio.sleep(0)
        assert not task.done()

        coordinator.request_shutdown()
        await task

        assert codes == [INTERRUPT_EXIT_CODE]
        saved = synced.store.load("tokens.csv")
        assert saved.safe_resume_point() == 10
        assert saved.processed_records == 20

    @pytest.mark.asyncio
    async def test_records_queued_first_land_in_flushed_artifact(self, synced):
        codes = []
        late = []

        def terminate(code):
            codes.append(code)
            late.append(asyncio.get_running_loop().create_task(synced.record_success(30, 10)))

        coordinator = ShutdownCoordinator(synced, terminate=terminate)
        coordinator.request_shutdown()
        recorder = asyncio.create_task(synced.record_success(10, 10))
        watcher = asyncio.create_task(coordinator.run())
        await asyncio.gather(recorder, watcher)
        await late[0]

        assert codes == [INTERRUPT_EXIT_CODE]
        saved = synced.store.load("tokens.csv")
        assert saved.safe_resume_point() == 30
        assert saved.processed_records == 30
        # Recorded after the flush, so only in memory.
        assert (await synced.snapshot()).processed_records == 40

    @pytest.mark.asyncio
    async def test_repeated_requests_are_idempotent(self, synced):
        coordinator = ShutdownCoordinator(synced, terminate=lambda code: None)
        coordinator.request_shutdown()
        coordinator.request_shutdown()
        assert coordinator.requested

    @pytest.mark.asyncio
    async def test_signal_handler_triggers_shutdown(self, synced):
        codes = []
        coordinator = ShutdownCoordinator(synced, signals=(signal.SIGUSR1,), terminate=codes.append)
        coordinator.install()
        try:
            task = asyncio.create_task(coordinator.run())
            os.kill(os.getpid(), signal.SIGUSR1)
            await asyncio.wait_for(task, timeout=2)
        finally:
            coordinator.uninstall()
        assert codes == [INTERRUPT_EXIT_CODE]
