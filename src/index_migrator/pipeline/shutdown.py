"""Interrupt handling: flush the checkpoint, then stop the process."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from collections.abc import Callable, Sequence

from index_migrator.checkpoint.synchronized import CheckpointSnapshot, SynchronizedCheckpoint

logger = logging.getLogger(__name__)

INTERRUPT_EXIT_CODE = 130


def hard_exit(code: int) -> None:
    """Terminate immediately, without unwinding in-flight tasks."""
    logging.shutdown()
    os._exit(code)


class ShutdownCoordinator:
    """Races the dispatcher for the checkpoint lock once an interrupt arrives.

    This is a hard stop, not a drain: batches in flight when the signal
    is handled are abandoned and recorded neither way. The next run
    resubmits them from their start index.
    """

    def __init__(
        self,
        checkpoint: SynchronizedCheckpoint,
        *,
        exit_code: int = INTERRUPT_EXIT_CODE,
        signals: Sequence[signal.Signals] = (signal.SIGINT,),
        terminate: Callable[[int], None] = hard_exit,
    ) -> None:
        self.exit_code = exit_code
        self.signals = tuple(signals)
        self._checkpoint = checkpoint
        self._terminate = terminate
        self._requested = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def requested(self) -> bool:
        return self._requested.is_set()

    def install(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        for sig in self.signals:
            self._loop.add_signal_handler(sig, self.request_shutdown)

    def uninstall(self) -> None:
        if self._loop is None:
            return
        for sig in self.signals:
            self._loop.remove_signal_handler(sig)
        self._loop = None

    def request_shutdown(self) -> None:
        if not self._requested.is_set():
            logger.warning("Received shutdown signal, saving checkpoint...")
        self._requested.set()

    async def run(self) -> None:
        await self._requested.wait()
        await self._checkpoint.flush_then(self._stop)

    def _stop(self, snapshot: CheckpointSnapshot) -> None:
        logger.warning(
            "Stopping after checkpoint flush: safe resume point is record %d",
            snapshot.safe_resume_point,
        )
        self._terminate(self.exit_code)
