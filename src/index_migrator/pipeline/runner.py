"""End-to-end migration run: resume, plan, dispatch, finalise."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from typing import Protocol

from index_migrator.checkpoint.model import ProgressCheckpoint
from index_migrator.checkpoint.store import CheckpointStore, DatasetMismatch
from index_migrator.checkpoint.synchronized import CheckpointSnapshot, SynchronizedCheckpoint
from index_migrator.config.schema import MigrationConfig
from index_migrator.ingest.csv_source import CsvRecordSource
from index_migrator.pipeline.batching import Batch, plan_batches
from index_migrator.pipeline.dispatcher import Dispatcher
from index_migrator.pipeline.progress import DispatchReport, MigrationSummary
from index_migrator.pipeline.shutdown import ShutdownCoordinator, hard_exit
from index_migrator.search.client import BulkIndexClient
from index_migrator.transform.documents import DocumentBuilder
from index_migrator.utils.batching import count_batches

logger = logging.getLogger(__name__)


class IndexClient(Protocol):
    async def check_health(self) -> str: ...

    async def submit_batch(self, batch: Batch) -> int: ...

    async def aclose(self) -> None: ...


def load_or_create_checkpoint(store: CheckpointStore, dataset_id: str) -> ProgressCheckpoint:
    """Resume from the stored checkpoint when it matches, else start fresh.

    A corrupt artifact is not handled here; it aborts the run.
    """
    try:
        checkpoint = store.load(dataset_id)
    except DatasetMismatch as exc:
        logger.warning("Checkpoint is for a different dataset (%s), ignoring", exc.found)
        checkpoint = None

    if checkpoint is None:
        logger.info("Starting new migration: %s", dataset_id)
        return ProgressCheckpoint.create(dataset_id)

    logger.info(
        "Found checkpoint: %.1f%% complete (%d/%d records)",
        checkpoint.progress_percentage(),
        checkpoint.processed_records,
        checkpoint.total_records,
    )
    logger.info("Resuming from record %d (safe continuous point)", checkpoint.safe_resume_point())
    return checkpoint


def _summarise(
    started: float,
    report: DispatchReport,
    snapshot: CheckpointSnapshot,
) -> MigrationSummary:
    return MigrationSummary(
        duration_secs=time.monotonic() - started,
        records_this_run=report.committed_documents,
        successful_batches=report.successful_batches,
        failed_batches=report.failed_batches,
        processed_records=snapshot.processed_records,
        total_records=snapshot.total_records,
        percentage=snapshot.percentage,
        safe_resume_point=snapshot.safe_resume_point,
        completed=snapshot.completed,
    )


async def run_migration(
    config: MigrationConfig,
    *,
    client: IndexClient | None = None,
    install_signals: bool = True,
    terminate: Callable[[int], None] = hard_exit,
) -> MigrationSummary:
    """Migrate ``config.dataset_path`` into the configured index.

    Raises ``CorruptCheckpoint``, ``SourceUnavailable`` or
    ``StoreUnavailable`` before any batch is submitted when the run
    cannot make meaningful progress.
    """
    dataset_id = str(config.dataset_path)
    store = CheckpointStore(config.dataset_path)
    checkpoint = load_or_create_checkpoint(store, dataset_id)

    source = CsvRecordSource(config.dataset_path, config.csv.delimiter, config.csv.encoding)
    source.check_readable()

    logger.info(
        "Config: url=%s index=%s batch=%d workers=%d",
        config.elasticsearch.url,
        config.elasticsearch.index,
        config.batch_size,
        config.workers,
    )

    owns_client = client is None
    if client is None:
        client = BulkIndexClient(config.elasticsearch, id_field=config.document.id_field)
    try:
        await client.check_health()
        return await _migrate(config, checkpoint, store, source, client, install_signals, terminate)
    finally:
        if owns_client:
            await client.aclose()


async def _migrate(
    config: MigrationConfig,
    checkpoint: ProgressCheckpoint,
    store: CheckpointStore,
    source: CsvRecordSource,
    client: IndexClient,
    install_signals: bool,
    terminate: Callable[[int], None],
) -> MigrationSummary:
    started = time.monotonic()
    resume_point = checkpoint.safe_resume_point()
    total = source.count()
    checkpoint.set_total_records(total)
    remaining = max(total - resume_point, 0)
    if resume_point:
        logger.info("Skipping %d safely processed records", min(resume_point, total))
    logger.info("Will process %d remaining records", remaining)

    synced = SynchronizedCheckpoint(checkpoint, store)
    if remaining == 0:
        logger.info("Migration already completed")
        return _summarise(started, DispatchReport(), await synced.finalize())

    builder = DocumentBuilder(config.document)
    batches = plan_batches(
        source.records(),
        config.batch_size,
        resume_from=resume_point,
        transform=builder.build,
    )
    logger.info(
        "Processing %d batches with %d workers",
        count_batches(remaining, config.batch_size),
        config.workers,
    )

    dispatcher = Dispatcher(
        synced,
        client.submit_batch,
        workers=config.workers,
        save_every_batches=config.checkpoint.save_every_batches,
        save_every_records=config.checkpoint.save_every_records,
        progress_every=config.progress_every,
        remaining_records=remaining,
    )
    coordinator = ShutdownCoordinator(synced, terminate=terminate)
    if install_signals:
        coordinator.install()
    watcher = asyncio.create_task(coordinator.run(), name="shutdown-coordinator")
    try:
        report = await dispatcher.run(batches)
    except Exception:
        logger.error("Dispatch aborted, saving checkpoint before exiting")
        await synced.flush()
        raise
    finally:
        if install_signals:
            coordinator.uninstall()
        # A requested shutdown must finish its flush and exit.
        if not coordinator.requested:
            watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher
    logger.debug("Peak batches in flight: %d of %d", dispatcher.max_in_flight, config.workers)

    snapshot = await synced.finalize()
    if snapshot.completed:
        logger.info("Migration completed successfully")
        if snapshot.safe_resume_point < snapshot.total_records:
            logger.warning(
                "Processed count reached the total but records %d.. were never "
                "committed as a contiguous prefix",
                snapshot.safe_resume_point,
            )
    else:
        logger.warning("Migration incomplete, checkpoint saved for resume")

    summary = _summarise(started, report, snapshot)
    summary.log(logger)
    return summary
