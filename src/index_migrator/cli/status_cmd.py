"""CLI handler for the status subcommand."""

from __future__ import annotations

import typer

from index_migrator.checkpoint.store import CheckpointStore, CorruptCheckpoint, DatasetMismatch
from index_migrator.config.loader import load_config, with_dataset


def run_status(config_path: str | None, dataset: str | None) -> int:
    cfg = with_dataset(load_config(config_path), dataset)
    dataset_id = str(cfg.dataset_path)
    store = CheckpointStore(cfg.dataset_path)

    try:
        checkpoint = store.load(dataset_id)
    except DatasetMismatch as exc:
        typer.echo(f"Checkpoint {store.path} belongs to another dataset ({exc.found}); it will be ignored")
        return 0
    except CorruptCheckpoint as exc:
        typer.echo(f"Checkpoint is corrupt: {exc}", err=True)
        return 1

    if checkpoint is None:
        typer.echo(f"No checkpoint for {dataset_id}")
        return 0

    typer.echo(f"Dataset:            {checkpoint.dataset_id}")
    typer.echo(
        f"Progress:           {checkpoint.progress_percentage():.1f}% "
        f"({checkpoint.processed_records}/{checkpoint.total_records})"
    )
    typer.echo(f"Batches:            {checkpoint.successful_batches} ok, {checkpoint.failed_batches} failed")
    typer.echo(f"Committed ranges:   {len(checkpoint.completed_ranges)}")
    typer.echo(f"Safe resume point:  {checkpoint.safe_resume_point()}")
    gap = checkpoint.first_gap()
    if gap is not None:
        typer.echo(f"First gap:          records {gap[0]}..{gap[1] - 1}")
    return 0
