"""File-based persistence for progress checkpoints."""

from __future__ import annotations

import logging
from pathlib import Path

import orjson

from index_migrator.checkpoint.model import ProgressCheckpoint

logger = logging.getLogger(__name__)

CHECKPOINT_SUFFIX = ".checkpoint"


class CheckpointError(Exception):
    """Base class for checkpoint loading problems."""


class DatasetMismatch(CheckpointError):
    """The stored checkpoint belongs to a different dataset."""

    def __init__(self, expected: str, found: str) -> None:
        super().__init__(f"checkpoint is for {found!r}, not {expected!r}")
        self.expected = expected
        self.found = found


class CorruptCheckpoint(CheckpointError):
    """The checkpoint artifact exists but cannot be decoded."""


def checkpoint_path_for(dataset_path: Path | str) -> Path:
    """Derive ``<dataset-path>.checkpoint``."""
    return Path(f"{dataset_path}{CHECKPOINT_SUFFIX}")


class CheckpointStore:
    """Reads and writes the single checkpoint artifact of one dataset."""

    def __init__(self, dataset_path: Path | str) -> None:
        self.path = checkpoint_path_for(dataset_path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self, dataset_id: str) -> ProgressCheckpoint | None:
        if not self.path.exists():
            return None
        try:
            data = orjson.loads(self.path.read_bytes())
            checkpoint = ProgressCheckpoint.from_dict(data)
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            raise CorruptCheckpoint(f"cannot decode {self.path}: {exc}") from exc
        if checkpoint.dataset_id != dataset_id:
            raise DatasetMismatch(dataset_id, checkpoint.dataset_id)
        return checkpoint

    def save(self, checkpoint: ProgressCheckpoint) -> None:
        """Write the checkpoint, replacing any previous artifact atomically."""
        payload = orjson.dumps(checkpoint.to_dict(), option=orjson.OPT_INDENT_2)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_bytes(payload)
        tmp_path.replace(self.path)
        logger.info("Checkpoint saved: %d records processed", checkpoint.processed_records)

    def cleanup(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info("Checkpoint file removed: %s", self.path)
