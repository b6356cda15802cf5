"""CLI handler for the migrate subcommand."""

from __future__ import annotations

import asyncio
import logging

import yaml
from pydantic import ValidationError

from index_migrator.checkpoint.store import CheckpointError
from index_migrator.config.loader import load_config, with_dataset
from index_migrator.ingest.csv_source import SourceUnavailable
from index_migrator.pipeline.runner import run_migration
from index_migrator.search.client import StoreUnavailable
from index_migrator.utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def run_migrate(config_path: str | None, dataset: str | None) -> int:
    try:
        cfg = with_dataset(load_config(config_path), dataset)
    except (OSError, yaml.YAMLError, ValidationError) as exc:
        setup_logging()
        logger.error("Invalid configuration: %s", exc)
        return 1
    setup_logging(cfg.log_level)

    try:
        asyncio.run(run_migration(cfg))
    except (CheckpointError, SourceUnavailable, StoreUnavailable) as exc:
        logger.error("Migration aborted: %s", exc)
        return 1
    return 0
