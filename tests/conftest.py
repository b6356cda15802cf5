"""Shared test fixtures."""

from __future__ import annotations

import csv
from collections.abc import Callable
from pathlib import Path

import pytest

from index_migrator.config.schema import CheckpointConfig, MigrationConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"

CSV_COLUMNS = ["token_address", "token_id", "owner", "price", "is_shown", "raw_metadata"]


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def config_path() -> Path:
    return FIXTURES_DIR / "config_test.yaml"


@pytest.fixture
def write_dataset(tmp_path: Path) -> Callable[[int], Path]:
    """Write a CSV with *n* rows whose token_id equals the row index."""

    def _write(n: int, name: str = "tokens.csv") -> Path:
        path = tmp_path / name
        with path.open("w", encoding="utf-8", newline="") as fh:
            writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
            writer.writeheader()
            for i in range(n):
                writer.writerow({
                    "token_address": "0xabc",
                    "token_id": str(i),
                    "owner": f"0xowner{i % 3}",
                    "price": f"{i}.5",
                    "is_shown": "t",
                    "raw_metadata": '{"name": "Token %d", "properties": {"tier": %d}}' % (i, i % 4),
                })
        return path

    return _write


@pytest.fixture
def make_config() -> Callable[..., MigrationConfig]:
    def _make(dataset: Path, **overrides) -> MigrationConfig:
        values = {
            "dataset_path": dataset,
            "batch_size": 10,
            "workers": 2,
            "checkpoint": CheckpointConfig(save_every_batches=1, save_every_records=0),
            "progress_every": 0,
        }
        values.update(overrides)
        return MigrationConfig(**values)

    return _make
