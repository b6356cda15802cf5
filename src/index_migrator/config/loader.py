"""Load and validate migration configuration from YAML and the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .schema import MigrationConfig

# Environment variable -> (section, key); section None means top level.
_ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "CSV_FILE": (None, "dataset_path"),
    "BATCH_SIZE": (None, "batch_size"),
    "WORKERS": (None, "workers"),
    "LOG_LEVEL": (None, "log_level"),
    "ELASTICSEARCH_URL": ("elasticsearch", "url"),
    "ELASTICSEARCH_INDEX": ("elasticsearch", "index"),
    "TIMEOUT_SECS": ("elasticsearch", "timeout_secs"),
}


def apply_env_overrides(raw: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    """Overlay recognised environment variables onto a raw config dict."""
    merged = dict(raw)
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = env.get(var)
        if value is None or value == "":
            continue
        if section is None:
            merged[key] = value
        else:
            nested = dict(merged.get(section) or {})
            nested[key] = value
            merged[section] = nested
    return merged


def load_config(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> MigrationConfig:
    """Read an optional YAML file, apply env overrides and validate.

    When *env* is omitted a ``.env`` file in the working directory is
    loaded first and ``os.environ`` is used.
    """
    raw: dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    if env is None:
        load_dotenv()
        env = os.environ
    return MigrationConfig.model_validate(apply_env_overrides(raw, env))


def with_dataset(config: MigrationConfig, dataset: Path | str | None) -> MigrationConfig:
    """Return *config* pointed at another dataset, if one is given."""
    if not dataset:
        return config
    return config.model_copy(update={"dataset_path": Path(dataset)})
