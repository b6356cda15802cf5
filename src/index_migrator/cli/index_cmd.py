"""CLI handlers for the create-index and show-mapping subcommands."""

from __future__ import annotations

import asyncio
import logging

import httpx
import orjson
import typer

from index_migrator.config.loader import load_config
from index_migrator.config.schema import MigrationConfig
from index_migrator.search.client import BulkIndexClient
from index_migrator.transform.mapping import generate_mapping
from index_migrator.utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def create_index(cfg: MigrationConfig, recreate: bool) -> None:
    mapping = generate_mapping(cfg.document, cfg.elasticsearch)
    async with BulkIndexClient(cfg.elasticsearch, id_field=cfg.document.id_field) as client:
        if recreate:
            await client.delete_index()
        elif await client.index_exists():
            logger.info("Index %s already exists, leaving it untouched", client.index)
            return
        await client.create_index(mapping)


def run_create_index(config_path: str | None, recreate: bool) -> int:
    cfg = load_config(config_path)
    setup_logging(cfg.log_level)
    logger.info("Creating index %r at %s", cfg.elasticsearch.index, cfg.elasticsearch.url)
    try:
        asyncio.run(create_index(cfg, recreate))
    except (httpx.HTTPError, RuntimeError) as exc:
        logger.error("Failed to create index: %s", exc)
        return 1
    return 0


def run_show_mapping(config_path: str | None) -> None:
    cfg = load_config(config_path)
    mapping = generate_mapping(cfg.document, cfg.elasticsearch)
    typer.echo(orjson.dumps(mapping, option=orjson.OPT_INDENT_2).decode("utf-8"))
