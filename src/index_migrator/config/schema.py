"""Pydantic v2 configuration models for the index migrator."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class FieldType(str, Enum):
    KEYWORD = "keyword"
    TEXT = "text"
    INTEGER = "integer"
    LONG = "long"
    DOUBLE = "double"
    BOOLEAN = "boolean"


def _default_field_types() -> dict[str, FieldType]:
    return {
        "token_address": FieldType.KEYWORD,
        "token_id": FieldType.KEYWORD,
        "owner": FieldType.KEYWORD,
        "base_price": FieldType.DOUBLE,
        "ended_at": FieldType.LONG,
        "ended_price": FieldType.DOUBLE,
        "expired_at": FieldType.LONG,
        "kind": FieldType.LONG,
        "maker": FieldType.KEYWORD,
        "matcher": FieldType.KEYWORD,
        "order_id": FieldType.LONG,
        "payment_token": FieldType.KEYWORD,
        "price": FieldType.DOUBLE,
        "ron_price": FieldType.DOUBLE,
        "started_at": FieldType.LONG,
        "state": FieldType.KEYWORD,
        "order_status": FieldType.KEYWORD,
        "name": FieldType.TEXT,
        "image": FieldType.KEYWORD,
        "video": FieldType.KEYWORD,
        "cdn_image": FieldType.KEYWORD,
        "animation_url": FieldType.KEYWORD,
        "description": FieldType.TEXT,
        "metadata_last_updated": FieldType.LONG,
        "is_shown": FieldType.BOOLEAN,
        "ownership_block_number": FieldType.LONG,
        "ownership_log_index": FieldType.INTEGER,
    }


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ExtractedField(_Frozen):
    """A metadata property promoted to a typed top-level document field."""

    name: str
    source_key: str
    type: FieldType = FieldType.KEYWORD


class CollectionDef(_Frozen):
    """Per-collection extraction rules, matched on the collection column."""

    address: str
    name: str = ""
    extracted_fields: list[ExtractedField] = Field(default_factory=list)


class DocumentConfig(_Frozen):
    """Maps CSV columns to document fields."""

    id_field: str = "token_id"
    collection_field: str = "token_address"
    metadata_column: str | None = "raw_metadata"
    metadata_overrides: list[str] = Field(
        default_factory=lambda: ["name", "image", "video", "animation_url", "description"]
    )
    field_types: dict[str, FieldType] = Field(default_factory=_default_field_types)
    # Stored in the document but not searchable.
    unindexed_fields: list[str] = Field(
        default_factory=lambda: ["image", "cdn_image", "video", "animation_url", "description"]
    )
    collections: list[CollectionDef] = Field(default_factory=list)


class CsvConfig(_Frozen):
    delimiter: str = ","
    encoding: str = "utf-8"


class ElasticsearchConfig(_Frozen):
    url: str = "http://localhost:9200"
    index: str = "nft_tokens"
    timeout_secs: float = Field(default=30.0, gt=0)
    shards: int = 1
    replicas: int = 1
    refresh_interval: str = "5s"


class CheckpointConfig(_Frozen):
    save_every_batches: int = Field(default=10, ge=1)
    save_every_records: int = Field(default=10000, ge=0)


class MigrationConfig(_Frozen):
    """Top-level migration configuration.

    Built once at startup and passed by reference to the runner, the
    batch planner and the bulk client.
    """

    dataset_path: Path = Path("data.csv")
    elasticsearch: ElasticsearchConfig = Field(default_factory=ElasticsearchConfig)
    batch_size: int = Field(default=1000, ge=1)
    workers: int = Field(default=4, ge=1)
    checkpoint: CheckpointConfig = Field(default_factory=CheckpointConfig)
    progress_every: int = Field(default=10000, ge=0)
    csv: CsvConfig = Field(default_factory=CsvConfig)
    document: DocumentConfig = Field(default_factory=DocumentConfig)
    log_level: str = "INFO"
