"""Turn CSV rows into search documents."""

from __future__ import annotations

import logging
from typing import Any

import orjson

from index_migrator.config.schema import DocumentConfig, FieldType
from index_migrator.transform.collections import CollectionRegistry, extract_collection_fields

logger = logging.getLogger(__name__)

_TRUE = {"t", "true"}
_FALSE = {"f", "false"}


def coerce_value(raw: str | None, field_type: FieldType) -> Any:
    """Parse a CSV cell as *field_type*; blank or unparseable gives ``None``."""
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    if field_type in (FieldType.KEYWORD, FieldType.TEXT):
        return text
    if field_type in (FieldType.INTEGER, FieldType.LONG):
        try:
            return int(text)
        except ValueError:
            return None
    if field_type == FieldType.DOUBLE:
        try:
            return float(text)
        except ValueError:
            return None
    if field_type == FieldType.BOOLEAN:
        lowered = text.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        return None
    raise ValueError(f"Unknown field type: {field_type}")


def parse_metadata(raw: str | None) -> Any:
    """Decode a JSON metadata cell; invalid JSON is treated as absent."""
    if raw is None or not raw.strip():
        return None
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        return None


class DocumentBuilder:
    """Builds one document per row according to a :class:`DocumentConfig`."""

    def __init__(self, config: DocumentConfig) -> None:
        self.config = config
        self.collections = CollectionRegistry(config.collections)

    def build(self, row: dict[str, str]) -> dict[str, Any]:
        cfg = self.config
        metadata = parse_metadata(row.get(cfg.metadata_column)) if cfg.metadata_column else None
        meta_fields = metadata if isinstance(metadata, dict) else {}
        properties = meta_fields.get("properties")
        if not isinstance(properties, dict):
            properties = None

        doc: dict[str, Any] = {}
        for column, field_type in cfg.field_types.items():
            value = None
            if column in cfg.metadata_overrides:
                meta_value = meta_fields.get(column)
                if isinstance(meta_value, str) and meta_value.strip():
                    value = meta_value
            if value is None:
                value = coerce_value(row.get(column), field_type)
            if value is not None:
                doc[column] = value

        if properties is not None:
            doc["properties"] = properties
        if metadata is not None and cfg.metadata_column:
            doc[cfg.metadata_column] = metadata

        collection = self.collections.get(row.get(cfg.collection_field))
        if collection is not None and properties:
            doc.update(extract_collection_fields(properties, collection))
        return doc
