"""Generate the target index settings and mapping."""

from __future__ import annotations

from typing import Any

from index_migrator.config.schema import DocumentConfig, ElasticsearchConfig, FieldType

NAME_ANALYZER = "name_analyzer"
LOWERCASE_NORMALIZER = "lowercase_normalizer"


def base_field_mapping(field_type: FieldType, indexed: bool = True) -> dict[str, Any]:
    """Mapping for a column copied from the CSV."""
    if field_type == FieldType.TEXT:
        if not indexed:
            return {"type": "text", "index": False}
        return {
            "type": "text",
            "analyzer": NAME_ANALYZER,
            "fields": {"keyword": {"type": "keyword"}},
        }
    mapping: dict[str, Any] = {"type": field_type.value}
    if not indexed:
        mapping["index"] = False
    return mapping


def extracted_field_mapping(field_type: FieldType) -> dict[str, Any]:
    """Mapping for a collection-specific field promoted from metadata."""
    if field_type == FieldType.KEYWORD:
        return {"type": "keyword", "normalizer": LOWERCASE_NORMALIZER}
    if field_type == FieldType.TEXT:
        return {"type": "text", "analyzer": NAME_ANALYZER}
    return {"type": field_type.value}


def generate_mapping(document: DocumentConfig, index: ElasticsearchConfig) -> dict[str, Any]:
    """Build index settings plus mappings covering every configured collection."""
    unindexed = set(document.unindexed_fields)
    properties: dict[str, Any] = {
        column: base_field_mapping(field_type, indexed=column not in unindexed)
        for column, field_type in document.field_types.items()
    }
    properties["properties"] = {"type": "object", "dynamic": True}
    if document.metadata_column:
        properties[document.metadata_column] = {"type": "object", "enabled": False}

    for collection in document.collections:
        for field in collection.extracted_fields:
            properties.setdefault(field.name, extracted_field_mapping(field.type))

    return {
        "settings": {
            "number_of_shards": index.shards,
            "number_of_replicas": index.replicas,
            "refresh_interval": index.refresh_interval,
            "analysis": {
                "normalizer": {
                    LOWERCASE_NORMALIZER: {"type": "custom", "filter": ["lowercase"]},
                },
                "analyzer": {
                    NAME_ANALYZER: {
                        "tokenizer": "standard",
                        "filter": ["lowercase", "asciifolding"],
                    },
                },
            },
        },
        "mappings": {"dynamic": False, "properties": properties},
    }
