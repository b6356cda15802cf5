"""Tests for index mapping generation."""

from __future__ import annotations

from index_migrator.config.schema import (
    CollectionDef,
    DocumentConfig,
    ElasticsearchConfig,
    ExtractedField,
    FieldType,
)
from index_migrator.transform.mapping import (
    LOWERCASE_NORMALIZER,
    NAME_ANALYZER,
    base_field_mapping,
    generate_mapping,
)


def _mapping(**document):
    return generate_mapping(DocumentConfig(**document), ElasticsearchConfig(shards=3, replicas=0))


class TestGenerateMapping:
    def test_settings(self):
        settings = _mapping()["settings"]
        assert settings["number_of_shards"] == 3
        assert settings["number_of_replicas"] == 0
        assert NAME_ANALYZER in settings["analysis"]["analyzer"]
        assert LOWERCASE_NORMALIZER in settings["analysis"]["normalizer"]

    def test_column_types(self):
        props = _mapping()["mappings"]["properties"]
        assert props["token_id"] == {"type": "keyword"}
        assert props["price"] == {"type": "double"}
        assert props["is_shown"] == {"type": "boolean"}
        assert props["name"]["analyzer"] == NAME_ANALYZER
        assert props["name"]["fields"]["keyword"] == {"type": "keyword"}

    def test_unindexed_fields(self):
        props = _mapping()["mappings"]["properties"]
        assert props["image"] == {"type": "keyword", "index": False}
        assert props["description"] == {"type": "text", "index": False}

    def test_metadata_objects(self):
        mappings = _mapping()["mappings"]
        assert mappings["dynamic"] is False
        assert mappings["properties"]["properties"] == {"type": "object", "dynamic": True}
        assert mappings["properties"]["raw_metadata"] == {"type": "object", "enabled": False}

    def test_extracted_fields(self):
        collection = CollectionDef(
            address="0x1",
            extracted_fields=[
                ExtractedField(name="rarity", source_key="rarity"),
                ExtractedField(name="level", source_key="level", type=FieldType.INTEGER),
                ExtractedField(name="owner", source_key="owner"),
            ],
        )
        props = _mapping(collections=[collection])["mappings"]["properties"]
        assert props["rarity"] == {"type": "keyword", "normalizer": LOWERCASE_NORMALIZER}
        assert props["level"] == {"type": "integer"}
        # Columns keep their own mapping when an extracted field shares the name.
        assert props["owner"] == {"type": "keyword"}


def test_base_field_mapping_numeric():
    assert base_field_mapping(FieldType.LONG) == {"type": "long"}
