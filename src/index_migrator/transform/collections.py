"""Collection-specific field extraction from metadata properties."""

from __future__ import annotations

from typing import Any

from index_migrator.config.schema import CollectionDef, FieldType


class CollectionRegistry:
    """Looks up extraction rules by collection address (case-insensitive)."""

    def __init__(self, collections: list[CollectionDef]) -> None:
        self._by_address = {c.address.lower(): c for c in collections}

    def __len__(self) -> int:
        return len(self._by_address)

    def get(self, address: str | None) -> CollectionDef | None:
        if not address:
            return None
        return self._by_address.get(address.strip().lower())


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def extract_typed_value(value: Any, field_type: FieldType) -> Any:
    """Convert a JSON property value to *field_type*, or ``None``.

    Integers accept numbers and numeric strings. Keywords are lower-cased
    strings (numbers are stringified). Text keeps strings as they are.
    """
    if field_type in (FieldType.INTEGER, FieldType.LONG):
        return _as_int(value)
    if field_type == FieldType.DOUBLE:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                return None
        return None
    if field_type == FieldType.BOOLEAN:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        return None
    if isinstance(value, str):
        return value.lower() if field_type == FieldType.KEYWORD else value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def extract_collection_fields(properties: dict[str, Any], collection: CollectionDef) -> dict[str, Any]:
    extracted: dict[str, Any] = {}
    for field in collection.extracted_fields:
        if field.source_key not in properties:
            continue
        typed = extract_typed_value(properties[field.source_key], field.type)
        if typed is not None:
            extracted[field.name] = typed
    return extracted
