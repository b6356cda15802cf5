"""NDJSON encoding of bulk index requests and response inspection."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import orjson

_ACTIONS = ("index", "create", "update", "delete")


def document_id(document: dict[str, Any], id_field: str) -> str | None:
    value = document.get(id_field)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_bulk_body(documents: Iterable[dict[str, Any]], id_field: str) -> tuple[bytes, int]:
    """Encode documents as index actions.

    Each document with a non-empty identifier contributes an action line
    and a source line. Documents without one are dropped. Returns the
    payload and the number of documents it carries.
    """
    lines: list[bytes] = []
    count = 0
    for doc in documents:
        doc_id = document_id(doc, id_field)
        if doc_id is None:
            continue
        lines.append(orjson.dumps({"index": {"_id": doc_id}}))
        lines.append(orjson.dumps(doc))
        count += 1
    if not lines:
        return b"", 0
    return b"\n".join(lines) + b"\n", count


def _item_action(item: dict[str, Any]) -> dict[str, Any] | None:
    for key in _ACTIONS:
        action = item.get(key)
        if isinstance(action, dict):
            return action
    return None


def item_errors(response: dict[str, Any]) -> list[dict[str, Any]]:
    """Per-document errors reported in a bulk response."""
    errors: list[dict[str, Any]] = []
    for item in response.get("items") or []:
        if not isinstance(item, dict):
            continue
        action = _item_action(item)
        if action and action.get("error"):
            errors.append(action)
    return errors


def count_item_errors(response: dict[str, Any]) -> int:
    return len(item_errors(response))
