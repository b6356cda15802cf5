"""Async HTTP client for the target search cluster."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx
import orjson

from index_migrator.config.schema import ElasticsearchConfig
from index_migrator.pipeline.batching import Batch
from index_migrator.search.bulk import build_bulk_body, count_item_errors, item_errors

logger = logging.getLogger(__name__)

NDJSON = "application/x-ndjson"


class StoreUnavailable(Exception):
    """The cluster cannot be reached or reports itself unhealthy."""


class BulkSubmitError(Exception):
    """A bulk request failed as a whole."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class BulkResult:
    submitted: int
    rejected: int = 0

    @property
    def committed(self) -> int:
        return self.submitted - self.rejected


class BulkIndexClient:
    """Wraps ``httpx.AsyncClient`` for health, bulk and index management calls."""

    def __init__(
        self,
        config: ElasticsearchConfig,
        id_field: str = "token_id",
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = config.url.rstrip("/")
        self.index = config.index
        self.id_field = id_field
        self._http = http or httpx.AsyncClient(timeout=config.timeout_secs)

    async def __aenter__(self) -> BulkIndexClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def health(self) -> str:
        response = await self._http.get(self._url("/_cluster/health"))
        response.raise_for_status()
        return orjson.loads(response.content).get("status", "unknown")

    async def check_health(self) -> str:
        try:
            status = await self.health()
        except (httpx.HTTPError, orjson.JSONDecodeError) as exc:
            raise StoreUnavailable(f"search cluster at {self.base_url} is not available: {exc}") from exc
        if status == "red":
            raise StoreUnavailable(f"search cluster at {self.base_url} reports status red")
        logger.info("Search cluster connected (%s, status %s)", self.base_url, status)
        return status

    async def bulk_index(self, documents: Sequence[dict[str, Any]]) -> BulkResult:
        """Index *documents* in one request.

        Documents without an identifier are not sent. Per-document errors
        in an otherwise successful response lower the committed count but
        do not fail the request.
        """
        payload, submitted = build_bulk_body(documents, self.id_field)
        if submitted == 0:
            return BulkResult(submitted=0)

        try:
            response = await self._http.post(
                self._url(f"/{self.index}/_bulk"),
                content=payload,
                headers={"Content-Type": NDJSON},
            )
        except httpx.HTTPError as exc:
            raise BulkSubmitError(f"bulk request failed: {exc}") from exc

        if not response.is_success:
            raise BulkSubmitError(
                f"bulk indexing failed: HTTP {response.status_code} - {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError as exc:
            raise BulkSubmitError(f"unparseable bulk response: {exc}") from exc

        rejected = count_item_errors(body) if body.get("errors") else 0
        if rejected:
            logger.warning(
                "Bulk indexing had %d errors out of %d documents (first: %s)",
                rejected,
                submitted,
                item_errors(body)[0].get("error"),
            )
        return BulkResult(submitted=submitted, rejected=rejected)

    async def submit_batch(self, batch: Batch) -> int:
        result = await self.bulk_index(batch.documents)
        return result.committed

    async def index_exists(self) -> bool:
        response = await self._http.head(self._url(f"/{self.index}"))
        return response.is_success

    async def delete_index(self) -> None:
        response = await self._http.delete(self._url(f"/{self.index}"))
        if response.status_code == 404:
            return
        if not response.is_success:
            raise RuntimeError(f"Failed to delete index {self.index} ({response.status_code}): {response.text}")
        logger.info("Deleted index %s", self.index)

    async def create_index(self, mapping: dict[str, Any]) -> None:
        response = await self._http.put(
            self._url(f"/{self.index}"),
            content=orjson.dumps(mapping),
            headers={"Content-Type": "application/json"},
        )
        if not response.is_success:
            raise RuntimeError(f"Failed to create index {self.index} ({response.status_code}): {response.text}")
        logger.info("Created index %s", self.index)
