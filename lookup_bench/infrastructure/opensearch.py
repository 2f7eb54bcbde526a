"""
OpenSearch connectivity for the hash lookup benchmark.

Provides the async client factory, the fixed `hash_records` index definition,
and the loader backend that bulk-indexes seed documents with refresh disabled.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from opensearchpy import AsyncOpenSearch
from opensearchpy.exceptions import ConnectionError as OpenSearchConnectionError

from lookup_bench.config import Settings, get_settings
from lookup_bench.domain.models import SeedRecord
from lookup_bench.errors import BulkRejectedError
from lookup_bench.utils.logging import get_logger

log = get_logger(__name__)

KEYWORD_FIELD = "hash_keyword"
TEXT_FIELD = "hash_text"

INDEX_MAPPINGS: Dict[str, Any] = {
    "properties": {
        KEYWORD_FIELD: {"type": "keyword"},
        TEXT_FIELD: {"type": "text"},
        "created_at": {"type": "date"},
        "status": {"type": "integer"},
        "metadata": {"type": "object", "enabled": False},
    }
}


def index_body(refresh_interval: str = "-1") -> Dict[str, Any]:
    """Index settings and mappings; refresh is disabled while seeding."""
    return {
        "settings": {
            "number_of_shards": 1,
            "number_of_replicas": 0,
            "refresh_interval": refresh_interval,
        },
        "mappings": INDEX_MAPPINGS,
    }


def build_client(settings: Optional[Settings] = None) -> AsyncOpenSearch:
    """
    Create an async OpenSearch client from settings.

    The caller closes it (`await client.close()`).
    """
    settings = settings or get_settings()
    return AsyncOpenSearch(
        hosts=[settings.opensearch_url],
        timeout=settings.opensearch_timeout,
    )


def bulk_body(index: str, records: Sequence[SeedRecord]) -> List[Dict[str, Any]]:
    """
    Alternating action/source lines for one `_bulk` request.

    Documents are keyed by their hash, so resubmitting a batch overwrites what
    an earlier partial attempt stored instead of adding copies.
    """
    body: List[Dict[str, Any]] = []
    for record in records:
        body.append({"index": {"_index": index, "_id": record.hash}})
        body.append(record.as_document())
    return body


class OpenSearchBulkWriter:
    """
    Loader backend indexing seed documents into `hash_records`.

    A bulk response flagged with `errors` is raised as `BulkRejectedError` so the
    loader resubmits the whole batch.
    """

    name: str = "opensearch"
    transient_errors: Tuple[Type[BaseException], ...] = (
        OpenSearchConnectionError,
        BulkRejectedError,
    )

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self.index = self._settings.opensearch_index
        self._client: Optional[AsyncOpenSearch] = None

    @property
    def client(self) -> AsyncOpenSearch:
        if self._client is None:
            raise RuntimeError("OpenSearchBulkWriter is not connected")
        return self._client

    async def connect(self) -> None:
        self._client = build_client(self._settings)

    async def close(self) -> None:
        if self._client is not None:
            try:
                await self._client.close()
            finally:
                self._client = None

    async def reconnect(self) -> None:
        log.info("[RECONNECT] opensearch", extra={"writer": self.name})
        await self.close()
        await self.connect()

    async def prepare(self) -> None:
        if await self.client.indices.exists(index=self.index):
            log.info(f"[PREPARE] Deleting index {self.index}", extra={"index": self.index})
            await self.client.indices.delete(index=self.index)
        log.info(f"[PREPARE] Creating index {self.index}", extra={"index": self.index})
        await self.client.indices.create(index=self.index, body=index_body())

    async def write_batch(self, records: Sequence[SeedRecord]) -> None:
        response = await self.client.bulk(body=bulk_body(self.index, records), refresh="false")
        if response.get("errors"):
            failed = [
                item for item in response.get("items", [])
                if next(iter(item.values()), {}).get("error")
            ]
            raise BulkRejectedError(
                f"{len(failed)} of {len(records)} documents rejected",
                failed=len(failed),
                sample=failed[:3],
            )

    async def finalize(self) -> None:
        log.info(f"[FINALIZE] Refreshing index {self.index}", extra={"index": self.index})
        await self.client.indices.refresh(index=self.index)
        interval = self._settings.opensearch_refresh_interval
        log.info(
            f"[FINALIZE] Restoring refresh_interval={interval}",
            extra={"index": self.index, "refresh_interval": interval},
        )
        await self.client.indices.put_settings(
            index=self.index, body={"index": {"refresh_interval": interval}}
        )

    async def __aenter__(self) -> "OpenSearchBulkWriter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


__all__ = [
    "KEYWORD_FIELD",
    "TEXT_FIELD",
    "INDEX_MAPPINGS",
    "index_body",
    "build_client",
    "bulk_body",
    "OpenSearchBulkWriter",
]
