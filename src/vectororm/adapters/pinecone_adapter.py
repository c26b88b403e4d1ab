"""Pinecone adapter (serverless indexes). Each collection is one index."""

import logging
from typing import Any, AsyncIterator, Optional, Sequence

from ..exceptions import APIKeyError, CollectionError, NotFoundError
from ..filters import PineconeFilterTranslator, matches
from ..types import (
    CollectionStats,
    DistanceMetric,
    MetadataUpdate,
    SearchResult,
    VectorRecord,
)
from .base import FilterInput, VectorDBAdapter

logger = logging.getLogger(__name__)

_METRIC_TO_PINECONE = {
    DistanceMetric.COSINE: "cosine",
    DistanceMetric.EUCLIDEAN: "euclidean",
    DistanceMetric.DOT: "dotproduct",
}
_PINECONE_TO_METRIC = {v: k for k, v in _METRIC_TO_PINECONE.items()}


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a response field from either an SDK model or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class PineconeAdapter(VectorDBAdapter):
    """Adapter for Pinecone.

    Metadata filters run server side for search. Iteration lists ids with
    ``list_paginated`` and evaluates filters client side, since listing does
    not accept metadata filters.
    """

    name = "pinecone"
    max_batch_size = 100

    def __init__(
        self,
        api_key: Optional[str] = None,
        cloud: str = "aws",
        region: str = "us-east-1",
        client: Any = None,
    ):
        super().__init__()
        if client is None and not api_key:
            raise APIKeyError("Pinecone", "PINECONE_API_KEY")
        self._api_key = api_key
        self._cloud = cloud
        self._region = region
        self._client = client
        self._indexes: dict[str, Any] = {}
        self._metrics: dict[str, DistanceMetric] = {}

    async def _connect(self) -> None:
        if self._client is None:
            try:
                from pinecone import Pinecone
            except ImportError as e:
                raise ImportError("Pinecone backend requires: pip install pinecone") from e
            self._client = Pinecone(api_key=self._api_key)
        with self._backend_call("connect"):
            await self._run_in_thread(self._client.list_indexes)

    async def _disconnect(self) -> None:
        self._indexes.clear()

    def _index(self, name: str) -> Any:
        if name not in self._indexes:
            self._indexes[name] = self._client.Index(name)
        return self._indexes[name]

    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        self._require_connected()
        metric = DistanceMetric(metric)
        with self._backend_call("create collection", name, CollectionError):
            if await self._run_in_thread(self._client.has_index, name):
                description = await self._run_in_thread(self._client.describe_index, name)
                existing = (_field(description, "dimension"), _field(description, "metric"))
                if existing != (dimension, _METRIC_TO_PINECONE[metric]):
                    raise CollectionError(
                        "create collection",
                        name,
                        message=f"exists with dimension={existing[0]} metric={existing[1]}",
                    )
                return
            from pinecone import ServerlessSpec

            await self._run_in_thread(
                self._client.create_index,
                name=name,
                dimension=dimension,
                metric=_METRIC_TO_PINECONE[metric],
                spec=ServerlessSpec(cloud=self._cloud, region=self._region),
            )
        self._metrics[name] = metric
        logger.info("Created index %s (dimension=%s, metric=%s)", name, dimension, metric.value)

    async def delete_collection(self, name: str) -> None:
        self._require_connected()
        with self._backend_call("delete collection", name, CollectionError):
            await self._run_in_thread(self._client.delete_index, name)
        self._indexes.pop(name, None)
        self._metrics.pop(name, None)

    async def collection_exists(self, name: str) -> bool:
        self._require_connected()
        with self._backend_call("describe collection", name, CollectionError):
            return bool(await self._run_in_thread(self._client.has_index, name))

    async def _metric(self, name: str) -> DistanceMetric:
        if name not in self._metrics:
            with self._backend_call("describe collection", name, CollectionError):
                description = await self._run_in_thread(self._client.describe_index, name)
            self._metrics[name] = _PINECONE_TO_METRIC.get(_field(description, "metric"), DistanceMetric.COSINE)
        return self._metrics[name]

    async def get_collection_stats(self, name: str) -> CollectionStats:
        self._require_connected()
        with self._backend_call("describe collection", name, CollectionError):
            description = await self._run_in_thread(self._client.describe_index, name)
            stats = await self._run_in_thread(self._index(name).describe_index_stats)
        metric = _PINECONE_TO_METRIC.get(_field(description, "metric"), DistanceMetric.COSINE)
        self._metrics[name] = metric
        return CollectionStats(
            vector_count=int(_field(stats, "total_vector_count", 0) or 0),
            dimension=int(_field(description, "dimension", 0) or 0),
            metric=metric,
        )

    async def upsert(self, collection: str, records: Sequence[VectorRecord]) -> None:
        self._require_connected()
        index = self._index(collection)
        for batch in self._batches(records):
            vectors = []
            for record in batch:
                vector: dict[str, Any] = {"id": record.id, "values": list(record.embedding)}
                if record.metadata:
                    vector["metadata"] = dict(record.metadata)
                vectors.append(vector)
            with self._backend_call("upsert", collection):
                await self._run_in_thread(index.upsert, vectors=vectors)
            logger.debug("Upserted %s vectors into %s", len(vectors), collection)

    async def fetch(self, collection: str, ids: Sequence[str]) -> list[VectorRecord]:
        self._require_connected()
        if not ids:
            return []
        index = self._index(collection)
        found: dict[str, VectorRecord] = {}
        for batch_ids in self._batches(ids):
            with self._backend_call("fetch", collection):
                response = await self._run_in_thread(index.fetch, ids=batch_ids)
            for record_id, vector in (_field(response, "vectors") or {}).items():
                found[record_id] = VectorRecord(
                    id=record_id,
                    embedding=list(_field(vector, "values") or []),
                    metadata=dict(_field(vector, "metadata") or {}),
                )
        return [found[i] for i in ids if i in found]

    async def delete(self, collection: str, ids: Sequence[str]) -> None:
        self._require_connected()
        index = self._index(collection)
        for batch_ids in self._batches(ids, 1000):
            with self._backend_call("delete", collection):
                await self._run_in_thread(index.delete, ids=batch_ids)

    async def update_metadata(self, collection: str, updates: Sequence[MetadataUpdate]) -> None:
        self._require_connected()
        if not updates:
            return
        existing = {r.id for r in await self.fetch(collection, [u.id for u in updates])}
        missing = [u.id for u in updates if u.id not in existing]
        if missing:
            raise NotFoundError("update metadata", collection, missing)
        index = self._index(collection)
        for update in updates:
            # set_metadata merges into the stored metadata
            with self._backend_call("update metadata", collection):
                await self._run_in_thread(index.update, id=update.id, set_metadata=dict(update.metadata))

    async def search(
        self,
        collection: str,
        query_vector: Sequence[float],
        top_k: int = 10,
        filter: FilterInput = None,
        include_metadata: bool = True,
        include_values: bool = False,
    ) -> SearchResult:
        self._require_connected()
        prepared = self._prepare_filter(filter)
        kwargs: dict[str, Any] = {
            "vector": list(query_vector),
            "top_k": top_k,
            "include_metadata": include_metadata,
            "include_values": include_values,
        }
        if prepared is not None:
            kwargs["filter"] = PineconeFilterTranslator.translate(prepared)
        metric = await self._metric(collection)
        with self._backend_call("search", collection):
            response = await self._run_in_thread(self._index(collection).query, **kwargs)
        records = []
        for match in _field(response, "matches") or []:
            score = float(_field(match, "score", 0.0))
            if metric is DistanceMetric.EUCLIDEAN:
                # Pinecone reports squared distance for euclidean indexes
                score = 1.0 / (1.0 + score)
            records.append(VectorRecord(
                id=_field(match, "id"),
                embedding=list(_field(match, "values") or []),
                metadata=dict(_field(match, "metadata") or {}),
                score=score,
            ))
        return self._rank(records, top_k)

    async def iterate(
        self,
        collection: str,
        batch_size: int = 100,
        filter: FilterInput = None,
    ) -> AsyncIterator[list[VectorRecord]]:
        self._require_connected()
        batch_size = self._page_size(batch_size)
        prepared = self._prepare_filter(filter)
        index = self._index(collection)
        buffer: list[VectorRecord] = []
        token = None
        while True:
            kwargs: dict[str, Any] = {"limit": batch_size}
            if token:
                kwargs["pagination_token"] = token
            with self._backend_call("iterate", collection):
                page = await self._run_in_thread(index.list_paginated, **kwargs)
            ids = sorted(_field(v, "id") for v in _field(page, "vectors") or [])
            if ids:
                records = await self.fetch(collection, ids)
                buffer.extend(r for r in records if matches(prepared, r.metadata))
            while len(buffer) >= batch_size:
                yield buffer[:batch_size]
                buffer = buffer[batch_size:]
            pagination = _field(page, "pagination")
            token = _field(pagination, "next") if pagination else None
            if not token:
                break
        if buffer:
            yield buffer
