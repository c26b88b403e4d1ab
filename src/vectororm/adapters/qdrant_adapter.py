"""Qdrant adapter using the native async client."""

import logging
import uuid
from typing import Any, AsyncIterator, Optional, Sequence

from ..exceptions import CollectionError, NotFoundError
from ..filters import QdrantFilterTranslator
from ..types import (
    CollectionStats,
    DistanceMetric,
    MetadataUpdate,
    SearchResult,
    VectorRecord,
)
from .base import FilterInput, VectorDBAdapter

logger = logging.getLogger(__name__)

# Qdrant point ids must be unsigned ints or UUIDs; the record id lives in the payload
RECORD_ID_KEY = "__record_id"
_ID_NAMESPACE = uuid.UUID("6f1d2c1e-8d8a-4f55-9d0e-5b1a4f3c2e10")


def point_id(record_id: str) -> str:
    return str(uuid.uuid5(_ID_NAMESPACE, record_id))


class QdrantAdapter(VectorDBAdapter):
    """Adapter for Qdrant.

    ``url=":memory:"`` runs an in-process instance that lives until disconnect.
    """

    name = "qdrant"
    max_batch_size = 256

    def __init__(
        self,
        url: str = "http://localhost:6333",
        api_key: Optional[str] = None,
        client: Any = None,
    ):
        super().__init__()
        self._url = url
        self._api_key = api_key
        self._client = client
        # Injected clients belong to the caller and stay open on disconnect
        self._owns_client = client is None
        self._metrics: dict[str, DistanceMetric] = {}

    async def _connect(self) -> None:
        if self._client is None:
            try:
                from qdrant_client import AsyncQdrantClient
            except ImportError as e:
                raise ImportError("Qdrant backend requires: pip install qdrant-client") from e
            if self._url == ":memory:":
                self._client = AsyncQdrantClient(location=":memory:")
            else:
                self._client = AsyncQdrantClient(url=self._url, api_key=self._api_key)
        with self._backend_call("connect"):
            await self._client.get_collections()

    async def _disconnect(self) -> None:
        if not self._owns_client:
            return
        # Closing drops an in-process ":memory:" instance with its data
        client, self._client = self._client, None
        self._metrics.clear()
        with self._backend_call("disconnect"):
            await client.close()

    @staticmethod
    def _distances() -> dict[DistanceMetric, Any]:
        from qdrant_client.models import Distance

        return {
            DistanceMetric.COSINE: Distance.COSINE,
            DistanceMetric.EUCLIDEAN: Distance.EUCLID,
            DistanceMetric.DOT: Distance.DOT,
        }

    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        self._require_connected()
        from qdrant_client.models import VectorParams

        metric = DistanceMetric(metric)
        with self._backend_call("create collection", name, CollectionError):
            exists = await self._client.collection_exists(name)
        if exists:
            existing = await self._describe(name)
            if existing != (dimension, metric):
                raise CollectionError(
                    "create collection",
                    name,
                    message=f"exists with dimension={existing[0]} metric={existing[1].value}",
                )
            return
        with self._backend_call("create collection", name, CollectionError):
            await self._client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(size=dimension, distance=self._distances()[metric]),
            )
        self._metrics[name] = metric
        logger.info("Created collection %s (dimension=%s, metric=%s)", name, dimension, metric.value)

    async def delete_collection(self, name: str) -> None:
        self._require_connected()
        with self._backend_call("delete collection", name, CollectionError):
            await self._client.delete_collection(collection_name=name)
        self._metrics.pop(name, None)

    async def collection_exists(self, name: str) -> bool:
        self._require_connected()
        with self._backend_call("describe collection", name, CollectionError):
            return await self._client.collection_exists(name)

    async def _describe(self, name: str) -> tuple[int, DistanceMetric]:
        with self._backend_call("describe collection", name, CollectionError):
            info = await self._client.get_collection(collection_name=name)
        params = info.config.params.vectors
        by_distance = {v: k for k, v in self._distances().items()}
        metric = by_distance.get(params.distance, DistanceMetric.COSINE)
        self._metrics[name] = metric
        return params.size, metric

    async def get_collection_stats(self, name: str) -> CollectionStats:
        self._require_connected()
        dimension, metric = await self._describe(name)
        with self._backend_call("describe collection", name, CollectionError):
            count = await self._client.count(collection_name=name, exact=True)
        return CollectionStats(vector_count=count.count, dimension=dimension, metric=metric)

    async def upsert(self, collection: str, records: Sequence[VectorRecord]) -> None:
        self._require_connected()
        from qdrant_client.models import PointStruct

        for batch in self._batches(records):
            points = [
                PointStruct(
                    id=point_id(r.id),
                    vector=list(r.embedding),
                    payload={**r.metadata, RECORD_ID_KEY: r.id},
                )
                for r in batch
            ]
            with self._backend_call("upsert", collection):
                await self._client.upsert(collection_name=collection, points=points, wait=True)
            logger.debug("Upserted %s points into %s", len(points), collection)

    async def fetch(self, collection: str, ids: Sequence[str]) -> list[VectorRecord]:
        self._require_connected()
        if not ids:
            return []
        with self._backend_call("fetch", collection):
            points = await self._client.retrieve(
                collection_name=collection,
                ids=[point_id(i) for i in ids],
                with_payload=True,
                with_vectors=True,
            )
        by_id = {r.id: r for r in map(self._record, points)}
        return [by_id[i] for i in ids if i in by_id]

    async def delete(self, collection: str, ids: Sequence[str]) -> None:
        self._require_connected()
        if not ids:
            return
        from qdrant_client.models import PointIdsList

        with self._backend_call("delete", collection):
            await self._client.delete(
                collection_name=collection,
                points_selector=PointIdsList(points=[point_id(i) for i in ids]),
                wait=True,
            )

    async def update_metadata(self, collection: str, updates: Sequence[MetadataUpdate]) -> None:
        self._require_connected()
        if not updates:
            return
        existing = {r.id for r in await self.fetch(collection, [u.id for u in updates])}
        missing = [u.id for u in updates if u.id not in existing]
        if missing:
            raise NotFoundError("update metadata", collection, missing)
        for update in updates:
            # set_payload merges keys into the stored payload
            with self._backend_call("update metadata", collection):
                await self._client.set_payload(
                    collection_name=collection,
                    payload=dict(update.metadata),
                    points=[point_id(update.id)],
                    wait=True,
                )

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
        query_filter = QdrantFilterTranslator.translate(prepared) if prepared is not None else None
        metric = self._metrics.get(collection) or (await self._describe(collection))[1]
        with self._backend_call("search", collection):
            response = await self._client.query_points(
                collection_name=collection,
                query=list(query_vector),
                query_filter=query_filter,
                limit=top_k,
                with_payload=True,
                with_vectors=include_values,
            )
        records = []
        for point in response.points:
            record = self._record(point)
            if not include_metadata:
                record.metadata = {}
            # Euclid scores are distances, smaller is closer
            score = float(point.score)
            record.score = 1.0 / (1.0 + score) if metric is DistanceMetric.EUCLIDEAN else score
            records.append(record)
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
        scroll_filter = QdrantFilterTranslator.translate(prepared) if prepared is not None else None
        offset = None
        while True:
            with self._backend_call("iterate", collection):
                points, offset = await self._client.scroll(
                    collection_name=collection,
                    scroll_filter=scroll_filter,
                    limit=batch_size,
                    offset=offset,
                    with_payload=True,
                    with_vectors=True,
                )
            if points:
                yield [self._record(p) for p in points]
            if offset is None:
                break

    @staticmethod
    def _record(point: Any) -> VectorRecord:
        payload = dict(point.payload or {})
        record_id = payload.pop(RECORD_ID_KEY, str(point.id))
        vector = point.vector
        if isinstance(vector, dict):
            vector = next(iter(vector.values()), [])
        return VectorRecord(
            id=record_id,
            embedding=[float(v) for v in vector or []],
            metadata=payload,
        )
