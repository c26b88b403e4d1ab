"""In-process vector store.

Useful for tests, notebooks and small corpora. Similarity is computed with
plain Python math; filters use the reference evaluator.
"""

import copy
import logging
import math
from dataclasses import dataclass, field
from typing import AsyncIterator, Sequence

from ..exceptions import BackendError, CollectionError, NotFoundError
from ..filters import matches
from ..types import (
    CollectionStats,
    DistanceMetric,
    MetadataUpdate,
    SearchResult,
    VectorRecord,
)
from .base import FilterInput, VectorDBAdapter

logger = logging.getLogger(__name__)


@dataclass
class _Collection:
    dimension: int
    metric: DistanceMetric
    records: dict[str, VectorRecord] = field(default_factory=dict)


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return sum(x * y for x, y in zip(a, b))


def similarity(metric: DistanceMetric, a: Sequence[float], b: Sequence[float]) -> float:
    """Higher is more similar for every metric."""
    if metric is DistanceMetric.DOT:
        return _dot(a, b)
    if metric is DistanceMetric.EUCLIDEAN:
        return 1.0 / (1.0 + math.dist(a, b))
    norm = math.sqrt(_dot(a, a)) * math.sqrt(_dot(b, b))
    return _dot(a, b) / norm if norm else 0.0


class InMemoryAdapter(VectorDBAdapter):
    """Vector store kept in a dict; state is lost on process exit."""

    name = "memory"
    max_batch_size = 1000

    def __init__(self) -> None:
        super().__init__()
        self._collections: dict[str, _Collection] = {}

    async def _connect(self) -> None:
        return None

    def _get(self, name: str, operation: str) -> _Collection:
        try:
            return self._collections[name]
        except KeyError:
            raise CollectionError(operation, name, message="collection does not exist") from None

    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        self._require_connected()
        metric = DistanceMetric(metric)
        if dimension <= 0:
            raise CollectionError("create collection", name, message=f"invalid dimension {dimension}")
        existing = self._collections.get(name)
        if existing is not None:
            if (existing.dimension, existing.metric) != (dimension, metric):
                raise CollectionError(
                    "create collection",
                    name,
                    message=f"exists with dimension={existing.dimension} metric={existing.metric.value}",
                )
            return
        self._collections[name] = _Collection(dimension=dimension, metric=metric)
        logger.info("Created collection %s (dimension=%s, metric=%s)", name, dimension, metric.value)

    async def delete_collection(self, name: str) -> None:
        self._require_connected()
        self._get(name, "delete collection")
        del self._collections[name]

    async def collection_exists(self, name: str) -> bool:
        self._require_connected()
        return name in self._collections

    async def get_collection_stats(self, name: str) -> CollectionStats:
        self._require_connected()
        col = self._get(name, "describe collection")
        return CollectionStats(vector_count=len(col.records), dimension=col.dimension, metric=col.metric)

    async def upsert(self, collection: str, records: Sequence[VectorRecord]) -> None:
        self._require_connected()
        col = self._get(collection, "upsert")
        for record in records:
            if len(record.embedding) != col.dimension:
                raise BackendError(
                    "upsert",
                    collection,
                    message=f"record {record.id} has dimension {len(record.embedding)}, expected {col.dimension}",
                )
        for record in records:
            col.records[record.id] = VectorRecord(
                id=record.id,
                embedding=[float(v) for v in record.embedding],
                metadata=copy.deepcopy(record.metadata),
            )

    async def fetch(self, collection: str, ids: Sequence[str]) -> list[VectorRecord]:
        self._require_connected()
        col = self._get(collection, "fetch")
        return [self._copy(col.records[i]) for i in ids if i in col.records]

    async def delete(self, collection: str, ids: Sequence[str]) -> None:
        self._require_connected()
        col = self._get(collection, "delete")
        for record_id in ids:
            col.records.pop(record_id, None)

    async def update_metadata(self, collection: str, updates: Sequence[MetadataUpdate]) -> None:
        self._require_connected()
        col = self._get(collection, "update metadata")
        missing = [u.id for u in updates if u.id not in col.records]
        if missing:
            raise NotFoundError("update metadata", collection, missing)
        for update in updates:
            col.records[update.id].metadata.update(copy.deepcopy(update.metadata))

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
        col = self._get(collection, "search")
        prepared = self._prepare_filter(filter)
        hits = []
        for record in col.records.values():
            if not matches(prepared, record.metadata):
                continue
            hit = self._copy(record)
            hit.score = similarity(col.metric, query_vector, record.embedding)
            if not include_metadata:
                hit.metadata = {}
            if not include_values:
                hit.embedding = []
            hits.append(hit)
        return self._rank(hits, top_k)

    async def iterate(
        self,
        collection: str,
        batch_size: int = 100,
        filter: FilterInput = None,
    ) -> AsyncIterator[list[VectorRecord]]:
        self._require_connected()
        batch_size = self._page_size(batch_size)
        col = self._get(collection, "iterate")
        prepared = self._prepare_filter(filter)
        last_id = None
        while True:
            # Ids at or below the cursor are never revisited
            candidates = sorted(
                rid for rid, rec in col.records.items()
                if (last_id is None or rid > last_id) and matches(prepared, rec.metadata)
            )
            batch = [self._copy(col.records[rid]) for rid in candidates[:batch_size]]
            if not batch:
                return
            yield batch
            last_id = batch[-1].id

    @staticmethod
    def _copy(record: VectorRecord) -> VectorRecord:
        return VectorRecord(
            id=record.id,
            embedding=list(record.embedding),
            metadata=copy.deepcopy(record.metadata),
        )
