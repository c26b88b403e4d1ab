"""Chroma adapter. Local persistent, HTTP or ephemeral client."""

import logging
from typing import Any, AsyncIterator, Optional, Sequence

from ..exceptions import CollectionError, NotFoundError
from ..filters import ChromaFilterTranslator
from ..types import (
    CollectionStats,
    DistanceMetric,
    MetadataUpdate,
    SearchResult,
    VectorRecord,
)
from .base import FilterInput, VectorDBAdapter

logger = logging.getLogger(__name__)

_METRIC_TO_SPACE = {
    DistanceMetric.COSINE: "cosine",
    DistanceMetric.EUCLIDEAN: "l2",
    DistanceMetric.DOT: "ip",
}
_SPACE_TO_METRIC = {space: metric for metric, space in _METRIC_TO_SPACE.items()}
DIMENSION_KEY = "dimension"
SPACE_KEY = "hnsw:space"


def _score(space: str, distance: float) -> float:
    # l2 distances are squared and unbounded; cosine and ip are 1 - similarity
    if space == "l2":
        return 1.0 / (1.0 + distance)
    return 1.0 - distance


def _present(metadata: Optional[dict[str, Any]]) -> dict[str, Any]:
    return {k: v for k, v in (metadata or {}).items() if v is not None}


class ChromaAdapter(VectorDBAdapter):
    """Adapter for ChromaDB.

    Client selection: ``client`` if given, else an HTTP client when ``host`` is
    set, else a persistent client at ``persist_directory``, else an ephemeral
    in-memory client.
    """

    name = "chroma"
    max_batch_size = 1000

    def __init__(
        self,
        persist_directory: Optional[str] = None,
        host: Optional[str] = None,
        port: int = 8000,
        client: Any = None,
    ):
        super().__init__()
        self._persist_directory = persist_directory
        self._host = host
        self._port = port
        self._client = client

    async def _connect(self) -> None:
        if self._client is None:
            self._client = await self._run_in_thread(self._create_client)
        with self._backend_call("connect"):
            await self._run_in_thread(self._client.heartbeat)

    def _create_client(self) -> Any:
        try:
            import chromadb
        except ImportError as e:
            raise ImportError("Chroma backend requires: pip install chromadb") from e
        if self._host:
            return chromadb.HttpClient(host=self._host, port=self._port)
        if self._persist_directory:
            return chromadb.PersistentClient(path=self._persist_directory)
        return chromadb.EphemeralClient()

    async def _collection(self, name: str, operation: str) -> Any:
        with self._backend_call(operation, name, CollectionError):
            return await self._run_in_thread(self._client.get_collection, name)

    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        self._require_connected()
        metric = DistanceMetric(metric)
        if await self.collection_exists(name):
            existing = (await self._collection(name, "create collection")).metadata or {}
            if existing.get(DIMENSION_KEY) not in (None, dimension) or existing.get(SPACE_KEY) not in (
                None,
                _METRIC_TO_SPACE[metric],
            ):
                raise CollectionError(
                    "create collection",
                    name,
                    message=f"exists with dimension={existing.get(DIMENSION_KEY)} space={existing.get(SPACE_KEY)}",
                )
            return
        with self._backend_call("create collection", name, CollectionError):
            await self._run_in_thread(
                self._client.create_collection,
                name=name,
                metadata={SPACE_KEY: _METRIC_TO_SPACE[metric], DIMENSION_KEY: dimension},
            )
        logger.info("Created collection %s (dimension=%s, metric=%s)", name, dimension, metric.value)

    async def delete_collection(self, name: str) -> None:
        self._require_connected()
        with self._backend_call("delete collection", name, CollectionError):
            await self._run_in_thread(self._client.delete_collection, name)

    async def collection_exists(self, name: str) -> bool:
        self._require_connected()
        with self._backend_call("list collections", name, CollectionError):
            collections = await self._run_in_thread(self._client.list_collections)
        # Newer clients return names, older ones Collection objects
        names = {c if isinstance(c, str) else c.name for c in collections}
        return name in names

    async def get_collection_stats(self, name: str) -> CollectionStats:
        self._require_connected()
        col = await self._collection(name, "describe collection")
        with self._backend_call("describe collection", name, CollectionError):
            count = await self._run_in_thread(col.count)
        metadata = col.metadata or {}
        return CollectionStats(
            vector_count=count,
            dimension=int(metadata.get(DIMENSION_KEY, 0)),
            metric=_SPACE_TO_METRIC.get(metadata.get(SPACE_KEY, "l2"), DistanceMetric.EUCLIDEAN),
        )

    async def upsert(self, collection: str, records: Sequence[VectorRecord]) -> None:
        self._require_connected()
        col = await self._collection(collection, "upsert")
        for batch in self._batches(records):
            with self._backend_call("upsert", collection):
                existing = await self._run_in_thread(
                    col.get, ids=[r.id for r in batch], include=["metadatas"]
                )
            stored = dict(zip(existing["ids"], existing["metadatas"] or []))
            # Chroma merges metadata of existing ids on upsert; stale keys are cleared with None
            metadatas = {
                r.id: {**{k: None for k in stored.get(r.id) or {}}, **r.metadata}
                for r in batch
            }
            # Chroma rejects empty metadata dicts, so those go without metadatas
            with_meta = [r for r in batch if metadatas[r.id]]
            without_meta = [r for r in batch if not metadatas[r.id]]
            with self._backend_call("upsert", collection):
                if with_meta:
                    await self._run_in_thread(
                        col.upsert,
                        ids=[r.id for r in with_meta],
                        embeddings=[list(r.embedding) for r in with_meta],
                        metadatas=[metadatas[r.id] for r in with_meta],
                    )
                if without_meta:
                    await self._run_in_thread(
                        col.upsert,
                        ids=[r.id for r in without_meta],
                        embeddings=[list(r.embedding) for r in without_meta],
                    )
            logger.debug("Upserted %s records into %s", len(batch), collection)

    async def fetch(self, collection: str, ids: Sequence[str]) -> list[VectorRecord]:
        self._require_connected()
        if not ids:
            return []
        col = await self._collection(collection, "fetch")
        with self._backend_call("fetch", collection):
            response = await self._run_in_thread(
                col.get, ids=list(ids), include=["embeddings", "metadatas"]
            )
        by_id = {r.id: r for r in self._records(response)}
        return [by_id[i] for i in ids if i in by_id]

    async def delete(self, collection: str, ids: Sequence[str]) -> None:
        self._require_connected()
        if not ids:
            return
        col = await self._collection(collection, "delete")
        with self._backend_call("delete", collection):
            await self._run_in_thread(col.delete, ids=list(ids))

    async def update_metadata(self, collection: str, updates: Sequence[MetadataUpdate]) -> None:
        self._require_connected()
        if not updates:
            return
        col = await self._collection(collection, "update metadata")
        ids = [u.id for u in updates]
        with self._backend_call("update metadata", collection):
            response = await self._run_in_thread(col.get, ids=ids, include=["metadatas"])
        stored = dict(zip(response["ids"], response["metadatas"] or []))
        missing = [i for i in ids if i not in stored]
        if missing:
            raise NotFoundError("update metadata", collection, missing)
        merged: dict[str, dict[str, Any]] = {}
        for update in updates:
            base = merged.get(update.id) or dict(stored[update.id] or {})
            merged[update.id] = {**base, **update.metadata}
        with self._backend_call("update metadata", collection):
            await self._run_in_thread(
                col.update, ids=list(merged), metadatas=list(merged.values())
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
        where = ChromaFilterTranslator.translate(prepared) if prepared is not None else None
        col = await self._collection(collection, "search")
        space = (col.metadata or {}).get(SPACE_KEY, "l2")
        include = ["metadatas", "distances"]
        if include_values:
            include.append("embeddings")
        with self._backend_call("search", collection):
            response = await self._run_in_thread(
                col.query,
                query_embeddings=[list(query_vector)],
                n_results=top_k,
                where=where,
                include=include,
            )
        ids = response["ids"][0] if response["ids"] else []
        distances = response["distances"][0] if response.get("distances") is not None else []
        metadatas = response["metadatas"][0] if response.get("metadatas") is not None else []
        embeddings = response["embeddings"][0] if response.get("embeddings") is not None else None
        records = []
        for i, record_id in enumerate(ids):
            records.append(VectorRecord(
                id=record_id,
                embedding=[float(v) for v in embeddings[i]] if embeddings is not None else [],
                metadata=_present(metadatas[i]) if include_metadata and metadatas else {},
                score=_score(space, float(distances[i])),
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
        where = ChromaFilterTranslator.translate(prepared) if prepared is not None else None
        col = await self._collection(collection, "iterate")
        # Chroma has no id range queries: snapshot matching ids, then page by sorted id
        with self._backend_call("iterate", collection):
            response = await self._run_in_thread(col.get, where=where, include=[])
        ids = sorted(response["ids"])
        for batch_ids in self._batches(ids, batch_size):
            with self._backend_call("iterate", collection):
                page = await self._run_in_thread(
                    col.get, ids=batch_ids, include=["embeddings", "metadatas"]
                )
            by_id = {r.id: r for r in self._records(page)}
            batch = [by_id[i] for i in batch_ids if i in by_id]
            if batch:
                yield batch

    @staticmethod
    def _records(response: dict[str, Any]) -> list[VectorRecord]:
        ids = response["ids"]
        embeddings = response.get("embeddings")
        metadatas = response.get("metadatas")
        records = []
        for i, record_id in enumerate(ids):
            records.append(VectorRecord(
                id=record_id,
                embedding=[float(v) for v in embeddings[i]] if embeddings is not None else [],
                metadata=_present(metadatas[i]) if metadatas is not None else {},
            ))
        return records
