"""Turbopuffer adapter over the HTTP API (httpx).

Namespaces are created implicitly on first write and expose no native
metric/dimension description, so both are remembered per adapter instance.
"""

import logging
import re
from typing import Any, AsyncIterator, Optional, Sequence

import httpx

from ..exceptions import APIKeyError, CollectionError, NotFoundError
from ..filters import TurbopufferFilterTranslator
from ..types import (
    CollectionStats,
    DistanceMetric,
    MetadataUpdate,
    SearchResult,
    VectorRecord,
)
from .base import FilterInput, VectorDBAdapter

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.turbopuffer.com"
_METRIC_TO_TURBOPUFFER = {
    DistanceMetric.COSINE: "cosine_distance",
    DistanceMetric.EUCLIDEAN: "euclidean_squared",
}
_RESERVED = ("id", "vector", "$dist")
_INIT_ID = "__vectororm_init__"


def _score(metric: DistanceMetric, distance: float) -> float:
    if metric is DistanceMetric.COSINE:
        return 1.0 - distance
    return 1.0 / (1.0 + distance)


class TurbopufferAdapter(VectorDBAdapter):
    """Adapter for Turbopuffer namespaces. Only cosine and euclidean metrics exist."""

    name = "turbopuffer"
    max_batch_size = 1000

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        if not api_key:
            raise APIKeyError("Turbopuffer", "TURBOPUFFER_API_KEY")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None
        self._namespaces: dict[str, tuple[int, DistanceMetric]] = {}

    async def _connect(self) -> None:
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=self._timeout,
            transport=self._transport,
        )
        try:
            with self._backend_call("connect"):
                await self._request("GET", "/v1/namespaces", params={"page_size": 1})
        except Exception:
            await self._http.aclose()
            self._http = None
            raise

    async def _disconnect(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._http.request(method, path, **kwargs)
        response.raise_for_status()
        return response.json() if response.content else None

    async def _write(self, namespace: str, body: dict[str, Any]) -> None:
        await self._request("POST", f"/v2/namespaces/{namespace}", json=body)

    async def _query(self, namespace: str, body: dict[str, Any]) -> list[dict[str, Any]]:
        result = await self._request("POST", f"/v2/namespaces/{namespace}/query", json=body)
        return (result or {}).get("rows", [])

    def _metric(self, namespace: str) -> DistanceMetric:
        return self._namespaces.get(namespace, (0, DistanceMetric.COSINE))[1]

    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        self._require_connected()
        metric = DistanceMetric(metric)
        if metric not in _METRIC_TO_TURBOPUFFER:
            raise CollectionError(
                "create collection", name, message=f"metric '{metric.value}' is not supported by turbopuffer"
            )
        self._namespaces[name] = (dimension, metric)
        if await self.collection_exists(name):
            return
        # Materialize the namespace with a placeholder row, then remove it
        with self._backend_call("create collection", name, CollectionError):
            await self._write(name, {
                "upsert_rows": [{"id": _INIT_ID, "vector": [0.0] * (dimension - 1) + [1.0]}],
                "distance_metric": _METRIC_TO_TURBOPUFFER[metric],
            })
            await self._write(name, {"deletes": [_INIT_ID]})
        logger.info("Created namespace %s (dimension=%s, metric=%s)", name, dimension, metric.value)

    async def delete_collection(self, name: str) -> None:
        self._require_connected()
        with self._backend_call("delete collection", name, CollectionError):
            await self._request("DELETE", f"/v2/namespaces/{name}")
        self._namespaces.pop(name, None)

    async def collection_exists(self, name: str) -> bool:
        self._require_connected()
        try:
            with self._backend_call("describe collection", name, CollectionError):
                await self._request("GET", f"/v1/namespaces/{name}/metadata")
        except CollectionError as exc:
            if isinstance(exc.cause, httpx.HTTPStatusError) and exc.cause.response.status_code == 404:
                return False
            raise
        return True

    async def get_collection_stats(self, name: str) -> CollectionStats:
        self._require_connected()
        with self._backend_call("describe collection", name, CollectionError):
            metadata = await self._request("GET", f"/v1/namespaces/{name}/metadata") or {}
        dimension, metric = self._namespaces.get(name, (0, DistanceMetric.COSINE))
        if not dimension:
            vector_type = str(((metadata.get("schema") or {}).get("vector") or {}).get("type", ""))
            found = re.match(r"\[(\d+)\]", vector_type)
            dimension = int(found.group(1)) if found else 0
        return CollectionStats(
            vector_count=int(metadata.get("approx_row_count", 0)),
            dimension=dimension,
            metric=metric,
        )

    async def upsert(self, collection: str, records: Sequence[VectorRecord]) -> None:
        self._require_connected()
        metric = _METRIC_TO_TURBOPUFFER[self._metric(collection)]
        for batch in self._batches(records):
            rows = [{**r.metadata, "id": r.id, "vector": list(r.embedding)} for r in batch]
            with self._backend_call("upsert", collection):
                await self._write(collection, {"upsert_rows": rows, "distance_metric": metric})
            logger.debug("Upserted %s rows into %s", len(rows), collection)

    async def fetch(self, collection: str, ids: Sequence[str]) -> list[VectorRecord]:
        self._require_connected()
        if not ids:
            return []
        found: dict[str, VectorRecord] = {}
        for batch_ids in self._batches(ids):
            with self._backend_call("fetch", collection):
                rows = await self._query(collection, {
                    "rank_by": ["id", "asc"],
                    "top_k": len(batch_ids),
                    "filters": ["id", "In", batch_ids],
                    "include_attributes": True,
                })
            for row in rows:
                record = self._record(row)
                found[record.id] = record
        return [found[i] for i in ids if i in found]

    async def delete(self, collection: str, ids: Sequence[str]) -> None:
        self._require_connected()
        for batch_ids in self._batches(ids):
            with self._backend_call("delete", collection):
                await self._write(collection, {"deletes": batch_ids})

    async def update_metadata(self, collection: str, updates: Sequence[MetadataUpdate]) -> None:
        self._require_connected()
        if not updates:
            return
        existing = {r.id: r for r in await self.fetch(collection, [u.id for u in updates])}
        missing = [u.id for u in updates if u.id not in existing]
        if missing:
            raise NotFoundError("update metadata", collection, missing)
        for update in updates:
            existing[update.id].metadata.update(update.metadata)
        await self.upsert(collection, list(existing.values()))

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
        body: dict[str, Any] = {
            "rank_by": ["vector", "ANN", list(query_vector)],
            "top_k": top_k,
            "include_attributes": include_metadata or include_values,
        }
        if prepared is not None:
            body["filters"] = TurbopufferFilterTranslator.translate(prepared)
        with self._backend_call("search", collection):
            rows = await self._query(collection, body)
        metric = self._metric(collection)
        records = []
        for row in rows:
            record = self._record(row)
            record.score = _score(metric, float(row.get("$dist", 0.0)))
            if not include_metadata:
                record.metadata = {}
            if not include_values:
                record.embedding = []
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
        user_filter = TurbopufferFilterTranslator.translate(prepared) if prepared is not None else None
        last_id = None
        while True:
            clauses = []
            if user_filter is not None:
                clauses.append(user_filter)
            if last_id is not None:
                clauses.append(["id", "Gt", last_id])
            body: dict[str, Any] = {
                "rank_by": ["id", "asc"],
                "top_k": batch_size,
                "include_attributes": True,
            }
            if len(clauses) == 1:
                body["filters"] = clauses[0]
            elif clauses:
                body["filters"] = ["And", clauses]
            with self._backend_call("iterate", collection):
                rows = await self._query(collection, body)
            if not rows:
                return
            batch = [self._record(row) for row in rows]
            yield batch
            if len(batch) < batch_size:
                return
            last_id = batch[-1].id

    @staticmethod
    def _record(row: dict[str, Any]) -> VectorRecord:
        return VectorRecord(
            id=str(row["id"]),
            embedding=[float(v) for v in row.get("vector") or []],
            metadata={k: v for k, v in row.items() if k not in _RESERVED and v is not None},
        )
