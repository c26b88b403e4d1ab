"""Vector store adapter contract.

Every backend implements one interface plus three static capability flags.
Callers branch on the flags, never on the adapter class.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, AsyncIterator, Iterator, Optional, Sequence, TypeVar, Union

from ..exceptions import BackendError, NotConnectedError, VectorORMError
from ..filters import FilterTranslator, ShorthandFilter, UniversalFilter
from ..types import (
    CollectionStats,
    DistanceMetric,
    MetadataUpdate,
    SearchResult,
    VectorRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
FilterInput = Union[UniversalFilter, ShorthandFilter, None]


class VectorDBAdapter(ABC):
    """Abstract interface for vector store backends.

    Connection is a two-state machine: ``connect()`` moves to connected,
    ``disconnect()`` back. Every other operation raises ``NotConnectedError``
    while disconnected.

    Example:
        ```python
        async with ChromaAdapter(persist_directory="./data") as adapter:
            await adapter.create_collection("docs", 384)
            await adapter.upsert("docs", records)
            result = await adapter.search("docs", query_vector, top_k=5)
        ```
    """

    name: str = "base"
    supports_metadata_update: bool = True
    supports_filtering: bool = True
    supports_batch_operations: bool = True
    # Largest upsert the backend accepts in one call
    max_batch_size: int = 100

    def __init__(self) -> None:
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        if self._connected:
            return
        await self._connect()
        self._connected = True
        logger.info("Connected to %s", self.name)

    async def disconnect(self) -> None:
        if not self._connected:
            return
        try:
            await self._disconnect()
        finally:
            self._connected = False
            logger.info("Disconnected from %s", self.name)

    async def __aenter__(self) -> "VectorDBAdapter":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    @abstractmethod
    async def _connect(self) -> None:
        ...

    async def _disconnect(self) -> None:
        return None

    # Collections

    @abstractmethod
    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        """Create the collection if it does not exist. Raises CollectionError."""
        ...

    @abstractmethod
    async def delete_collection(self, name: str) -> None:
        ...

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        ...

    @abstractmethod
    async def get_collection_stats(self, name: str) -> CollectionStats:
        ...

    # Records

    @abstractmethod
    async def upsert(self, collection: str, records: Sequence[VectorRecord]) -> None:
        """Insert or replace records by id, split into backend-sized batches."""
        ...

    @abstractmethod
    async def fetch(self, collection: str, ids: Sequence[str]) -> list[VectorRecord]:
        """Return the records that exist; missing ids are omitted."""
        ...

    @abstractmethod
    async def delete(self, collection: str, ids: Sequence[str]) -> None:
        ...

    @abstractmethod
    async def update_metadata(self, collection: str, updates: Sequence[MetadataUpdate]) -> None:
        """Merge each patch into the stored metadata. Raises NotFoundError for missing ids."""
        ...

    @abstractmethod
    async def search(
        self,
        collection: str,
        query_vector: Sequence[float],
        top_k: int = 10,
        filter: FilterInput = None,
        include_metadata: bool = True,
        include_values: bool = False,
    ) -> SearchResult:
        """Return up to ``top_k`` records ordered by descending score."""
        ...

    @abstractmethod
    def iterate(
        self,
        collection: str,
        batch_size: int = 100,
        filter: FilterInput = None,
    ) -> AsyncIterator[list[VectorRecord]]:
        """Yield every matching record exactly once, in batches, ordered by a stable key.

        Each call starts a fresh cursor. A ``batch_size`` below 1 is treated as 1.
        """
        ...

    # Helpers

    def _require_connected(self) -> None:
        if not self._connected:
            raise NotConnectedError(self.name)

    @staticmethod
    def _prepare_filter(filter: FilterInput) -> Optional[UniversalFilter]:
        return FilterTranslator.prepare(filter)

    @staticmethod
    def _page_size(batch_size: int) -> int:
        return max(1, batch_size)

    def _batches(self, items: Sequence[T], size: Optional[int] = None) -> Iterator[list[T]]:
        size = max(1, size or self.max_batch_size)
        for start in range(0, len(items), size):
            yield list(items[start:start + size])

    @staticmethod
    def _rank(records: list[VectorRecord], top_k: int) -> SearchResult:
        ordered = sorted(records, key=lambda r: r.score if r.score is not None else float("-inf"), reverse=True)
        return SearchResult(records=ordered[:top_k])

    @staticmethod
    async def _run_in_thread(func, *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(func, *args, **kwargs)

    @contextmanager
    def _backend_call(
        self,
        operation: str,
        collection: Optional[str] = None,
        error_cls: type[BackendError] = BackendError,
    ) -> Iterator[None]:
        """Wrap SDK failures in ``error_cls``; library errors pass through."""
        try:
            yield
        except VectorORMError:
            raise
        except Exception as exc:
            logger.debug("%s %s failed on %s", self.name, operation, collection, exc_info=True)
            raise error_cls(operation, collection, cause=exc) from exc

    def __repr__(self) -> str:
        state = "connected" if self._connected else "disconnected"
        return f"{type(self).__name__}({state})"
