"""RAGClient: one object for collections, ingestion, enrichment, retrieval and answering."""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from ..adapters.base import FilterInput, VectorDBAdapter
from ..embeddings.base import Embedder
from ..enrichment.pipeline import EnrichmentAllConfig, EnrichmentPipeline
from ..exceptions import ConfigurationError
from ..ingestion.documents import LoaderRegistry
from ..ingestion.pipeline import IngestionConfig, IngestionPipeline
from ..llm.base import GenerateOptions, LLMClient
from ..types import CollectionStats, DistanceMetric, EnrichmentStats, IngestionStats, VectorRecord
from .composer import DEFAULT_TOP_K, RAGQueryComposer, RetrievalResult

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Answer the question based on the provided context. "
    "If the context doesn't contain enough information, say so."
)


@dataclass
class RAGResponse:
    query: str
    answer: str
    sources: list[VectorRecord]
    retrieval: RetrievalResult


def build_prompt(question: str, context: Sequence[str], system_prompt: str = DEFAULT_SYSTEM_PROMPT) -> str:
    joined = "\n\n".join(context)
    return f"{system_prompt}\n\nContext:\n{joined}\n\nQuestion: {question}\n\nAnswer:"


class RAGClient:
    """Facade over an adapter, an embedder and (optionally) an LLM.

    Example:
        ```python
        async with ChromaAdapter(persist_directory="./data/chroma") as adapter:
            client = RAGClient(adapter, embedder, llm=llm, default_collection="docs")
            await client.create_collection("docs")
            await client.ingest(["handbook.pdf"])
            response = await client.query("What is the leave policy?", theme="hr")
            print(response.answer)
        ```
    """

    def __init__(
        self,
        adapter: VectorDBAdapter,
        embedder: Embedder,
        llm: Optional[LLMClient] = None,
        default_collection: Optional[str] = None,
        default_top_k: int = DEFAULT_TOP_K,
        loaders: Optional[LoaderRegistry] = None,
    ):
        self.adapter = adapter
        self.embedder = embedder
        self.llm = llm
        self.default_collection = default_collection
        self.default_top_k = default_top_k
        self.composer = RAGQueryComposer(adapter, embedder)
        self.ingestion = IngestionPipeline(adapter, embedder, loaders=loaders)
        self.enrichment = EnrichmentPipeline(adapter)

    def _collection(self, collection: Optional[str]) -> str:
        name = collection or self.default_collection
        if not name:
            raise ConfigurationError(
                "default_collection",
                "No collection specified. Pass a collection name or set default_collection.",
            )
        return name

    # Collections

    async def create_collection(
        self,
        name: Optional[str] = None,
        dimension: Optional[int] = None,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        """Create a collection; ``dimension`` defaults to the embedder's."""
        await self.adapter.create_collection(
            self._collection(name), dimension or self.embedder.dimensions, metric
        )

    async def delete_collection(self, name: Optional[str] = None) -> None:
        await self.adapter.delete_collection(self._collection(name))

    async def collection_exists(self, name: Optional[str] = None) -> bool:
        return await self.adapter.collection_exists(self._collection(name))

    async def get_collection_stats(self, name: Optional[str] = None) -> CollectionStats:
        return await self.adapter.get_collection_stats(self._collection(name))

    # Ingestion / enrichment

    async def ingest(
        self,
        sources: Union[str, Sequence[str]],
        collection: Optional[str] = None,
        config: Optional[IngestionConfig] = None,
    ) -> IngestionStats:
        if isinstance(sources, str):
            sources = [sources]
        return await self.ingestion.ingest(list(sources), self._collection(collection), config)

    async def enrich(self, collection: Optional[str], config: EnrichmentAllConfig) -> EnrichmentStats:
        return await self.enrichment.enrich_all(self._collection(collection), config)

    # Retrieval

    async def retrieve(
        self,
        query: str,
        collection: Optional[str] = None,
        top_k: Optional[int] = None,
        filter: FilterInput = None,
        partition: Optional[str] = None,
        theme: Optional[str] = None,
        group_by: Optional[str] = None,
    ) -> RetrievalResult:
        """Similarity search with optional partition / theme scoping.

        Args:
            query: Text to embed and search for
            collection: Defaults to ``default_collection``
            top_k: Defaults to ``default_top_k``
            filter: Extra filter ANDed with the shorthands
            partition: Only records whose ``__v_partition`` equals this
            theme: Only records whose ``__h_theme`` equals this
            group_by: ``"document"`` or ``"theme"`` to group the results
        """
        kwargs = dict(
            top_k=top_k or self.default_top_k,
            vertical_filters=self.composer.vertical_filter(partition=partition),
            horizontal_filters=self.composer.horizontal_filter(theme=theme),
            custom_filters=filter,
        )
        name = self._collection(collection)
        if group_by:
            return await self.composer.retrieve_grouped(group_by, query, name, **kwargs)
        return await self.composer.retrieve(query, name, **kwargs)

    async def query(
        self,
        question: str,
        collection: Optional[str] = None,
        top_k: Optional[int] = None,
        system_prompt: Optional[str] = None,
        filter: FilterInput = None,
        theme: Optional[str] = None,
        partition: Optional[str] = None,
        options: Optional[GenerateOptions] = None,
    ) -> RAGResponse:
        """Retrieve context for ``question`` and ask the LLM to answer it.

        Raises:
            ConfigurationError: If the client was built without an LLM
        """
        if self.llm is None:
            raise ConfigurationError("llm", "RAGClient.query() requires an LLM client.")
        retrieval = await self.retrieve(
            question,
            collection=collection,
            top_k=top_k,
            filter=filter,
            partition=partition,
            theme=theme,
        )
        prompt = build_prompt(question, retrieval.texts, system_prompt or DEFAULT_SYSTEM_PROMPT)
        answer = await self.llm.generate(prompt, options)
        logger.info("Answered query with %s context chunks", len(retrieval.records))
        return RAGResponse(query=question, answer=answer, sources=retrieval.records, retrieval=retrieval)
