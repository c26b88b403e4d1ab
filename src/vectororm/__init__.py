"""VectorORM: one interface over several vector databases, plus a RAG layer on top.

Components:
- **adapters/**: Vector store adapters (in-memory, Chroma, Pinecone, Qdrant, Turbopuffer)
- **filters/**: Universal filter language and per-backend translation
- **embeddings/**: Embedders (OpenAI, sentence-transformers)
- **llm/**: LLM clients (OpenAI, Gemini)
- **ingestion/**: Loaders, chunkers and the ingestion pipeline
- **enrichment/**: Theme classifiers and the enrichment pipeline
- **rag/**: Query composer and the RAGClient facade
- **observability/**: LLM call tracing

Quick Start:
    ```python
    from vectororm import RAGClient
    from vectororm.factory import create_adapter, create_embedder, create_llm

    async with create_adapter() as adapter:
        client = RAGClient(adapter, create_embedder(), llm=create_llm(), default_collection="docs")
        await client.create_collection()
        await client.ingest(["handbook.pdf"])
        response = await client.query("What is the leave policy?")
    ```
"""

from .adapters import AdapterRegistry, VectorDBAdapter
from .config import VectorORMSettings, get_settings
from .filters import And, Condition, FilterBuilder, FilterOperator, Or
from .metadata import HorizontalFields, MetadataBuilder, StructuralFields, VerticalFields
from .rag import RAGClient, RAGResponse, RetrievalResult
from .types import (
    CollectionStats,
    DistanceMetric,
    EnrichmentStats,
    IngestionStats,
    MetadataUpdate,
    SearchResult,
    VectorRecord,
)

__all__ = [
    "AdapterRegistry",
    "And",
    "CollectionStats",
    "Condition",
    "DistanceMetric",
    "EnrichmentStats",
    "FilterBuilder",
    "FilterOperator",
    "HorizontalFields",
    "IngestionStats",
    "MetadataBuilder",
    "MetadataUpdate",
    "Or",
    "RAGClient",
    "RAGResponse",
    "RetrievalResult",
    "SearchResult",
    "StructuralFields",
    "VectorDBAdapter",
    "VectorORMSettings",
    "VectorRecord",
    "VerticalFields",
    "get_settings",
]
