"""Vector store adapters: one contract, one implementation per backend."""

from .base import VectorDBAdapter
from .chroma_adapter import ChromaAdapter
from .memory import InMemoryAdapter
from .pinecone_adapter import PineconeAdapter
from .qdrant_adapter import QdrantAdapter
from .registry import AdapterRegistry
from .turbopuffer_adapter import TurbopufferAdapter

__all__ = [
    "AdapterRegistry",
    "ChromaAdapter",
    "InMemoryAdapter",
    "PineconeAdapter",
    "QdrantAdapter",
    "TurbopufferAdapter",
    "VectorDBAdapter",
]
