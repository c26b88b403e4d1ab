"""Build adapters, embedders, LLM clients and RAG clients from settings."""

import logging
from typing import Optional

from .adapters.base import VectorDBAdapter
from .adapters.registry import AdapterRegistry
from .config import VectorORMSettings, get_settings
from .embeddings.base import Embedder
from .embeddings.registry import EmbedderRegistry
from .llm.base import LLMClient
from .llm.registry import LLMProviderRegistry
from .observability.tracing import TracingLLMClient
from .rag.client import RAGClient


def create_adapter(settings: Optional[VectorORMSettings] = None) -> VectorDBAdapter:
    """Unconnected adapter for ``VECTOR_STORE`` (memory | chroma | pinecone | qdrant | turbopuffer)."""
    settings = settings or get_settings()
    provider = (settings.VECTOR_STORE or "chroma").lower().strip()
    if provider == "chroma":
        kwargs = dict(
            persist_directory=None if settings.CHROMA_HOST else settings.CHROMA_PERSIST_DIR,
            host=settings.CHROMA_HOST,
            port=settings.CHROMA_PORT,
        )
    elif provider == "pinecone":
        kwargs = dict(
            api_key=settings.PINECONE_API_KEY,
            cloud=settings.PINECONE_CLOUD,
            region=settings.PINECONE_REGION,
        )
    elif provider == "qdrant":
        kwargs = dict(url=settings.QDRANT_URL, api_key=settings.QDRANT_API_KEY)
    elif provider == "turbopuffer":
        kwargs = dict(api_key=settings.TURBOPUFFER_API_KEY, base_url=settings.TURBOPUFFER_BASE_URL)
    else:
        kwargs = {}
    return AdapterRegistry.create(provider, **kwargs)


def create_embedder(settings: Optional[VectorORMSettings] = None) -> Embedder:
    settings = settings or get_settings()
    provider = (settings.EMBEDDINGS_PROVIDER or "openai").lower().strip()
    if provider == "sentence_transformers":
        return EmbedderRegistry.create(provider, model=settings.SENTENCE_TRANSFORMER_MODEL)
    return EmbedderRegistry.create(provider, model=settings.EMBEDDING_MODEL, api_key=settings.OPENAI_API_KEY)


def create_llm(settings: Optional[VectorORMSettings] = None) -> LLMClient:
    """LLM client for ``LLM_PROVIDER``; wrapped with tracing when ENABLE_LLM_TRACING is set."""
    settings = settings or get_settings()
    provider = (settings.LLM_PROVIDER or "openai").lower().strip()
    api_key = settings.GOOGLE_API_KEY if provider == "gemini" else settings.OPENAI_API_KEY
    llm = LLMProviderRegistry.create(
        provider,
        api_key=api_key,
        model=settings.LLM_MODEL,
        temperature=settings.TEMPERATURE,
    )
    if settings.ENABLE_LLM_TRACING:
        level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
        llm = TracingLLMClient(llm, log_level=level)
    return llm


def create_rag_client(
    settings: Optional[VectorORMSettings] = None,
    adapter: Optional[VectorDBAdapter] = None,
    with_llm: bool = True,
) -> RAGClient:
    """RAG client wired from settings. The adapter is returned unconnected."""
    settings = settings or get_settings()
    return RAGClient(
        adapter=adapter or create_adapter(settings),
        embedder=create_embedder(settings),
        llm=create_llm(settings) if with_llm else None,
        default_collection=settings.DEFAULT_COLLECTION,
        default_top_k=settings.DEFAULT_TOP_K,
    )
