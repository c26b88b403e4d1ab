"""Shared configuration for VectorORM."""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class VectorORMSettings(BaseSettings):
    """Library-wide settings."""

    # Vector store: memory | chroma | pinecone | qdrant | turbopuffer (default chroma)
    VECTOR_STORE: str = "chroma"
    DEFAULT_COLLECTION: str = "documents"

    # Chroma: local persistent directory, or HTTP server when CHROMA_HOST is set
    CHROMA_PERSIST_DIR: str = "./data/chroma_db"
    CHROMA_HOST: Optional[str] = None
    CHROMA_PORT: int = 8000
    # Pinecone (serverless)
    PINECONE_API_KEY: Optional[str] = None
    PINECONE_CLOUD: str = "aws"
    PINECONE_REGION: str = "us-east-1"
    # Qdrant: ":memory:" for an in-process instance
    QDRANT_URL: str = "http://localhost:6333"
    QDRANT_API_KEY: Optional[str] = None
    # Turbopuffer
    TURBOPUFFER_API_KEY: Optional[str] = None
    TURBOPUFFER_BASE_URL: str = "https://api.turbopuffer.com"

    # Embeddings provider: openai | sentence_transformers
    EMBEDDINGS_PROVIDER: str = "openai"
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    SENTENCE_TRANSFORMER_MODEL: str = "all-MiniLM-L6-v2"

    # LLM provider: openai | gemini
    LLM_PROVIDER: str = "openai"
    LLM_MODEL: str = "gpt-4o-mini"
    TEMPERATURE: float = 0.7
    OPENAI_API_KEY: Optional[str] = None
    GOOGLE_API_KEY: Optional[str] = None

    # Ingestion: chunking strategy (recursive | sentence | fixed)
    CHUNKING_STRATEGY: str = "recursive"
    CHUNK_SIZE: int = 1000
    CHUNK_OVERLAP: int = 200
    INGEST_BATCH_SIZE: int = 100

    # Enrichment
    ENRICH_BATCH_SIZE: int = 100
    THEME_CONFIDENCE_THRESHOLD: float = 0.5

    # Retrieval
    DEFAULT_TOP_K: int = 10

    # Observability: LLM tracing (log prompt/response/latency)
    ENABLE_LLM_TRACING: bool = False
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


@lru_cache
def get_settings() -> VectorORMSettings:
    return VectorORMSettings()
