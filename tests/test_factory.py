"""Tests for building components from settings."""

import pytest

from conftest import RecordingLLM
from vectororm.adapters import ChromaAdapter, InMemoryAdapter, QdrantAdapter
from vectororm.config import VectorORMSettings
from vectororm.exceptions import APIKeyError, ProviderNotFoundError
from vectororm.factory import create_adapter, create_llm, create_rag_client
from vectororm.llm.registry import LLMProviderRegistry
from vectororm.observability import TracingLLMClient


def _settings(**overrides):
    return VectorORMSettings(_env_file=None, **overrides)


@pytest.fixture
def recording_provider():
    @LLMProviderRegistry.register("recording-factory")
    def create_recording(api_key, model, temperature, **kwargs):
        return RecordingLLM(model)

    yield "recording-factory"
    LLMProviderRegistry.unregister("recording-factory")


def test_create_memory_adapter():
    adapter = create_adapter(_settings(VECTOR_STORE="memory"))
    assert isinstance(adapter, InMemoryAdapter)
    assert not adapter.is_connected


def test_create_chroma_adapter_prefers_host():
    local = create_adapter(_settings(VECTOR_STORE="chroma", CHROMA_PERSIST_DIR="/tmp/chroma"))
    assert isinstance(local, ChromaAdapter)
    assert local._persist_directory == "/tmp/chroma"
    remote = create_adapter(_settings(VECTOR_STORE="Chroma", CHROMA_HOST="chroma.internal", CHROMA_PORT=9000))
    assert (remote._host, remote._port, remote._persist_directory) == ("chroma.internal", 9000, None)


def test_create_qdrant_adapter():
    assert isinstance(create_adapter(_settings(VECTOR_STORE="qdrant", QDRANT_URL=":memory:")), QdrantAdapter)


def test_create_adapter_missing_key():
    with pytest.raises(APIKeyError, match="PINECONE_API_KEY"):
        create_adapter(_settings(VECTOR_STORE="pinecone", PINECONE_API_KEY=None))


def test_create_adapter_unknown_store():
    with pytest.raises(ProviderNotFoundError):
        create_adapter(_settings(VECTOR_STORE="weaviate"))


def test_create_llm_requires_key():
    with pytest.raises(APIKeyError):
        create_llm(_settings(LLM_PROVIDER="openai", OPENAI_API_KEY=None))


def test_create_llm_with_tracing(recording_provider):
    plain = create_llm(_settings(LLM_PROVIDER=recording_provider, LLM_MODEL="m1"))
    assert isinstance(plain, RecordingLLM)
    traced = create_llm(_settings(LLM_PROVIDER=recording_provider, ENABLE_LLM_TRACING=True))
    assert isinstance(traced, TracingLLMClient)
    assert traced.provider == "test"


def test_create_rag_client(recording_provider):
    adapter = InMemoryAdapter()
    client = create_rag_client(
        _settings(
            LLM_PROVIDER=recording_provider,
            OPENAI_API_KEY="sk-test",
            DEFAULT_COLLECTION="kb",
            DEFAULT_TOP_K=4,
        ),
        adapter=adapter,
    )
    assert client.adapter is adapter
    assert client.embedder.dimensions == 1536
    assert isinstance(client.llm, RecordingLLM)
    assert (client.default_collection, client.default_top_k) == ("kb", 4)

    without_llm = create_rag_client(_settings(OPENAI_API_KEY="sk-test"), adapter=adapter, with_llm=False)
    assert without_llm.llm is None
