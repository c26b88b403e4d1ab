"""Adapter registry: pick a vector store backend by name.

Example:
    ```python
    from vectororm.adapters.registry import AdapterRegistry

    @AdapterRegistry.register("my_store")
    def create_my_store(**kwargs):
        return MyStoreAdapter(**kwargs)

    adapter = AdapterRegistry.create("chroma", persist_directory="./data")
    ```

Built-in adapters: memory, chroma (default), pinecone, qdrant, turbopuffer.
"""

from typing import Any

from ..utils.registry import ProviderRegistry
from .base import VectorDBAdapter


class AdapterRegistry(ProviderRegistry):
    default = "chroma"

    @classmethod
    def create(cls, provider: str, **kwargs: Any) -> VectorDBAdapter:
        """Unconnected adapter for ``provider``.

        Raises:
            ProviderNotFoundError: If provider is not registered
        """
        return cls.factory(provider)(**kwargs)


def _register_builtin_providers():
    """Register built-in adapters. Backend SDKs load on first connect()."""

    @AdapterRegistry.register("memory")
    def create_memory(**kwargs):
        from .memory import InMemoryAdapter
        return InMemoryAdapter()

    @AdapterRegistry.register("chroma")
    def create_chroma(persist_directory=None, host=None, port=8000, **kwargs):
        from .chroma_adapter import ChromaAdapter
        return ChromaAdapter(persist_directory=persist_directory, host=host, port=port, **kwargs)

    @AdapterRegistry.register("pinecone")
    def create_pinecone(api_key=None, cloud="aws", region="us-east-1", **kwargs):
        from .pinecone_adapter import PineconeAdapter
        return PineconeAdapter(api_key=api_key, cloud=cloud, region=region, **kwargs)

    @AdapterRegistry.register("qdrant")
    def create_qdrant(url="http://localhost:6333", api_key=None, **kwargs):
        from .qdrant_adapter import QdrantAdapter
        return QdrantAdapter(url=url, api_key=api_key, **kwargs)

    @AdapterRegistry.register("turbopuffer")
    def create_turbopuffer(api_key=None, base_url="https://api.turbopuffer.com", **kwargs):
        from .turbopuffer_adapter import TurbopufferAdapter
        return TurbopufferAdapter(api_key=api_key, base_url=base_url, **kwargs)


_register_builtin_providers()
