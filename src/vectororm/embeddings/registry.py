"""Embedder registry.

Built-in providers: openai (default), sentence_transformers.
"""

from typing import Any, Optional

from ..exceptions import APIKeyError
from ..utils.registry import ProviderRegistry
from .base import Embedder


class EmbedderRegistry(ProviderRegistry):
    default = "openai"

    @classmethod
    def create(cls, provider: str, **kwargs: Any) -> Embedder:
        """Create an embedder for the given provider.

        Raises:
            ProviderNotFoundError: If provider is not registered
            APIKeyError: If the provider needs a key that was not given
        """
        return cls.factory(provider)(**kwargs)


def _register_builtin_providers():
    @EmbedderRegistry.register("openai")
    def create_openai(model: str = "text-embedding-3-small", api_key: Optional[str] = None, **kwargs):
        if not api_key:
            raise APIKeyError("OpenAI embeddings", "OPENAI_API_KEY")
        from .openai_provider import OpenAIEmbedder
        return OpenAIEmbedder(model=model, openai_api_key=api_key, dimensions=kwargs.get("dimensions"))

    @EmbedderRegistry.register("sentence_transformers")
    def create_sentence_transformers(model: str = "all-MiniLM-L6-v2", **kwargs):
        from .sentence_transformer_provider import SentenceTransformerEmbedder
        return SentenceTransformerEmbedder(model_name=model, device=kwargs.get("device", "cpu"))


_register_builtin_providers()
