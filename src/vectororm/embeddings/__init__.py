"""Embedder abstraction and providers."""

from .base import Embedder
from .openai_provider import OpenAIEmbedder
from .registry import EmbedderRegistry
from .sentence_transformer_provider import SentenceTransformerEmbedder

__all__ = [
    "Embedder",
    "EmbedderRegistry",
    "OpenAIEmbedder",
    "SentenceTransformerEmbedder",
]
