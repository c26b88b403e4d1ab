"""Sentence-transformers embeddings provider (local)."""

import asyncio
from typing import List, Optional

from langchain_community.embeddings import HuggingFaceEmbeddings

from .base import Embedder


class SentenceTransformerEmbedder(Embedder):
    """Local embeddings via sentence-transformers (HuggingFace)."""

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", device: str = "cpu"):
        self._model_name = model_name
        self._embeddings = HuggingFaceEmbeddings(
            model_name=model_name,
            model_kwargs={"device": device},
        )
        self._dimensions: Optional[int] = None

    @property
    def dimensions(self) -> int:
        if self._dimensions is None:
            self._dimensions = int(self._embeddings.client.get_sentence_embedding_dimension())
        return self._dimensions

    @property
    def model_name(self) -> str:
        return self._model_name

    async def embed(self, text: str) -> List[float]:
        return await asyncio.to_thread(self._embeddings.embed_query, text)

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._embeddings.embed_documents, texts)
