"""OpenAI embeddings provider."""

from typing import List, Optional

from langchain_openai import OpenAIEmbeddings as LangChainOpenAIEmbeddings

from .base import Embedder

# Native output sizes of OpenAI embedding models
MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbedder(Embedder):
    """OpenAI embeddings (LangChain wrapper).

    ``dimensions`` may shorten text-embedding-3 vectors; otherwise the model's
    native size is used.
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        openai_api_key: Optional[str] = None,
        dimensions: Optional[int] = None,
    ):
        if dimensions is None and model not in MODEL_DIMENSIONS:
            raise ValueError(f"Unknown dimensions for model '{model}'; pass dimensions explicitly")
        self._model = model
        self._dimensions = dimensions or MODEL_DIMENSIONS[model]
        self._embeddings = LangChainOpenAIEmbeddings(
            model=model,
            openai_api_key=openai_api_key,
            dimensions=dimensions,
        )

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def model_name(self) -> str:
        return self._model

    async def embed(self, text: str) -> List[float]:
        return await self._embeddings.aembed_query(text)

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        return await self._embeddings.aembed_documents(texts)
