"""Abstract embedder interface."""

from abc import ABC, abstractmethod
from typing import List


class Embedder(ABC):
    """Turns text into fixed-length vectors.

    ``embed_batch`` must return one vector per input, in input order, each of
    length ``dimensions``.
    """

    @property
    @abstractmethod
    def dimensions(self) -> int:
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        ...

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Embed a single text. Returns one vector."""
        ...

    @abstractmethod
    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Embed a list of texts. Returns list of vectors."""
        ...
