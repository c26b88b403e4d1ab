"""Pytest fixtures and shared fakes."""

import hashlib
import re
from typing import Optional

import pytest

from vectororm.adapters.memory import InMemoryAdapter
from vectororm.config import get_settings
from vectororm.embeddings.base import Embedder
from vectororm.llm.base import GenerateOptions, LLMClient

DIMENSIONS = 32


class HashEmbedder(Embedder):
    """Deterministic bag-of-words embedder: each word bumps one hashed slot.

    Texts sharing words get similar vectors, so ranking in tests is meaningful.
    """

    def __init__(self, dimensions: int = DIMENSIONS):
        self._dimensions = dimensions
        self.calls: list[list[str]] = []

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def model_name(self) -> str:
        return "hash"

    def vector(self, text: str) -> list[float]:
        vec = [0.0] * self._dimensions
        for word in re.findall(r"\w+", text.lower()):
            slot = int(hashlib.md5(word.encode()).hexdigest(), 16) % self._dimensions
            vec[slot] += 1.0
        if not any(vec):
            vec[0] = 1.0
        return vec

    async def embed(self, text: str) -> list[float]:
        self.calls.append([text])
        return self.vector(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vector(t) for t in texts]


class RecordingLLM(LLMClient):
    """Returns canned responses in order (the last one repeats) and records prompts."""

    def __init__(self, *responses: str):
        self.responses = list(responses) or ["ok"]
        self.prompts: list[str] = []
        self.options: list[Optional[GenerateOptions]] = []

    @property
    def model_name(self) -> str:
        return "recording"

    @property
    def provider(self) -> str:
        return "test"

    async def generate(self, prompt: str, options: Optional[GenerateOptions] = None) -> str:
        self.prompts.append(prompt)
        self.options.append(options)
        index = min(len(self.prompts) - 1, len(self.responses) - 1)
        return self.responses[index]


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def embedder() -> HashEmbedder:
    return HashEmbedder()


@pytest.fixture
def llm() -> RecordingLLM:
    return RecordingLLM("The answer is 42.")


@pytest.fixture
async def memory_adapter():
    adapter = InMemoryAdapter()
    await adapter.connect()
    yield adapter
    await adapter.disconnect()


@pytest.fixture
def docs_dir(tmp_path):
    """Three small documents in a ``legal`` partition folder."""
    folder = tmp_path / "legal"
    folder.mkdir()
    (folder / "contract.txt").write_text(
        "The contract sets the payment terms. Invoices are due within thirty days.",
        encoding="utf-8",
    )
    (folder / "policy.md").write_text(
        "# Leave policy\n\nEmployees receive twenty days of paid leave per year.",
        encoding="utf-8",
    )
    (folder / "notes.txt").write_text(
        "Server deployment uses containers and a load balancer.",
        encoding="utf-8",
    )
    return folder
