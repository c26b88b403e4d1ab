"""Configurable text chunking strategies."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from langchain_text_splitters import RecursiveCharacterTextSplitter

# Strategy: recursive (default) vs sentence (sentence-boundary first)
RECURSIVE_SEPARATORS = ["\n\n", "\n", ". ", " ", ""]
SENTENCE_SEPARATORS = ["\n\n", ". ", "! ", "? ", "\n", " ", ""]

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200


@dataclass
class TextChunk:
    """A contiguous span of a document; ``end_char`` is exclusive."""

    text: str
    index: int
    start_char: int
    end_char: int


class TextChunker(ABC):
    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, chunk_overlap: int = DEFAULT_CHUNK_OVERLAP):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be >= 0 and smaller than chunk_size")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    @abstractmethod
    def chunk(self, text: str) -> list[TextChunk]:
        ...


class RecursiveChunker(TextChunker):
    """Splits on paragraph, line, sentence, then word boundaries (LangChain splitter)."""

    separators = RECURSIVE_SEPARATORS

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, chunk_overlap: int = DEFAULT_CHUNK_OVERLAP):
        super().__init__(chunk_size, chunk_overlap)
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            separators=self.separators,
            add_start_index=True,
        )

    def chunk(self, text: str) -> list[TextChunk]:
        if not text or not text.strip():
            return []
        chunks = []
        for i, doc in enumerate(self._splitter.create_documents([text])):
            start = int(doc.metadata.get("start_index", -1))
            if start < 0:
                start = text.find(doc.page_content)
            chunks.append(TextChunk(
                text=doc.page_content,
                index=i,
                start_char=max(start, 0),
                end_char=max(start, 0) + len(doc.page_content),
            ))
        return chunks


class SentenceChunker(RecursiveChunker):
    """Prefers sentence boundaries before falling back to lines and words."""

    separators = SENTENCE_SEPARATORS


class FixedChunker(TextChunker):
    """Fixed-width character windows with overlap."""

    def chunk(self, text: str) -> list[TextChunk]:
        chunks: list[TextChunk] = []
        step = self.chunk_size - self.chunk_overlap
        for start in range(0, len(text), step):
            piece = text[start:start + self.chunk_size]
            if piece.strip():
                chunks.append(TextChunk(text=piece, index=len(chunks), start_char=start, end_char=start + len(piece)))
            if start + self.chunk_size >= len(text):
                break
        return chunks


_STRATEGIES = {
    "recursive": RecursiveChunker,
    "recursive_character": RecursiveChunker,
    "sentence": SentenceChunker,
    "fixed": FixedChunker,
}


def get_chunker(
    strategy: str = "recursive",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> TextChunker:
    """Return a chunker for the given strategy name."""
    strategy = (strategy or "recursive").lower().strip()
    if strategy not in _STRATEGIES:
        raise ValueError(f"Unknown chunking strategy: {strategy}. Available: {', '.join(sorted(_STRATEGIES))}")
    return _STRATEGIES[strategy](chunk_size=chunk_size, chunk_overlap=chunk_overlap)
