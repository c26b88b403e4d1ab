"""Document ingestion: loaders, chunkers and the ingestion pipeline."""

from .chunking import (
    FixedChunker,
    RecursiveChunker,
    SentenceChunker,
    TextChunk,
    TextChunker,
    get_chunker,
)
from .documents import Document, DocumentLoader, LoaderRegistry
from .loaders import DOCXLoader, HTMLLoader, PDFLoader, TextLoader
from .pipeline import IngestionConfig, IngestionPipeline, ProgressInfo

__all__ = [
    "DOCXLoader",
    "Document",
    "DocumentLoader",
    "FixedChunker",
    "HTMLLoader",
    "IngestionConfig",
    "IngestionPipeline",
    "LoaderRegistry",
    "PDFLoader",
    "ProgressInfo",
    "RecursiveChunker",
    "SentenceChunker",
    "TextChunk",
    "TextChunker",
    "TextLoader",
    "get_chunker",
]
