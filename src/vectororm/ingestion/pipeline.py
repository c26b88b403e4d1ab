"""Ingestion pipeline: load → chunk → embed → upsert, one document at a time.

A failure in any stage marks only that document as failed; the remaining
sources are still processed and the call returns ``IngestionStats``.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from ..adapters.base import VectorDBAdapter
from ..embeddings.base import Embedder
from ..metadata import MetadataBuilder
from ..types import CONTENT_FIELD, IngestionStats, VectorRecord
from .chunking import TextChunk, TextChunker, get_chunker
from .documents import Document, LoaderRegistry

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100

_SCALAR_TYPES = (str, int, float, bool)


@dataclass
class ProgressInfo:
    stage: str  # "loading" | "chunking" | "embedding" | "upserting"
    current_document: str
    documents_processed: int
    total_documents: int
    chunks_processed: int


@dataclass
class IngestionConfig:
    """Per-call ingestion options.

    Attributes:
        chunker: Overrides the pipeline's chunker
        batch_size: Chunks per embed / upsert call
        metadata: Added to every chunk of every document
        metadata_extractor: Derives extra metadata from each loaded document
        on_progress: Called at the start of every stage of every document
    """

    chunker: Optional[TextChunker] = None
    batch_size: int = DEFAULT_BATCH_SIZE
    metadata: dict[str, Any] = field(default_factory=dict)
    metadata_extractor: Optional[Callable[[Document], dict[str, Any]]] = None
    on_progress: Optional[Callable[[ProgressInfo], None]] = None


def record_id(source: str, chunk_index: int) -> str:
    return f"{Path(source).name}:{chunk_index}"


def _scalars(metadata: dict[str, Any]) -> dict[str, Any]:
    """Keep values every backend can store."""
    return {k: v for k, v in metadata.items() if isinstance(v, _SCALAR_TYPES)}


class IngestionPipeline:
    """Turns source files into stored, embedded chunks."""

    def __init__(
        self,
        adapter: VectorDBAdapter,
        embedder: Embedder,
        loaders: Optional[LoaderRegistry] = None,
        chunker: Optional[TextChunker] = None,
    ):
        self._adapter = adapter
        self._embedder = embedder
        self._loaders = loaders if loaders is not None else LoaderRegistry.default()
        self._chunker = chunker or get_chunker()

    async def ingest(
        self,
        sources: Sequence[str],
        collection: str,
        config: Optional[IngestionConfig] = None,
    ) -> IngestionStats:
        config = config or IngestionConfig()
        chunker = config.chunker or self._chunker
        batch_size = max(1, config.batch_size)
        stats = IngestionStats()
        started = time.perf_counter()

        for source in sources:
            stage = "load"
            try:
                self._progress(config, "loading", source, stats, len(sources))
                document = await self._loaders.load(source)

                stage = "chunk"
                self._progress(config, "chunking", source, stats, len(sources))
                chunks = chunker.chunk(document.text)
                stats.chunks_created += len(chunks)
                metadatas = [self._chunk_metadata(document, chunk, len(chunks), config) for chunk in chunks]

                stage = "embed"
                self._progress(config, "embedding", source, stats, len(sources))
                embeddings: list[list[float]] = []
                for start in range(0, len(chunks), batch_size):
                    texts = [c.text for c in chunks[start:start + batch_size]]
                    vectors = await self._embedder.embed_batch(texts)
                    if len(vectors) != len(texts):
                        raise ValueError(f"embedder returned {len(vectors)} vectors for {len(texts)} texts")
                    embeddings.extend(vectors)

                stage = "upsert"
                self._progress(config, "upserting", source, stats, len(sources))
                records = [
                    VectorRecord(id=record_id(source, chunk.index), embedding=list(vector), metadata=meta)
                    for chunk, vector, meta in zip(chunks, embeddings, metadatas)
                ]
                for start in range(0, len(records), batch_size):
                    batch = records[start:start + batch_size]
                    await self._adapter.upsert(collection, batch)
                    stats.chunks_upserted += len(batch)

                stats.documents_succeeded += 1
                logger.debug("Ingested %s (%s chunks)", source, len(chunks))
            except Exception as e:
                logger.warning("Ingestion failed for %s at stage %s: %s", source, stage, e)
                stats.record_failure(source, stage, e)
            finally:
                stats.documents_processed += 1

        stats.time_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "Ingested %s/%s documents into %s (%s chunks upserted, %s failed) in %sms",
            stats.documents_succeeded,
            stats.documents_processed,
            collection,
            stats.chunks_upserted,
            stats.documents_failed,
            stats.time_ms,
        )
        return stats

    @staticmethod
    def _chunk_metadata(
        document: Document,
        chunk: TextChunk,
        total_chunks: int,
        config: IngestionConfig,
    ) -> dict[str, Any]:
        path = Path(document.source)
        builder = (
            MetadataBuilder({CONTENT_FIELD: chunk.text})
            .update(_scalars(document.metadata))
            .vertical(
                doc_id=path.stem,
                source=document.source,
                doc_type=document.type,
                partition=path.parent.name or None,
            )
        )
        if config.metadata_extractor is not None:
            builder.update(_scalars(config.metadata_extractor(document) or {}))
        return (
            builder.update(config.metadata)
            .structural(
                chunk_index=chunk.index,
                total_chunks=total_chunks,
                start_char=chunk.start_char,
                end_char=chunk.end_char,
            )
            .build()
        )

    @staticmethod
    def _progress(
        config: IngestionConfig,
        stage: str,
        source: str,
        stats: IngestionStats,
        total: int,
    ) -> None:
        if config.on_progress is None:
            return
        config.on_progress(ProgressInfo(
            stage=stage,
            current_document=source,
            documents_processed=stats.documents_processed,
            total_documents=total,
            chunks_processed=stats.chunks_upserted,
        ))
