"""Shared record, stats and classification types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

# Metadata key holding chunk text
CONTENT_FIELD = "content"


class DistanceMetric(str, Enum):
    """Similarity metric a collection is created with."""

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    DOT = "dot"


@dataclass
class VectorRecord:
    """A stored vector with its metadata.

    ``score`` is only set on search results.
    """

    id: str
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)
    score: Optional[float] = None

    @property
    def text(self) -> Optional[str]:
        return self.metadata.get(CONTENT_FIELD)


@dataclass
class SearchResult:
    """Records returned by a similarity search, best match first."""

    records: list[VectorRecord] = field(default_factory=list)

    def __iter__(self) -> Iterator[VectorRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


@dataclass
class CollectionStats:
    vector_count: int
    dimension: int
    metric: DistanceMetric


@dataclass
class MetadataUpdate:
    """Merge patch for one record's metadata."""

    id: str
    metadata: dict[str, Any]


@dataclass
class IngestionError:
    source: str
    stage: str  # "load" | "chunk" | "embed" | "upsert"
    error: str


@dataclass
class IngestionStats:
    """Outcome of one ingestion call. Per-document failures land in ``errors``."""

    documents_processed: int = 0
    documents_succeeded: int = 0
    documents_failed: int = 0
    chunks_created: int = 0
    chunks_upserted: int = 0
    time_ms: int = 0
    errors: list[IngestionError] = field(default_factory=list)

    def record_failure(self, source: str, stage: str, error: Exception | str) -> None:
        self.documents_failed += 1
        self.errors.append(IngestionError(source=source, stage=stage, error=str(error)))


@dataclass
class EnrichmentStats:
    """Outcome of one enrichment pass."""

    records_processed: int = 0
    records_updated: int = 0
    records_skipped: int = 0
    time_ms: int = 0
    errors: list[str] = field(default_factory=list)

    def merge(self, other: "EnrichmentStats") -> "EnrichmentStats":
        """Return combined stats of two passes."""
        return EnrichmentStats(
            records_processed=self.records_processed + other.records_processed,
            records_updated=self.records_updated + other.records_updated,
            records_skipped=self.records_skipped + other.records_skipped,
            time_ms=self.time_ms + other.time_ms,
            errors=[*self.errors, *other.errors],
        )


@dataclass
class ThemeClassification:
    theme: str
    confidence: float
    all_scores: Optional[dict[str, float]] = None
