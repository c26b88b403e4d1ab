"""Query composition: embed, filter by vertical / horizontal scope, search, group."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..adapters.base import FilterInput, VectorDBAdapter
from ..embeddings.base import Embedder
from ..filters import FilterBuilder, UniversalFilter
from ..metadata import HorizontalFields, VerticalFields
from ..types import VectorRecord

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 10

GROUP_FIELDS = {
    "document": VerticalFields.DOC_ID,
    "theme": HorizontalFields.THEME,
}

Groups = dict[Optional[str], list[VectorRecord]]


@dataclass
class RetrievalResult:
    """Records from one retrieval, best match first.

    ``groups`` is only set when grouping was requested; ``records`` is then
    the concatenation of the groups in order.
    """

    records: list[VectorRecord]
    query: str
    filter: Optional[UniversalFilter] = None
    filters_applied: dict[str, UniversalFilter] = field(default_factory=dict)
    groups: Optional[Groups] = None

    @property
    def texts(self) -> list[str]:
        return [r.text for r in self.records if r.text]


def group_records(records: list[VectorRecord], field_name: str) -> Groups:
    """Group records by a metadata field.

    Groups appear in order of their best-ranked record and keep the incoming
    order inside each group. Records without a string value for the field form
    a trailing ``None`` group. Repeated ids are dropped.
    """
    groups: Groups = {}
    ungrouped: list[VectorRecord] = []
    seen: set[str] = set()
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        key = record.metadata.get(field_name)
        if isinstance(key, str) and key:
            groups.setdefault(key, []).append(record)
        else:
            ungrouped.append(record)
    if ungrouped:
        groups[None] = ungrouped
    return groups


class RAGQueryComposer:
    """Runs similarity searches scoped by vertical (document) and horizontal (theme) filters.

    Example:
        ```python
        composer = RAGQueryComposer(adapter, embedder)
        result = await composer.retrieve(
            "pricing terms",
            "contracts",
            vertical_filters={"__v_doc_id": "contract-123"},
            horizontal_filters={"__h_theme": "legal"},
        )
        by_doc = await composer.retrieve_vertical("pricing terms", "contracts")
        ```
    """

    def __init__(self, adapter: VectorDBAdapter, embedder: Embedder):
        self._adapter = adapter
        self._embedder = embedder

    @staticmethod
    def vertical_filter(
        doc_id: Optional[str] = None,
        partition: Optional[str] = None,
        doc_type: Optional[str] = None,
    ) -> Optional[UniversalFilter]:
        return FilterBuilder.combine(
            FilterBuilder.eq(VerticalFields.DOC_ID, doc_id) if doc_id else None,
            FilterBuilder.eq(VerticalFields.PARTITION, partition) if partition else None,
            FilterBuilder.eq(VerticalFields.DOC_TYPE, doc_type) if doc_type else None,
        )

    @staticmethod
    def horizontal_filter(theme: Optional[str] = None) -> Optional[UniversalFilter]:
        return FilterBuilder.eq(HorizontalFields.THEME, theme) if theme else None

    async def retrieve(
        self,
        query: str,
        collection: str,
        top_k: int = DEFAULT_TOP_K,
        vertical_filters: FilterInput = None,
        horizontal_filters: FilterInput = None,
        custom_filters: FilterInput = None,
        include_embeddings: bool = False,
    ) -> RetrievalResult:
        """Embed ``query`` and search with all given filters ANDed together."""
        applied: dict[str, Any] = {}
        for name, value in (
            ("vertical", vertical_filters),
            ("horizontal", horizontal_filters),
            ("custom", custom_filters),
        ):
            normalized = FilterBuilder.combine(value)
            if normalized is not None:
                applied[name] = normalized
        combined = FilterBuilder.combine(*applied.values())

        vector = await self._embedder.embed(query)
        result = await self._adapter.search(
            collection,
            vector,
            top_k=top_k,
            filter=combined,
            include_metadata=True,
            include_values=include_embeddings,
        )
        logger.debug("Retrieved %s records from %s for %r", len(result), collection, query)
        return RetrievalResult(records=list(result.records), query=query, filter=combined, filters_applied=applied)

    async def retrieve_grouped(self, group_by: str, query: str, collection: str, **kwargs: Any) -> RetrievalResult:
        """Retrieve, then group by ``"document"`` or ``"theme"``."""
        if group_by not in GROUP_FIELDS:
            raise ValueError(f"Unknown group_by: {group_by}. Available: {', '.join(GROUP_FIELDS)}")
        result = await self.retrieve(query, collection, **kwargs)
        groups = group_records(result.records, GROUP_FIELDS[group_by])
        result.groups = groups
        result.records = [record for records in groups.values() for record in records]
        return result

    async def retrieve_vertical(self, query: str, collection: str, **kwargs: Any) -> Groups:
        """Results grouped by ``__v_doc_id``."""
        return (await self.retrieve_grouped("document", query, collection, **kwargs)).groups or {}

    async def retrieve_horizontal(self, query: str, collection: str, **kwargs: Any) -> Groups:
        """Results grouped by ``__h_theme``."""
        return (await self.retrieve_grouped("theme", query, collection, **kwargs)).groups or {}
