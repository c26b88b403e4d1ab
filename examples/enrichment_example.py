"""Enrichment Example.

Ingest into an in-memory store, tag chunks with themes and sections, then
retrieve scoped to one theme and grouped by document.

Key concepts:
- KeywordThemeClassifier: deterministic, no model calls
- EnrichmentAllConfig: vertical, theme and section passes in one call
- Theme / partition scoping and grouped retrieval
"""

import asyncio
import sys

from vectororm.adapters import InMemoryAdapter
from vectororm.enrichment import (
    EnrichmentAllConfig,
    KeywordThemeClassifier,
    SectionEnrichmentConfig,
    ThemeEnrichmentConfig,
)
from vectororm.factory import create_embedder
from vectororm.rag import RAGClient

KEYWORDS = {
    "legal": ["contract", "liability", "clause"],
    "finance": ["invoice", "payment", "budget"],
    "hr": ["leave", "employee", "benefits"],
}


async def main(paths: list[str]) -> None:
    async with InMemoryAdapter() as adapter:
        client = RAGClient(adapter, create_embedder(), default_collection="handbook")
        await client.create_collection()
        await client.ingest(paths)

        stats = await client.enrich(
            None,
            EnrichmentAllConfig(
                themes=ThemeEnrichmentConfig(KeywordThemeClassifier(KEYWORDS), multi_theme=True),
                sections=SectionEnrichmentConfig(),
            ),
        )
        print(f"Enriched: {stats.records_updated} updated, {stats.records_skipped} skipped")

        result = await client.retrieve("How many days of leave?", theme="hr")
        for record in result.records:
            print(f"[{record.metadata.get('__h_section_title')}] {(record.text or '')[:80]}")

        grouped = await client.retrieve("payment terms", group_by="document")
        for doc_id, records in (grouped.groups or {}).items():
            print(f"{doc_id}: {len(records)} chunks")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
