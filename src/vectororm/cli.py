"""``vectororm`` command line: ingest, enrich, query and inspect collections."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import get_settings
from .enrichment import (
    EmbeddingThemeClassifier,
    EnrichmentAllConfig,
    KeywordThemeClassifier,
    SectionEnrichmentConfig,
    ThemeEnrichmentConfig,
)
from .factory import create_rag_client
from .ingestion import IngestionConfig, get_chunker
from .logging_config import configure_logging
from .rag import RAGClient


def _expand(paths: Sequence[str]) -> list[str]:
    """Directories expand to the files directly inside them."""
    sources: list[str] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            sources.extend(str(p) for p in sorted(path.iterdir()) if p.is_file())
        else:
            sources.append(raw)
    return sources


async def ingest_command(client: RAGClient, args) -> int:
    settings = get_settings()
    if not await client.collection_exists(args.collection):
        await client.create_collection(args.collection)
    config = IngestionConfig(
        chunker=get_chunker(settings.CHUNKING_STRATEGY, settings.CHUNK_SIZE, settings.CHUNK_OVERLAP),
        batch_size=settings.INGEST_BATCH_SIZE,
        metadata=json.loads(args.metadata) if args.metadata else {},
    )
    stats = await client.ingest(_expand(args.paths), args.collection, config)
    print(
        f"Ingested {stats.documents_succeeded}/{stats.documents_processed} documents "
        f"({stats.chunks_upserted} chunks) in {stats.time_ms}ms"
    )
    for error in stats.errors:
        print(f"  failed {error.source} at {error.stage}: {error.error}", file=sys.stderr)
    return 0 if stats.documents_failed == 0 else 1


async def enrich_command(client: RAGClient, args) -> int:
    settings = get_settings()
    themes = [t.strip() for t in (args.themes or "").split(",") if t.strip()]
    theme_config = None
    if args.keywords:
        keywords = json.loads(args.keywords)
        classifier = KeywordThemeClassifier({t: keywords.get(t, [t]) for t in themes} if themes else keywords)
        theme_config = ThemeEnrichmentConfig(classifier, confidence_threshold=settings.THEME_CONFIDENCE_THRESHOLD)
    elif themes:
        classifier = EmbeddingThemeClassifier(themes, client.embedder)
        theme_config = ThemeEnrichmentConfig(classifier, confidence_threshold=settings.THEME_CONFIDENCE_THRESHOLD)
    sections = SectionEnrichmentConfig() if args.sections else None
    if theme_config is None and sections is None:
        print("Error: Provide --themes, --keywords or --sections", file=sys.stderr)
        return 1
    stats = await client.enrich(
        args.collection,
        EnrichmentAllConfig(themes=theme_config, sections=sections, batch_size=settings.ENRICH_BATCH_SIZE),
    )
    print(
        f"Processed {stats.records_processed} records: {stats.records_updated} updated, "
        f"{stats.records_skipped} skipped in {stats.time_ms}ms"
    )
    for error in stats.errors:
        print(f"  {error}", file=sys.stderr)
    return 0


async def query_command(client: RAGClient, args) -> int:
    if args.no_llm:
        result = await client.retrieve(
            args.question, args.collection, top_k=args.top_k, theme=args.theme, partition=args.partition
        )
        print(f"Retrieved {len(result.records)} chunks:")
        for i, record in enumerate(result.records, 1):
            print(f"\n{i}. [{record.score or 0.0:.3f}] {(record.text or '')[:200]}")
        return 0
    response = await client.query(
        args.question, args.collection, top_k=args.top_k, theme=args.theme, partition=args.partition
    )
    print(f"Answer: {response.answer}")
    print(f"\nSources ({len(response.sources)}):")
    for record in response.sources:
        print(f"  - {record.id}")
    return 0


async def stats_command(client: RAGClient, args) -> int:
    stats = await client.get_collection_stats(args.collection)
    print(f"Collection: {args.collection or client.default_collection}")
    print(f"Vectors: {stats.vector_count}")
    print(f"Dimension: {stats.dimension}")
    print(f"Metric: {stats.metric.value}")
    return 0


COMMANDS = {
    "ingest": ingest_command,
    "enrich": enrich_command,
    "query": query_command,
    "stats": stats_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vectororm",
        description="Vector store ingestion, enrichment and RAG queries",
    )
    parser.add_argument("--log-level", help="DEBUG | INFO | WARNING (default: LOG_LEVEL setting)")
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    ingest_parser = subparsers.add_parser("ingest", help="Load, chunk, embed and store documents")
    ingest_parser.add_argument("paths", nargs="+", help="Files or directories")
    ingest_parser.add_argument("--collection", "-c", help="Target collection")
    ingest_parser.add_argument("--metadata", "-m", help="Extra metadata for every chunk, as JSON")

    enrich_parser = subparsers.add_parser("enrich", help="Add theme / section metadata to stored records")
    enrich_parser.add_argument("--collection", "-c", help="Target collection")
    enrich_parser.add_argument("--themes", "-t", help="Comma-separated theme names")
    enrich_parser.add_argument("--keywords", help='Keyword lists as JSON, e.g. {"legal": ["contract"]}')
    enrich_parser.add_argument("--sections", action="store_true", help="Detect section headings")

    query_parser = subparsers.add_parser("query", help="Ask a question over a collection")
    query_parser.add_argument("question", help="Question to ask")
    query_parser.add_argument("--collection", "-c", help="Collection to search")
    query_parser.add_argument("--top-k", "-k", type=int, default=None, help="Number of chunks")
    query_parser.add_argument("--theme", help="Only chunks with this theme")
    query_parser.add_argument("--partition", help="Only chunks from this partition")
    query_parser.add_argument("--no-llm", action="store_true", help="Print retrieved chunks without an answer")

    stats_parser = subparsers.add_parser("stats", help="Show collection statistics")
    stats_parser.add_argument("--collection", "-c", help="Collection to inspect")
    return parser


async def run(args, client: Optional[RAGClient] = None) -> int:
    if client is None:
        client = create_rag_client(with_llm=args.command == "query" and not args.no_llm)
    async with client.adapter:
        return await COMMANDS[args.command](client, args)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1
    configure_logging(args.log_level)
    try:
        return asyncio.run(run(args))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
