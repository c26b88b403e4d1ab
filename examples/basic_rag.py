"""Basic RAG Example.

This example demonstrates how to:
1. Create a RAG client from settings (.env / environment)
2. Ingest documents
3. Retrieve chunks and ask a question over them

Run from the repository root after `pip install -e .`:
    python examples/basic_rag.py path/to/docs
"""

import asyncio
import sys

from vectororm.config import get_settings
from vectororm.factory import create_rag_client
from vectororm.logging_config import configure_logging


async def main(paths: list[str]) -> None:
    settings = get_settings()
    client = create_rag_client(settings)

    async with client.adapter:
        # Create the collection with the embedder's dimension
        if not await client.collection_exists():
            await client.create_collection()

        stats = await client.ingest(paths)
        print(f"Ingested {stats.documents_succeeded}/{stats.documents_processed} documents")
        for error in stats.errors:
            print(f"  {error.source} failed at {error.stage}: {error.error}")

        question = "What is this collection about?"
        result = await client.retrieve(question, top_k=3)
        print(f"Question: {question}")
        print("\nRetrieved chunks:")
        for i, record in enumerate(result.records, 1):
            print(f"{i}. {(record.text or '')[:100]}...")

        response = await client.query(question, top_k=3)
        print(f"\nAnswer: {response.answer}")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main(sys.argv[1:] or ["README.md"]))
