"""Tests for RAGQueryComposer and RAGClient."""

import pytest

from vectororm.enrichment import KeywordThemeClassifier
from vectororm.enrichment.pipeline import EnrichmentAllConfig, ThemeEnrichmentConfig
from vectororm.exceptions import ConfigurationError
from vectororm.filters import And, Condition, FilterOperator
from vectororm.llm.base import GenerateOptions
from vectororm.metadata import HorizontalFields, VerticalFields
from vectororm.rag import RAGClient, RAGQueryComposer
from vectororm.rag.client import DEFAULT_SYSTEM_PROMPT, build_prompt
from vectororm.rag.composer import group_records
from vectororm.types import DistanceMetric, VectorRecord

KEYWORDS = {"finance": ["payment", "invoices"], "hr": ["leave", "employees"]}


@pytest.fixture
async def client(memory_adapter, embedder, llm, docs_dir):
    rag = RAGClient(memory_adapter, embedder, llm=llm, default_collection="docs")
    await rag.create_collection()
    stats = await rag.ingest(sorted(str(p) for p in docs_dir.iterdir()))
    assert stats.documents_succeeded == 3
    await rag.enrich(None, EnrichmentAllConfig(themes=ThemeEnrichmentConfig(classifier=KeywordThemeClassifier(KEYWORDS))))
    return rag


def _ids(records):
    return [r.id for r in records]


def test_build_prompt():
    prompt = build_prompt("Why?", ["one", "two"], "Be brief.")
    assert prompt == "Be brief.\n\nContext:\none\n\ntwo\n\nQuestion: Why?\n\nAnswer:"


def test_group_records_orders_groups_and_drops_duplicates():
    records = [
        VectorRecord("a", [], {"k": "x"}),
        VectorRecord("b", [], {"k": ""}),
        VectorRecord("c", [], {"k": "y"}),
        VectorRecord("a", [], {"k": "x"}),
        VectorRecord("d", [], {"k": "x"}),
        VectorRecord("e", [], {"k": 3}),
    ]
    groups = group_records(records, "k")
    assert list(groups) == ["x", "y", None]
    assert {key: _ids(value) for key, value in groups.items()} == {"x": ["a", "d"], "y": ["c"], None: ["b", "e"]}


def test_scope_filters():
    assert RAGQueryComposer.vertical_filter() is None
    assert RAGQueryComposer.vertical_filter(partition="legal") == Condition(
        VerticalFields.PARTITION, FilterOperator.EQ, "legal"
    )
    combined = RAGQueryComposer.vertical_filter(doc_id="policy", doc_type="markdown")
    assert isinstance(combined, And)
    assert len(combined.conditions) == 2
    assert RAGQueryComposer.horizontal_filter("hr") == Condition(HorizontalFields.THEME, FilterOperator.EQ, "hr")


async def test_create_collection_uses_embedder_dimension(client, embedder):
    stats = await client.get_collection_stats()
    assert stats.dimension == embedder.dimensions
    assert stats.metric == DistanceMetric.COSINE
    assert stats.vector_count == 3
    assert await client.collection_exists()


async def test_retrieve_ranks_by_similarity(client):
    result = await client.retrieve("payment terms")
    assert _ids(result.records) == ["contract.txt:0", "notes.txt:0", "policy.md:0"]
    assert result.texts[0].startswith("The contract sets the payment terms.")
    assert result.filter is None
    assert result.groups is None


async def test_retrieve_top_k(client):
    result = await client.retrieve("leave policy", top_k=1)
    assert _ids(result.records) == ["policy.md:0"]


async def test_retrieve_by_theme(client):
    result = await client.retrieve("payment terms", theme="hr")
    assert _ids(result.records) == ["policy.md:0"]
    assert set(result.filters_applied) == {"horizontal"}


async def test_retrieve_by_partition_and_custom_filter(client):
    assert len((await client.retrieve("payment terms", partition="legal")).records) == 3
    assert (await client.retrieve("payment terms", partition="finance")).records == []

    result = await client.retrieve("payment terms", partition="legal", filter={VerticalFields.DOC_TYPE: "markdown"})
    assert _ids(result.records) == ["policy.md:0"]
    assert set(result.filters_applied) == {"vertical", "custom"}
    assert isinstance(result.filter, And)


async def test_retrieve_grouped_by_document(client):
    result = await client.retrieve("payment terms", group_by="document")
    assert list(result.groups) == ["contract", "notes", "policy"]


async def test_retrieve_grouped_by_theme_puts_unthemed_last(client):
    result = await client.retrieve("payment terms", group_by="theme")
    assert list(result.groups) == ["finance", "hr", None]
    assert _ids(result.groups[None]) == ["notes.txt:0"]
    assert _ids(result.records) == ["contract.txt:0", "policy.md:0", "notes.txt:0"]


async def test_composer_grouping_helpers(client):
    composer = client.composer
    by_doc = await composer.retrieve_vertical("leave policy", "docs", top_k=2)
    assert list(by_doc) == ["policy", "notes"]
    by_theme = await composer.retrieve_horizontal("leave policy", "docs", top_k=1)
    assert list(by_theme) == ["hr"]
    with pytest.raises(ValueError, match="Unknown group_by"):
        await composer.retrieve_grouped("author", "leave policy", "docs")


async def test_retrieve_include_embeddings(client, embedder):
    result = await client.composer.retrieve("leave policy", "docs", top_k=1, include_embeddings=True)
    assert len(result.records[0].embedding) == embedder.dimensions


async def test_query_builds_prompt_from_context(client, llm):
    options = GenerateOptions(temperature=0.0)
    response = await client.query("What are the payment terms?", top_k=2, options=options)

    assert response.answer == "The answer is 42."
    assert response.query == "What are the payment terms?"
    assert _ids(response.sources) == _ids(response.retrieval.records)
    assert len(response.sources) == 2
    expected = build_prompt("What are the payment terms?", response.retrieval.texts, DEFAULT_SYSTEM_PROMPT)
    assert llm.prompts == [expected]
    assert llm.options == [options]


async def test_query_with_theme_and_system_prompt(client, llm):
    response = await client.query("How much leave?", theme="hr", system_prompt="Answer in one word.")
    assert _ids(response.sources) == ["policy.md:0"]
    assert llm.prompts[0].startswith("Answer in one word.\n\nContext:\n# Leave policy")


async def test_query_without_llm(memory_adapter, embedder):
    rag = RAGClient(memory_adapter, embedder, default_collection="docs")
    with pytest.raises(ConfigurationError) as exc_info:
        await rag.query("anything")
    assert exc_info.value.setting == "llm"


async def test_missing_collection_name(memory_adapter, embedder):
    rag = RAGClient(memory_adapter, embedder)
    with pytest.raises(ConfigurationError) as exc_info:
        await rag.retrieve("anything")
    assert exc_info.value.setting == "default_collection"


async def test_ingest_single_source_and_delete_collection(memory_adapter, embedder, docs_dir):
    rag = RAGClient(memory_adapter, embedder)
    await rag.create_collection("single", metric=DistanceMetric.EUCLIDEAN)
    stats = await rag.ingest(str(docs_dir / "notes.txt"), collection="single")
    assert stats.chunks_upserted == 1
    await rag.delete_collection("single")
    assert not await rag.collection_exists("single")
