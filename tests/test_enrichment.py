"""Tests for the enrichment pipeline."""

import pytest

from conftest import RecordingLLM
from vectororm.adapters.memory import InMemoryAdapter
from vectororm.enrichment import (
    EmbeddingThemeClassifier,
    EnrichmentPipeline,
    KeywordThemeClassifier,
    ThemeClassifier,
    detect_section,
)
from vectororm.enrichment.pipeline import (
    EnrichmentAllConfig,
    SectionEnrichmentConfig,
    ThemeEnrichmentConfig,
    VerticalEnrichmentConfig,
    section_from_path,
)
from vectororm.exceptions import CollectionError
from vectororm.metadata import HorizontalFields
from vectororm.types import ThemeClassification, VectorRecord

KEYWORDS = {"finance": ["invoice", "payment"], "hr": ["leave", "employee"]}

RECORDS = [
    ("r1", {"content": "# Billing\n\nInvoice payment invoice", "category": "inv"}),
    ("r2", {"content": "<h2>Time <b>off</b></h2> Leave employee leave", "category": "people"}),
    ("r3", {"content": "SECTION: Mixed\ninvoice leave", "category": "inv"}),
    ("r4", {"content": "Weather today", "path": "intro/overview"}),
    ("r5", {"category": "other"}),
]


@pytest.fixture
async def seeded(memory_adapter):
    await memory_adapter.create_collection("docs", 2)
    await memory_adapter.upsert("docs", [VectorRecord(i, [1.0, 0.0], dict(meta)) for i, meta in RECORDS])
    return memory_adapter


async def _metadata(adapter, record_id):
    [record] = await adapter.fetch("docs", [record_id])
    return record.metadata


class FlakyClassifier(ThemeClassifier):
    """Batch classification always fails; single classification fails on 'leave'."""

    async def classify(self, text):
        if "leave" in text.lower():
            raise RuntimeError("model overloaded")
        return ThemeClassification(theme="finance", confidence=0.9)

    async def classify_batch(self, texts):
        raise RuntimeError("batch endpoint down")


class FailingUpdateAdapter(InMemoryAdapter):
    async def update_metadata(self, collection, updates):
        raise RuntimeError("write rejected")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("## Payment terms\nBody", (2, "Payment terms")),
        ("intro\n# Title  \nmore", (1, "Title")),
        ("<H3 class='x'>Benefits <em>2024</em></H3>", (3, "Benefits 2024")),
        ("SECTION: Appendix A", (1, "Appendix A")),
        ("plain text only", (0, "unsectioned")),
        ("#hashtag is not a heading", (0, "unsectioned")),
    ],
)
def test_detect_section(text, expected):
    assert detect_section(text) == expected


def test_section_from_path():
    assert section_from_path("intro/overview") == {
        HorizontalFields.SECTION_PATH: "intro/overview",
        HorizontalFields.SECTION_LEVEL: 2,
        HorizontalFields.SECTION_TITLE: "overview",
    }
    assert section_from_path(" / ") is None
    assert section_from_path(3) is None


async def test_enrich_themes_applies_threshold(seeded):
    pipeline = EnrichmentPipeline(seeded)
    config = ThemeEnrichmentConfig(classifier=KeywordThemeClassifier(KEYWORDS), confidence_threshold=0.6)

    stats = await pipeline.enrich_themes("docs", config)

    assert stats.records_processed == 5
    assert stats.records_updated == 2
    assert stats.records_skipped == 3
    assert stats.errors == []
    meta = await _metadata(seeded, "r1")
    assert meta[HorizontalFields.THEME] == "finance"
    assert meta[HorizontalFields.THEME_CONFIDENCE] == 1.0
    assert meta["category"] == "inv"
    assert (await _metadata(seeded, "r2"))[HorizontalFields.THEME] == "hr"
    assert HorizontalFields.THEME not in await _metadata(seeded, "r3")


async def test_enrich_themes_is_idempotent(seeded):
    pipeline = EnrichmentPipeline(seeded)
    config = ThemeEnrichmentConfig(classifier=KeywordThemeClassifier(KEYWORDS))
    first = await pipeline.enrich_themes("docs", config)
    second = await pipeline.enrich_themes("docs", config)
    assert first.records_updated == 3
    assert second.records_updated == 0
    assert second.records_skipped == 5


async def test_enrich_themes_multi_theme(seeded):
    pipeline = EnrichmentPipeline(seeded)
    config = ThemeEnrichmentConfig(classifier=KeywordThemeClassifier(KEYWORDS), multi_theme=True)
    await pipeline.enrich_themes("docs", config)
    assert (await _metadata(seeded, "r3"))[HorizontalFields.THEMES] == "finance,hr"
    assert (await _metadata(seeded, "r1"))[HorizontalFields.THEMES] == "finance"


async def test_enrich_themes_with_embedding_classifier(seeded, embedder):
    classifier = EmbeddingThemeClassifier(["finance", "hr"], embedder)
    config = ThemeEnrichmentConfig(classifier=classifier, confidence_threshold=0.0, filter={"category": "inv"})
    stats = await EnrichmentPipeline(seeded).enrich_themes("docs", config)
    assert stats.records_processed == 2
    assert stats.records_updated == 2


async def test_enrich_themes_falls_back_to_single_classification(seeded):
    config = ThemeEnrichmentConfig(classifier=FlakyClassifier())
    stats = await EnrichmentPipeline(seeded).enrich_themes("docs", config)

    assert stats.errors[0].startswith("Batch classification error")
    assert any("record r2" in e and "overloaded" in e for e in stats.errors)
    assert any("record r3" in e for e in stats.errors)
    assert stats.records_updated == 2
    assert (await _metadata(seeded, "r4"))[HorizontalFields.THEME] == "finance"


async def test_progress_called_per_batch(seeded):
    calls = []
    config = ThemeEnrichmentConfig(
        classifier=KeywordThemeClassifier(KEYWORDS),
        batch_size=2,
        on_progress=lambda stats: calls.append(stats.records_processed),
    )
    await EnrichmentPipeline(seeded).enrich_themes("docs", config)
    assert calls == [2, 4, 5]


async def test_update_failure_is_recorded():
    adapter = FailingUpdateAdapter()
    await adapter.connect()
    await adapter.create_collection("docs", 2)
    await adapter.upsert("docs", [VectorRecord(i, [1.0, 0.0], dict(meta)) for i, meta in RECORDS])

    stats = await EnrichmentPipeline(adapter).enrich_themes(
        "docs", ThemeEnrichmentConfig(classifier=KeywordThemeClassifier(KEYWORDS))
    )

    assert stats.records_updated == 0
    assert stats.errors == ["Error updating batch: write rejected"]


async def test_iterate_errors_propagate(memory_adapter):
    pipeline = EnrichmentPipeline(memory_adapter)
    with pytest.raises(CollectionError):
        await pipeline.enrich_themes("missing", ThemeEnrichmentConfig(classifier=KeywordThemeClassifier(KEYWORDS)))


def test_vertical_config_needs_one_strategy():
    with pytest.raises(ValueError, match="exactly one"):
        VerticalEnrichmentConfig()
    with pytest.raises(ValueError, match="exactly one"):
        VerticalEnrichmentConfig(mapping={}, extractor=lambda r: None)
    with pytest.raises(ValueError, match="categories"):
        VerticalEnrichmentConfig(llm=RecordingLLM())


async def test_enrich_vertical_mapping(seeded):
    config = VerticalEnrichmentConfig(mapping={"inv": "finance", "people": "hr"})
    stats = await EnrichmentPipeline(seeded).enrich_vertical("docs", config)
    assert stats.records_updated == 3
    assert (await _metadata(seeded, "r2"))["__v_category"] == "hr"
    assert "__v_category" not in await _metadata(seeded, "r5")


async def test_enrich_vertical_async_extractor(seeded):
    async def extractor(record):
        if record.id == "r4":
            raise ValueError("cannot derive")
        return record.id.upper()

    config = VerticalEnrichmentConfig(target_field="__v_code", extractor=extractor)
    stats = await EnrichmentPipeline(seeded).enrich_vertical("docs", config)
    assert stats.records_updated == 4
    assert (await _metadata(seeded, "r1"))["__v_code"] == "R1"
    assert stats.errors == ["Vertical enrichment error for record r4: cannot derive"]


async def test_enrich_vertical_llm(seeded):
    llm = RecordingLLM("Finance.", "HR", "sports", "finance")
    config = VerticalEnrichmentConfig(llm=llm, categories=["finance", "hr"], filter={"content__exists": True})
    stats = await EnrichmentPipeline(seeded).enrich_vertical("docs", config)

    assert stats.records_processed == 4
    assert stats.records_updated == 3
    assert (await _metadata(seeded, "r1"))["__v_category"] == "finance"
    assert (await _metadata(seeded, "r2"))["__v_category"] == "hr"
    assert "__v_category" not in await _metadata(seeded, "r3")
    assert "categories: finance, hr" in llm.prompts[0]
    assert "Invoice payment invoice" in llm.prompts[0]


async def test_enrich_sections(seeded):
    config = SectionEnrichmentConfig(existing_field="path")
    stats = await EnrichmentPipeline(seeded).enrich_sections("docs", config)

    assert stats.records_updated == 4
    assert stats.records_skipped == 1
    r1 = await _metadata(seeded, "r1")
    assert (r1[HorizontalFields.SECTION_LEVEL], r1[HorizontalFields.SECTION_TITLE]) == (1, "Billing")
    assert (await _metadata(seeded, "r2"))[HorizontalFields.SECTION_TITLE] == "Time off"
    assert (await _metadata(seeded, "r3"))[HorizontalFields.SECTION_TITLE] == "Mixed"
    r4 = await _metadata(seeded, "r4")
    assert r4[HorizontalFields.SECTION_PATH] == "intro/overview"
    assert r4[HorizontalFields.SECTION_LEVEL] == 2


async def test_enrich_sections_without_auto_detect(seeded):
    config = SectionEnrichmentConfig(existing_field="path", auto_detect=False)
    stats = await EnrichmentPipeline(seeded).enrich_sections("docs", config)
    assert stats.records_updated == 1


async def test_enrich_all_runs_passes_in_order(seeded):
    config = EnrichmentAllConfig(
        vertical=VerticalEnrichmentConfig(mapping={"inv": "finance"}),
        themes=ThemeEnrichmentConfig(classifier=KeywordThemeClassifier(KEYWORDS), confidence_threshold=0.6),
        sections=SectionEnrichmentConfig(),
        filter={"category": "inv"},
    )
    stats = await EnrichmentPipeline(seeded).enrich_all("docs", config)

    assert stats.records_processed == 6
    assert stats.records_updated == 2 + 1 + 2
    meta = await _metadata(seeded, "r1")
    assert meta["__v_category"] == "finance"
    assert meta[HorizontalFields.THEME] == "finance"
    assert meta[HorizontalFields.SECTION_TITLE] == "Billing"
    assert HorizontalFields.SECTION_TITLE not in await _metadata(seeded, "r2")


async def test_enrich_all_with_nothing_configured(seeded):
    stats = await EnrichmentPipeline(seeded).enrich_all("docs", EnrichmentAllConfig())
    assert stats.records_processed == 0
