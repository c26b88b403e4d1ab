"""Tests for keyword, embedding and LLM theme classifiers."""

import pytest

from conftest import HashEmbedder, RecordingLLM
from vectororm.enrichment import (
    UNKNOWN_THEME,
    EmbeddingThemeClassifier,
    KeywordThemeClassifier,
    LLMThemeClassifier,
)
from vectororm.enrichment.classifiers import softmax, uniform_classification
from vectororm.exceptions import ParseError
from vectororm.llm.base import JSON_INSTRUCTION

KEYWORDS = {
    "finance": ["invoice", "payment"],
    "hr": ["leave", "employee"],
}


async def test_keyword_densities():
    classifier = KeywordThemeClassifier(KEYWORDS)
    result = await classifier.classify("Invoice and payment due. Leave unused.")
    assert result.theme == "finance"
    assert result.confidence == pytest.approx(2 / 3)
    assert result.all_scores == pytest.approx({"finance": 2 / 3, "hr": 1 / 3})


async def test_keyword_whole_words_only():
    classifier = KeywordThemeClassifier(KEYWORDS)
    result = await classifier.classify("The invoices were leaves.")
    assert result.theme == UNKNOWN_THEME
    assert result.confidence == 0.0
    assert result.all_scores == {"finance": 0.0, "hr": 0.0}


async def test_keyword_tie_goes_to_first_theme():
    result = await KeywordThemeClassifier(KEYWORDS).classify("invoice leave")
    assert (result.theme, result.confidence) == ("finance", 0.5)


async def test_keyword_case_sensitive():
    classifier = KeywordThemeClassifier(KEYWORDS, case_sensitive=True)
    assert (await classifier.classify("INVOICE")).theme == UNKNOWN_THEME
    assert (await classifier.classify("invoice")).theme == "finance"


async def test_keyword_empty_text_is_unknown():
    result = await KeywordThemeClassifier(KEYWORDS).classify("   ")
    assert result.theme == UNKNOWN_THEME


def test_keyword_requires_themes():
    with pytest.raises(ValueError):
        KeywordThemeClassifier({})


def test_uniform_classification():
    result = uniform_classification(["a", "b", "c"])
    assert result.theme == "a"
    assert result.confidence == pytest.approx(0.3333, abs=1e-4)
    assert sum(result.all_scores.values()) == pytest.approx(1.0)


def test_softmax_sums_to_one():
    scores = softmax({"a": 0.9, "b": 0.1}, temperature=0.1)
    assert sum(scores.values()) == pytest.approx(1.0)
    assert scores["a"] > 0.99


async def test_embedding_classifier_picks_closest_label():
    embedder = HashEmbedder()
    classifier = EmbeddingThemeClassifier(["legal", "finance", "hr"], embedder)
    result = await classifier.classify("finance")
    assert result.theme == "finance"
    assert sum(result.all_scores.values()) == pytest.approx(1.0)
    assert embedder.calls[0] == ["legal", "finance", "hr"]

    await classifier.classify("hr")
    assert embedder.calls.count(["legal", "finance", "hr"]) == 1


async def test_embedding_classifier_empty_text_is_uniform():
    embedder = HashEmbedder()
    classifier = EmbeddingThemeClassifier(["legal", "finance", "hr"], embedder)
    result = await classifier.classify("")
    assert result.theme == "legal"
    assert result.confidence == pytest.approx(0.3333, abs=1e-4)
    assert embedder.calls == []


async def test_embedding_classifier_precomputed_embeddings_and_batch():
    embedder = HashEmbedder()
    theme_embeddings = {
        "legal": embedder.vector("contract clause liability"),
        "finance": embedder.vector("invoice payment budget"),
    }
    classifier = EmbeddingThemeClassifier(["legal", "finance"], embedder, theme_embeddings=theme_embeddings)
    results = await classifier.classify_batch(["invoice payment budget", "", "contract clause liability"])
    assert [r.theme for r in results] == ["finance", "legal", "legal"]
    assert results[1].confidence == pytest.approx(0.5)
    assert embedder.calls == [["invoice payment budget", "contract clause liability"]]


def test_embedding_classifier_validation():
    embedder = HashEmbedder()
    with pytest.raises(ValueError):
        EmbeddingThemeClassifier([], embedder)
    with pytest.raises(ValueError, match="temperature"):
        EmbeddingThemeClassifier(["a"], embedder, temperature=0)
    with pytest.raises(ValueError, match="Missing embeddings"):
        EmbeddingThemeClassifier(["a", "b"], embedder, theme_embeddings={"a": [1.0]})


async def test_llm_classifier_parses_response():
    llm = RecordingLLM('{"theme": "finance", "confidence": 0.9, "allScores": {"finance": 0.9, "hr": 0.1, "x": 0.5}}')
    classifier = LLMThemeClassifier(["finance", "hr"], llm)
    result = await classifier.classify("Pay the invoice")
    assert result.theme == "finance"
    assert result.confidence == 0.9
    assert result.all_scores == {"finance": 0.9, "hr": 0.1}
    prompt = llm.prompts[0]
    assert "Available themes: finance, hr" in prompt
    assert "Pay the invoice" in prompt
    assert prompt.endswith(JSON_INSTRUCTION)


async def test_llm_classifier_unknown_theme():
    llm = RecordingLLM('```json\n{"theme": "sports", "confidence": 0.8}\n```')
    result = await LLMThemeClassifier(["finance", "hr"], llm).classify("Match report")
    assert (result.theme, result.confidence) == (UNKNOWN_THEME, 0.0)


async def test_llm_classifier_clamps_confidence():
    llm = RecordingLLM('{"theme": "hr", "confidence": 1.7}')
    result = await LLMThemeClassifier(["finance", "hr"], llm).classify("Leave request")
    assert result.confidence == 1.0
    assert result.all_scores is None


async def test_llm_classifier_malformed_output():
    llm = RecordingLLM("I think it is about finance")
    with pytest.raises(ParseError) as exc_info:
        await LLMThemeClassifier(["finance"], llm).classify("Pay the invoice")
    assert exc_info.value.raw == "I think it is about finance"


async def test_llm_classifier_empty_text_skips_model():
    llm = RecordingLLM("{}")
    result = await LLMThemeClassifier(["finance", "hr"], llm).classify("")
    assert result.confidence == pytest.approx(0.5)
    assert llm.prompts == []
