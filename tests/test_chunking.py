"""Tests for ingestion chunking strategies."""

import pytest

from vectororm.ingestion.chunking import (
    RECURSIVE_SEPARATORS,
    SENTENCE_SEPARATORS,
    FixedChunker,
    RecursiveChunker,
    SentenceChunker,
    get_chunker,
)

TEXT = (
    "First paragraph talks about contracts.\n\n"
    "Second paragraph covers invoices and payment terms.\n\n"
    "Third paragraph is about leave policy. It has two sentences."
)


def test_separators_defined():
    assert "\n\n" in RECURSIVE_SEPARATORS
    assert ". " in SENTENCE_SEPARATORS
    assert SENTENCE_SEPARATORS.index(". ") < SENTENCE_SEPARATORS.index("\n")


@pytest.mark.parametrize(
    "strategy,expected",
    [
        ("recursive", RecursiveChunker),
        ("recursive_character", RecursiveChunker),
        ("Sentence", SentenceChunker),
        ("fixed", FixedChunker),
        (None, RecursiveChunker),
    ],
)
def test_get_chunker(strategy, expected):
    chunker = get_chunker(strategy, chunk_size=100, chunk_overlap=10)
    assert type(chunker) is expected
    assert (chunker.chunk_size, chunker.chunk_overlap) == (100, 10)


def test_get_chunker_unknown_strategy():
    with pytest.raises(ValueError, match="Unknown chunking strategy"):
        get_chunker("semantic")


@pytest.mark.parametrize("size,overlap", [(0, 0), (10, 10), (10, -1)])
def test_invalid_sizes(size, overlap):
    with pytest.raises(ValueError):
        FixedChunker(chunk_size=size, chunk_overlap=overlap)


def test_recursive_chunks_map_back_to_text():
    chunks = RecursiveChunker(chunk_size=60, chunk_overlap=0).chunk(TEXT)
    assert len(chunks) >= 3
    assert [c.index for c in chunks] == list(range(len(chunks)))
    for chunk in chunks:
        assert len(chunk.text) <= 60
        assert TEXT[chunk.start_char:chunk.end_char] == chunk.text
    assert chunks[0].text.startswith("First paragraph")


def test_sentence_chunker_splits_on_sentences():
    text = "Alpha is first. Beta is second. Gamma is third."
    chunks = SentenceChunker(chunk_size=20, chunk_overlap=0).chunk(text)
    assert len(chunks) == 3
    assert chunks[0].text.startswith("Alpha")
    assert "Gamma" in chunks[-1].text


def test_fixed_chunker_windows():
    chunks = FixedChunker(chunk_size=4, chunk_overlap=1).chunk("abcdefghij")
    assert [c.text for c in chunks] == ["abcd", "defg", "ghij"]
    assert [(c.start_char, c.end_char) for c in chunks] == [(0, 4), (3, 7), (6, 10)]


@pytest.mark.parametrize("chunker", [RecursiveChunker(), SentenceChunker(), FixedChunker()])
def test_blank_text_has_no_chunks(chunker):
    assert chunker.chunk("") == []
    assert chunker.chunk("   \n\n  ") == []


def test_short_text_is_one_chunk():
    [chunk] = get_chunker().chunk("A single short line.")
    assert (chunk.index, chunk.start_char, chunk.end_char) == (0, 0, len("A single short line."))
