"""Tests for the LLM base, JSON extraction and provider registries."""

import pytest

from conftest import RecordingLLM
from vectororm.embeddings.registry import EmbedderRegistry
from vectororm.exceptions import APIKeyError, ParseError, ProviderNotFoundError
from vectororm.llm.base import JSON_INSTRUCTION, GenerateOptions, LLMClient
from vectororm.llm.openai_provider import build_messages, invoke_kwargs
from vectororm.llm.registry import LLMProviderRegistry
from vectororm.utils.json_utils import parse_json_from_text


def test_parse_json_plain_json():
    assert parse_json_from_text('{"key": "value", "n": 42}') == {"key": "value", "n": 42}


def test_parse_json_markdown_code_block():
    text = 'Some text\n```json\n{"a": 1}\n```\nMore text'
    assert parse_json_from_text(text) == {"a": 1}


def test_parse_json_code_block_no_lang():
    assert parse_json_from_text('```\n{"x": "y"}\n```') == {"x": "y"}


def test_parse_json_embedded_in_prose():
    assert parse_json_from_text('Here you go: [1, 2, 3] hope it helps') == [1, 2, 3]


@pytest.mark.parametrize("text", ["", "   ", "No json here", "{broken"])
def test_parse_json_no_json(text):
    assert parse_json_from_text(text) is None


def test_parse_json_from_response_raises():
    with pytest.raises(ParseError) as exc_info:
        LLMClient.parse_json_from_response("No json here")
    assert exc_info.value.raw == "No json here"


async def test_generate_json_appends_instruction():
    llm = RecordingLLM('{"answer": "ok"}')
    assert await llm.generate_json("Summarize") == {"answer": "ok"}
    assert llm.prompts == [f"Summarize\n\n{JSON_INSTRUCTION}"]


async def test_generate_batch_keeps_order():
    llm = RecordingLLM("first", "second")
    assert await llm.generate_batch(["a", "b"]) == ["first", "second"]


def test_invoke_kwargs():
    assert invoke_kwargs(None) == {}
    assert invoke_kwargs(GenerateOptions()) == {}
    options = GenerateOptions(temperature=0.0, max_tokens=100, stop=["\n"])
    assert invoke_kwargs(options) == {"temperature": 0.0, "max_tokens": 100, "stop": ["\n"]}


def test_build_messages_with_system_prompt():
    messages = build_messages("Hi", GenerateOptions(system_prompt="Be terse."))
    assert [m.type for m in messages] == ["system", "human"]
    assert messages[1].content == "Hi"
    assert [m.type for m in build_messages("Hi", None)] == ["human"]


def test_llm_registry():
    assert {"openai", "gemini"} <= set(LLMProviderRegistry.list_providers())
    assert LLMProviderRegistry.is_registered(" OpenAI ")
    with pytest.raises(ProviderNotFoundError):
        LLMProviderRegistry.create("claude")
    with pytest.raises(APIKeyError, match="OPENAI_API_KEY"):
        LLMProviderRegistry.create("openai", api_key=None)
    with pytest.raises(APIKeyError, match="GOOGLE_API_KEY"):
        LLMProviderRegistry.create("gemini", api_key="")


def test_llm_registry_custom_provider():
    @LLMProviderRegistry.register("recording-test")
    def create_recording(api_key, model, temperature, **kwargs):
        return RecordingLLM(model)

    try:
        llm = LLMProviderRegistry.create("recording-test", model="canned")
        assert llm.responses == ["canned"]
    finally:
        LLMProviderRegistry.unregister("recording-test")


def test_embedder_registry():
    assert {"openai", "sentence_transformers"} <= set(EmbedderRegistry.list_providers())
    with pytest.raises(APIKeyError):
        EmbedderRegistry.create("openai")
    with pytest.raises(ProviderNotFoundError):
        EmbedderRegistry.create("word2vec")


def test_registries_keep_separate_tables():
    assert "memory" not in LLMProviderRegistry.list_providers()
    assert "gemini" not in EmbedderRegistry.list_providers()
    assert LLMProviderRegistry.factory("") is LLMProviderRegistry.factory("OPENAI")
    LLMProviderRegistry.unregister("not-registered")
