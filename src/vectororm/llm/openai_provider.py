"""OpenAI LLM provider implementation."""

from typing import Any, Optional

from langchain_openai import ChatOpenAI
from langchain_core.messages import HumanMessage, SystemMessage

from .base import GenerateOptions, LLMClient


def build_messages(prompt: str, options: Optional[GenerateOptions]) -> list[Any]:
    messages: list[Any] = []
    if options and options.system_prompt:
        messages.append(SystemMessage(content=options.system_prompt))
    messages.append(HumanMessage(content=prompt))
    return messages


def invoke_kwargs(options: Optional[GenerateOptions]) -> dict[str, Any]:
    """Per-call overrides understood by LangChain chat models."""
    if options is None:
        return {}
    kwargs: dict[str, Any] = {}
    if options.temperature is not None:
        kwargs["temperature"] = options.temperature
    if options.max_tokens is not None:
        kwargs["max_tokens"] = options.max_tokens
    if options.stop:
        kwargs["stop"] = list(options.stop)
    return kwargs


class OpenAILLM(LLMClient):
    """LLM client using OpenAI API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
    ):
        self._model = model
        self._client = ChatOpenAI(
            model=model,
            temperature=temperature,
            openai_api_key=api_key,
        )

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def provider(self) -> str:
        return "openai"

    async def generate(self, prompt: str, options: Optional[GenerateOptions] = None) -> str:
        response = await self._client.ainvoke(build_messages(prompt, options), **invoke_kwargs(options))
        return response.content if hasattr(response, "content") else str(response)
