"""Google Gemini LLM provider."""

from typing import Optional

from .base import GenerateOptions, LLMClient
from .openai_provider import build_messages, invoke_kwargs


class GeminiLLM(LLMClient):
    """LLM client using Google Gemini API (langchain-google-genai)."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-pro",
        temperature: float = 0.7,
    ):
        try:
            from langchain_google_genai import ChatGoogleGenerativeAI
        except ImportError as e:
            raise ImportError(
                "langchain-google-genai is required for Gemini. Install with: pip install vectororm[gemini]"
            ) from e
        self._model = model
        self._client = ChatGoogleGenerativeAI(
            model=model,
            temperature=temperature,
            google_api_key=api_key,
        )

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def provider(self) -> str:
        return "gemini"

    async def generate(self, prompt: str, options: Optional[GenerateOptions] = None) -> str:
        response = await self._client.ainvoke(build_messages(prompt, options), **invoke_kwargs(options))
        return response.content if hasattr(response, "content") else str(response)
