"""LLM provider registry.

Example:
    ```python
    from vectororm.llm.registry import LLMProviderRegistry

    @LLMProviderRegistry.register("my_provider")
    def create_my_provider(api_key, model, temperature, **kwargs):
        return MyLLM(api_key=api_key, model=model, temperature=temperature)

    llm = LLMProviderRegistry.create("openai", api_key="sk-...", model="gpt-4o-mini")
    ```

Built-in providers: openai (default), gemini.
"""

from typing import Any, Optional

from ..exceptions import APIKeyError
from ..utils.registry import ProviderRegistry
from .base import LLMClient


class LLMProviderRegistry(ProviderRegistry):
    """Factories are called as ``factory(api_key=..., model=..., temperature=..., **kwargs)``."""

    default = "openai"

    @classmethod
    def create(
        cls,
        provider: str,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        **kwargs: Any
    ) -> LLMClient:
        """Create an LLM client for ``provider``.

        Raises:
            ProviderNotFoundError: If provider is not registered
            APIKeyError: If the API key is missing
        """
        return cls.factory(provider)(api_key=api_key, model=model, temperature=temperature, **kwargs)


def _register_builtin_providers():
    @LLMProviderRegistry.register("openai")
    def create_openai(api_key: Optional[str], model: str, temperature: float, **kwargs):
        if not api_key:
            raise APIKeyError("OpenAI", "OPENAI_API_KEY")
        from .openai_provider import OpenAILLM
        return OpenAILLM(api_key=api_key, model=model, temperature=temperature)

    @LLMProviderRegistry.register("gemini")
    def create_gemini(api_key: Optional[str], model: str, temperature: float, **kwargs):
        if not api_key:
            raise APIKeyError("Gemini", "GOOGLE_API_KEY")
        from .gemini_provider import GeminiLLM
        return GeminiLLM(api_key=api_key, model=model, temperature=temperature)


_register_builtin_providers()
