"""LLM abstraction and providers."""

from .base import GenerateOptions, LLMClient
from .openai_provider import OpenAILLM
from .registry import LLMProviderRegistry

__all__ = [
    "GenerateOptions",
    "LLMClient",
    "LLMProviderRegistry",
    "OpenAILLM",
]
