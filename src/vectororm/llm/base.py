"""Abstract LLM client interface."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from ..exceptions import ParseError
from ..utils.json_utils import parse_json_from_text

JSON_INSTRUCTION = "Respond with a single JSON value only. No markdown, no code fences, no extra text."


@dataclass
class GenerateOptions:
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    system_prompt: Optional[str] = None
    stop: list[str] = field(default_factory=list)


class LLMClient(ABC):
    """Abstract interface for LLM providers."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        ...

    @property
    @abstractmethod
    def provider(self) -> str:
        ...

    @abstractmethod
    async def generate(self, prompt: str, options: Optional[GenerateOptions] = None) -> str:
        """Send a prompt and return the model response text."""
        ...

    async def generate_batch(
        self, prompts: list[str], options: Optional[GenerateOptions] = None
    ) -> list[str]:
        """Generate for each prompt concurrently. Output order matches input order."""
        return list(await asyncio.gather(*(self.generate(p, options) for p in prompts)))

    async def generate_json(self, prompt: str, options: Optional[GenerateOptions] = None) -> Any:
        """Generate and parse a JSON value.

        Raises:
            ParseError: If the response contains no valid JSON
        """
        text = await self.generate(f"{prompt}\n\n{JSON_INSTRUCTION}", options)
        return self.parse_json_from_response(text)

    @staticmethod
    def parse_json_from_response(text: str) -> Any:
        parsed = parse_json_from_text(text)
        if parsed is None:
            preview = (text or "")[:200]
            raise ParseError(f"Failed to parse JSON from LLM response: {preview!r}", raw=text)
        return parsed
