"""LLM call tracing: latency, prompt and response sizes, failures."""

import dataclasses
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..llm.base import GenerateOptions, LLMClient

logger = logging.getLogger(__name__)


@dataclass
class TraceEntry:
    """One traced ``generate`` call."""

    operation: str
    prompt: str
    response: str = ""
    latency_seconds: float = 0.0
    prompt_length: int = 0
    response_length: int = 0
    error: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


def _option_fields(options: Optional[GenerateOptions]) -> dict[str, Any]:
    if options is None:
        return {}
    return {
        f.name: getattr(options, f.name)
        for f in dataclasses.fields(options)
        if f.name != "system_prompt" and getattr(options, f.name) not in (None, [])
    }


class TracingLLMClient(LLMClient):
    """Wraps an LLMClient and records every ``generate`` call.

    ``generate_batch`` and ``generate_json`` run through ``generate`` and are
    traced once per prompt. A failing ``callback`` is logged and ignored.
    """

    def __init__(
        self,
        inner: LLMClient,
        log_level: int = logging.INFO,
        callback: Optional[Callable[[TraceEntry], None]] = None,
    ):
        self._inner = inner
        self._log_level = log_level
        self._callback = callback

    @property
    def model_name(self) -> str:
        return self._inner.model_name

    @property
    def provider(self) -> str:
        return self._inner.provider

    async def generate(self, prompt: str, options: Optional[GenerateOptions] = None) -> str:
        entry = TraceEntry(
            operation="generate",
            prompt=prompt,
            prompt_length=len(prompt),
            metadata={"model": self.model_name, "provider": self.provider, **_option_fields(options)},
        )
        start = time.perf_counter()
        try:
            entry.response = await self._inner.generate(prompt, options)
            entry.response_length = len(entry.response)
            return entry.response
        except Exception as e:
            entry.error = f"{type(e).__name__}: {e}"
            raise
        finally:
            entry.latency_seconds = time.perf_counter() - start
            self._emit(entry)

    def _emit(self, entry: TraceEntry) -> None:
        logger.log(
            self._log_level,
            "LLM %s %s/%s in %.3fs: prompt %s chars, response %s chars%s",
            entry.operation,
            entry.metadata.get("provider"),
            entry.metadata.get("model"),
            entry.latency_seconds,
            entry.prompt_length,
            entry.response_length,
            f", error {entry.error}" if entry.error else "",
        )
        if self._callback:
            try:
                self._callback(entry)
            except Exception as e:
                logger.warning("Tracing callback failed: %s", e)
