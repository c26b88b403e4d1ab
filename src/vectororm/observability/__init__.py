"""Observability helpers (LLM tracing)."""

from .tracing import TraceEntry, TracingLLMClient

__all__ = ["TraceEntry", "TracingLLMClient"]
