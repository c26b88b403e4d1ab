"""Retrieval and retrieval-augmented generation."""

from .client import DEFAULT_SYSTEM_PROMPT, RAGClient, RAGResponse, build_prompt
from .composer import RAGQueryComposer, RetrievalResult, group_records

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "RAGClient",
    "RAGQueryComposer",
    "RAGResponse",
    "RetrievalResult",
    "build_prompt",
    "group_records",
]
