"""Universal filter language: AST, normalization, evaluation and backend dialects."""

from .builder import FilterBuilder
from .dialects import (
    ChromaFilterTranslator,
    NativeFilterTranslator,
    PineconeFilterTranslator,
    QdrantFilterTranslator,
    TurbopufferFilterTranslator,
)
from .translator import FilterTranslator, matches
from .types import And, Condition, FilterOperator, Or, ShorthandFilter, UniversalFilter

__all__ = [
    "And",
    "ChromaFilterTranslator",
    "Condition",
    "FilterBuilder",
    "FilterOperator",
    "FilterTranslator",
    "NativeFilterTranslator",
    "Or",
    "PineconeFilterTranslator",
    "QdrantFilterTranslator",
    "ShorthandFilter",
    "TurbopufferFilterTranslator",
    "UniversalFilter",
    "matches",
]
