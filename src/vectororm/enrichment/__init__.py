"""Metadata enrichment: theme classification, vertical fields and sections."""

from .classifiers import (
    UNKNOWN_THEME,
    EmbeddingThemeClassifier,
    KeywordThemeClassifier,
    LLMThemeClassifier,
    ThemeClassifier,
)
from .pipeline import (
    EnrichmentAllConfig,
    EnrichmentPipeline,
    SectionEnrichmentConfig,
    ThemeEnrichmentConfig,
    VerticalEnrichmentConfig,
    detect_section,
)

__all__ = [
    "EmbeddingThemeClassifier",
    "EnrichmentAllConfig",
    "EnrichmentPipeline",
    "KeywordThemeClassifier",
    "LLMThemeClassifier",
    "SectionEnrichmentConfig",
    "ThemeClassifier",
    "ThemeEnrichmentConfig",
    "UNKNOWN_THEME",
    "VerticalEnrichmentConfig",
    "detect_section",
]
