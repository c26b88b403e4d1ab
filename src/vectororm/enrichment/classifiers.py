"""Theme classifiers: keyword, embedding and LLM based."""

import asyncio
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from ..embeddings.base import Embedder
from ..llm.base import LLMClient
from ..types import ThemeClassification

UNKNOWN_THEME = "unknown"


def uniform_classification(themes: Sequence[str]) -> ThemeClassification:
    """Equal scores for every theme; the first declared theme is selected."""
    score = 1.0 / len(themes)
    return ThemeClassification(
        theme=themes[0],
        confidence=score,
        all_scores={theme: score for theme in themes},
    )


def _best(themes: Sequence[str], scores: Mapping[str, float]) -> str:
    """Highest score wins; ties go to the earlier theme."""
    best = themes[0]
    for theme in themes[1:]:
        if scores[theme] > scores[best]:
            best = theme
    return best


class ThemeClassifier(ABC):
    """Classifies text into one of a fixed set of themes."""

    @abstractmethod
    async def classify(self, text: str) -> ThemeClassification:
        ...

    async def classify_batch(self, texts: Sequence[str]) -> list[ThemeClassification]:
        """Classify each text in order."""
        return [await self.classify(text) for text in texts]


class KeywordThemeClassifier(ThemeClassifier):
    """Deterministic classification by whole-word keyword matches.

    Each theme's density is its keyword hit count divided by the text's word
    count. ``all_scores`` holds each theme's share of the total density, and
    the winning theme's share is the confidence. Text with no hits is
    classified as ``"unknown"`` with confidence 0.
    """

    def __init__(self, keywords: Mapping[str, Sequence[str]], case_sensitive: bool = False):
        if not keywords:
            raise ValueError("At least one theme is required")
        self.themes = list(keywords)
        flags = 0 if case_sensitive else re.IGNORECASE
        self._patterns = {
            theme: [re.compile(rf"\b{re.escape(kw)}\b", flags) for kw in kws if kw]
            for theme, kws in keywords.items()
        }

    async def classify(self, text: str) -> ThemeClassification:
        return self._classify(text)

    def _classify(self, text: str) -> ThemeClassification:
        zero = {theme: 0.0 for theme in self.themes}
        if not text or not text.strip():
            return ThemeClassification(theme=UNKNOWN_THEME, confidence=0.0, all_scores=zero)
        word_count = max(1, len(re.findall(r"\w+", text)))
        density = {
            theme: sum(len(p.findall(text)) for p in patterns) / word_count
            for theme, patterns in self._patterns.items()
        }
        total = sum(density.values())
        if total == 0:
            return ThemeClassification(theme=UNKNOWN_THEME, confidence=0.0, all_scores=zero)
        scores = {theme: value / total for theme, value in density.items()}
        theme = _best(self.themes, scores)
        return ThemeClassification(theme=theme, confidence=scores[theme], all_scores=scores)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


def softmax(values: Mapping[str, float], temperature: float) -> dict[str, float]:
    peak = max(values.values())
    exps = {k: math.exp((v - peak) / temperature) for k, v in values.items()}
    total = sum(exps.values())
    return {k: v / total for k, v in exps.items()}


class EmbeddingThemeClassifier(ThemeClassifier):
    """Classifies by cosine similarity between text and theme-label embeddings.

    Theme embeddings are computed once on first use unless passed in.
    Similarities are softmax-normalized with ``temperature`` into
    ``all_scores``. Empty text gets a uniform distribution and the first theme.
    """

    def __init__(
        self,
        themes: Sequence[str],
        embedder: Embedder,
        theme_embeddings: Optional[Mapping[str, Sequence[float]]] = None,
        temperature: float = 0.1,
    ):
        if not themes:
            raise ValueError("At least one theme is required")
        if temperature <= 0:
            raise ValueError("temperature must be positive")
        self.themes = list(themes)
        self._embedder = embedder
        self._temperature = temperature
        self._theme_embeddings: Optional[dict[str, list[float]]] = None
        if theme_embeddings is not None:
            missing = [t for t in self.themes if t not in theme_embeddings]
            if missing:
                raise ValueError(f"Missing embeddings for themes: {', '.join(missing)}")
            self._theme_embeddings = {t: list(theme_embeddings[t]) for t in self.themes}
        self._lock = asyncio.Lock()

    async def _get_theme_embeddings(self) -> dict[str, list[float]]:
        if self._theme_embeddings is None:
            async with self._lock:
                if self._theme_embeddings is None:
                    vectors = await self._embedder.embed_batch(self.themes)
                    self._theme_embeddings = dict(zip(self.themes, vectors))
        return self._theme_embeddings

    def _score(self, vector: Sequence[float], theme_embeddings: dict[str, list[float]]) -> ThemeClassification:
        similarities = {t: cosine_similarity(vector, theme_embeddings[t]) for t in self.themes}
        scores = softmax(similarities, self._temperature)
        theme = _best(self.themes, scores)
        return ThemeClassification(theme=theme, confidence=scores[theme], all_scores=scores)

    async def classify(self, text: str) -> ThemeClassification:
        if not text or not text.strip():
            return uniform_classification(self.themes)
        theme_embeddings = await self._get_theme_embeddings()
        return self._score(await self._embedder.embed(text), theme_embeddings)

    async def classify_batch(self, texts: Sequence[str]) -> list[ThemeClassification]:
        results: list[Optional[ThemeClassification]] = [None] * len(texts)
        pending = []
        for i, text in enumerate(texts):
            if not text or not text.strip():
                results[i] = uniform_classification(self.themes)
            else:
                pending.append(i)
        if pending:
            theme_embeddings = await self._get_theme_embeddings()
            vectors = await self._embedder.embed_batch([texts[i] for i in pending])
            for i, vector in zip(pending, vectors):
                results[i] = self._score(vector, theme_embeddings)
        return results  # type: ignore[return-value]


DEFAULT_PROMPT_TEMPLATE = """You are a theme classification system. Classify the following text into one of the provided themes.

Available themes: {themes}

Text to classify:
{text}

Return a JSON object with the following structure:
- theme: the most appropriate theme from the list (string)
- confidence: confidence score between 0 and 1 (number)
- allScores: an object mapping each theme to its confidence score (object)"""


def _clamp(value: Any) -> float:
    try:
        return min(max(float(value), 0.0), 1.0)
    except (TypeError, ValueError):
        return 0.0


class LLMThemeClassifier(ThemeClassifier):
    """Asks an LLM for a structured classification.

    Themes outside the declared list map to ``"unknown"`` with confidence 0.
    Malformed model output raises ``ParseError``.
    """

    def __init__(self, themes: Sequence[str], llm: LLMClient, prompt_template: str = DEFAULT_PROMPT_TEMPLATE):
        if not themes:
            raise ValueError("At least one theme is required")
        self.themes = list(themes)
        self._llm = llm
        self._prompt_template = prompt_template

    async def classify(self, text: str) -> ThemeClassification:
        if not text or not text.strip():
            return uniform_classification(self.themes)
        prompt = self._prompt_template.replace("{themes}", ", ".join(self.themes)).replace("{text}", text)
        result = await self._llm.generate_json(prompt)
        if not isinstance(result, dict):
            result = {}
        raw_scores = result.get("allScores") or result.get("all_scores") or {}
        all_scores = (
            {t: _clamp(raw_scores[t]) for t in self.themes if t in raw_scores}
            if isinstance(raw_scores, dict) else None
        )
        theme = result.get("theme")
        if theme not in self.themes:
            return ThemeClassification(theme=UNKNOWN_THEME, confidence=0.0, all_scores=all_scores or None)
        return ThemeClassification(
            theme=theme,
            confidence=_clamp(result.get("confidence", 0.0)),
            all_scores=all_scores or None,
        )
