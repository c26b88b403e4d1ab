"""Enrichment pipeline: re-scan stored records, derive metadata, merge it back.

Records are read with ``adapter.iterate`` and patched with
``adapter.update_metadata``. Per-record failures are recorded in
``EnrichmentStats.errors``; the pass itself keeps going.
"""

import dataclasses
import inspect
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from ..adapters.base import FilterInput, VectorDBAdapter
from ..llm.base import LLMClient
from ..metadata import HorizontalFields
from ..types import CONTENT_FIELD, EnrichmentStats, MetadataUpdate, ThemeClassification, VectorRecord
from .classifiers import ThemeClassifier

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_CONFIDENCE_THRESHOLD = 0.5
UNSECTIONED = "unsectioned"

ProgressCallback = Callable[[EnrichmentStats], None]
# Returns one patch per record, or None to leave the record untouched
Deriver = Callable[[list[VectorRecord], EnrichmentStats], Awaitable[list[Optional[dict[str, Any]]]]]


@dataclass
class ThemeEnrichmentConfig:
    classifier: ThemeClassifier
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    text_field: str = CONTENT_FIELD
    batch_size: Optional[int] = None
    filter: FilterInput = None
    multi_theme: bool = False
    on_progress: Optional[ProgressCallback] = None


@dataclass
class VerticalEnrichmentConfig:
    """Derive one vertical field per record.

    Exactly one strategy must be set:
        mapping: ``source_field`` value → target value
        extractor: callable (sync or async) returning the value or None
        llm: asks the model to pick one of ``categories`` for the record text
    """

    target_field: str = "__v_category"
    source_field: str = "category"
    mapping: Optional[Mapping[str, Any]] = None
    extractor: Optional[Callable[[VectorRecord], Any]] = None
    llm: Optional[LLMClient] = None
    categories: Sequence[str] = ()
    prompt_template: Optional[str] = None
    text_field: str = CONTENT_FIELD
    batch_size: Optional[int] = None
    filter: FilterInput = None
    on_progress: Optional[ProgressCallback] = None

    def __post_init__(self) -> None:
        strategies = [s for s in (self.mapping, self.extractor, self.llm) if s is not None]
        if len(strategies) != 1:
            raise ValueError("Set exactly one of mapping, extractor or llm")
        if self.llm is not None and not self.categories:
            raise ValueError("LLM vertical enrichment needs categories")


@dataclass
class SectionEnrichmentConfig:
    """Section metadata from an existing path field ("intro/overview") or heading detection."""

    existing_field: Optional[str] = None
    auto_detect: bool = True
    text_field: str = CONTENT_FIELD
    batch_size: Optional[int] = None
    filter: FilterInput = None
    on_progress: Optional[ProgressCallback] = None


@dataclass
class EnrichmentAllConfig:
    """Runs vertical, theme and section passes in that order.

    ``filter`` and ``batch_size`` apply to every pass that does not set its own.
    """

    vertical: Optional[VerticalEnrichmentConfig] = None
    themes: Optional[ThemeEnrichmentConfig] = None
    sections: Optional[SectionEnrichmentConfig] = None
    filter: FilterInput = None
    batch_size: Optional[int] = None


_MARKDOWN_HEADING = re.compile(r"^(#{1,6})\s+(.+)$", re.MULTILINE)
_HTML_HEADING = re.compile(r"<h([1-6])[^>]*>(.+?)</h[1-6]>", re.IGNORECASE | re.DOTALL)
_PATTERN_HEADING = re.compile(r"^SECTION:\s+(.+)$", re.MULTILINE)


def detect_section(text: str) -> tuple[int, str]:
    """Return (level, title) of the first heading found, or (0, "unsectioned")."""
    match = _MARKDOWN_HEADING.search(text)
    if match:
        return len(match.group(1)), match.group(2).strip()
    match = _HTML_HEADING.search(text)
    if match:
        return int(match.group(1)), re.sub(r"<[^>]+>", "", match.group(2)).strip()
    match = _PATTERN_HEADING.search(text)
    if match:
        return 1, match.group(1).strip()
    return 0, UNSECTIONED


def section_from_path(path: Any) -> Optional[dict[str, Any]]:
    if not isinstance(path, str):
        return None
    parts = [p.strip() for p in path.split("/") if p.strip()]
    if not parts:
        return None
    return {
        HorizontalFields.SECTION_PATH: path,
        HorizontalFields.SECTION_LEVEL: len(parts),
        HorizontalFields.SECTION_TITLE: parts[-1],
    }


def _text(record: VectorRecord, field: str) -> Optional[str]:
    value = record.metadata.get(field)
    if isinstance(value, str) and value.strip():
        return value
    return None


class EnrichmentPipeline:
    """Adds horizontal (and derived vertical) metadata to stored records."""

    def __init__(self, adapter: VectorDBAdapter, default_batch_size: int = DEFAULT_BATCH_SIZE):
        self._adapter = adapter
        self._default_batch_size = default_batch_size

    async def enrich_themes(self, collection: str, config: ThemeEnrichmentConfig) -> EnrichmentStats:
        """Classify each record's text and store ``__h_theme`` / ``__h_theme_confidence``.

        Classifications below ``confidence_threshold`` are skipped. In
        multi-theme mode every theme scoring at least the threshold is also
        stored, best first, as a comma-separated ``__h_themes``.
        """

        async def derive(records: list[VectorRecord], stats: EnrichmentStats) -> list[Optional[dict[str, Any]]]:
            patches: list[Optional[dict[str, Any]]] = [None] * len(records)
            indexed = [(i, _text(r, config.text_field)) for i, r in enumerate(records)]
            indexed = [(i, text) for i, text in indexed if text is not None]
            if not indexed:
                return patches
            classifications = await self._classify(config.classifier, records, indexed, stats)
            for (i, _), classification in zip(indexed, classifications):
                if classification is None or classification.confidence < config.confidence_threshold:
                    continue
                patch: dict[str, Any] = {
                    HorizontalFields.THEME: classification.theme,
                    HorizontalFields.THEME_CONFIDENCE: float(classification.confidence),
                }
                if config.multi_theme and classification.all_scores:
                    ranked = sorted(
                        (t for t, s in classification.all_scores.items() if s >= config.confidence_threshold),
                        key=lambda t: -classification.all_scores[t],
                    )
                    if ranked:
                        patch[HorizontalFields.THEMES] = ",".join(ranked)
                patches[i] = patch
            return patches

        return await self._run(collection, "themes", derive, config.batch_size, config.filter, config.on_progress)

    async def _classify(
        self,
        classifier: ThemeClassifier,
        records: list[VectorRecord],
        indexed: list[tuple[int, str]],
        stats: EnrichmentStats,
    ) -> list[Optional[ThemeClassification]]:
        texts = [text for _, text in indexed]
        try:
            return list(await classifier.classify_batch(texts))
        except Exception as e:
            stats.errors.append(f"Batch classification error, falling back to individual classification: {e}")
        results: list[Optional[ThemeClassification]] = []
        for i, text in indexed:
            try:
                results.append(await classifier.classify(text))
            except Exception as e:
                results.append(None)
                stats.errors.append(f"Classification error for record {records[i].id}: {e}")
        return results

    async def enrich_vertical(self, collection: str, config: VerticalEnrichmentConfig) -> EnrichmentStats:
        """Derive ``config.target_field`` by mapping, extractor or LLM."""

        async def value_for(record: VectorRecord) -> Any:
            if config.mapping is not None:
                source = record.metadata.get(config.source_field)
                return config.mapping.get(source) if isinstance(source, str) else None
            if config.extractor is not None:
                value = config.extractor(record)
                if inspect.isawaitable(value):
                    value = await value
                return value
            return await self._llm_category(record, config)

        async def derive(records: list[VectorRecord], stats: EnrichmentStats) -> list[Optional[dict[str, Any]]]:
            patches: list[Optional[dict[str, Any]]] = []
            for record in records:
                try:
                    value = await value_for(record)
                except Exception as e:
                    stats.errors.append(f"Vertical enrichment error for record {record.id}: {e}")
                    value = None
                patches.append({config.target_field: value} if value is not None else None)
            return patches

        return await self._run(collection, "vertical", derive, config.batch_size, config.filter, config.on_progress)

    async def _llm_category(self, record: VectorRecord, config: VerticalEnrichmentConfig) -> Optional[str]:
        text = _text(record, config.text_field)
        if text is None:
            raise ValueError(f"No text found in field '{config.text_field}'")
        categories = ", ".join(config.categories)
        if config.prompt_template:
            prompt = config.prompt_template.replace("{fields}", categories).replace("{text}", text)
        else:
            prompt = (
                f"Classify the following text into one of these categories: {categories}\n\n"
                f"Text: {text}\n\nCategory:"
            )
        answer = (await config.llm.generate(prompt)).strip()
        # Models sometimes add punctuation or change case
        by_lower = {c.lower(): c for c in config.categories}
        return by_lower.get(answer.strip(" .\"'").lower())

    async def enrich_sections(self, collection: str, config: SectionEnrichmentConfig) -> EnrichmentStats:
        """Store ``__h_section_title`` / ``__h_section_level`` (and path when known)."""

        async def derive(records: list[VectorRecord], stats: EnrichmentStats) -> list[Optional[dict[str, Any]]]:
            patches: list[Optional[dict[str, Any]]] = []
            for record in records:
                patch = None
                if config.existing_field:
                    patch = section_from_path(record.metadata.get(config.existing_field))
                if patch is None and config.auto_detect:
                    text = _text(record, config.text_field)
                    if text is not None:
                        level, title = detect_section(text)
                        patch = {
                            HorizontalFields.SECTION_LEVEL: level,
                            HorizontalFields.SECTION_TITLE: title,
                        }
                patches.append(patch)
            return patches

        return await self._run(collection, "sections", derive, config.batch_size, config.filter, config.on_progress)

    async def enrich_all(self, collection: str, config: EnrichmentAllConfig) -> EnrichmentStats:
        """Run every configured pass and return the combined stats."""
        stats = EnrichmentStats()
        for sub_config, run in (
            (config.vertical, self.enrich_vertical),
            (config.themes, self.enrich_themes),
            (config.sections, self.enrich_sections),
        ):
            if sub_config is None:
                continue
            overrides = {}
            if sub_config.filter is None and config.filter is not None:
                overrides["filter"] = config.filter
            if sub_config.batch_size is None and config.batch_size is not None:
                overrides["batch_size"] = config.batch_size
            stats = stats.merge(await run(collection, dataclasses.replace(sub_config, **overrides)))
        return stats

    async def _run(
        self,
        collection: str,
        name: str,
        derive: Deriver,
        batch_size: Optional[int],
        filter: FilterInput,
        on_progress: Optional[ProgressCallback],
    ) -> EnrichmentStats:
        stats = EnrichmentStats()
        started = time.perf_counter()
        async for batch in self._adapter.iterate(
            collection, batch_size=batch_size or self._default_batch_size, filter=filter
        ):
            stats.records_processed += len(batch)
            patches = await derive(batch, stats)
            updates = []
            for record, patch in zip(batch, patches):
                if patch is None or all(record.metadata.get(k) == v for k, v in patch.items()):
                    stats.records_skipped += 1
                    continue
                updates.append(MetadataUpdate(id=record.id, metadata=patch))
            if updates:
                try:
                    await self._adapter.update_metadata(collection, updates)
                    stats.records_updated += len(updates)
                except Exception as e:
                    logger.warning("Failed to update %s records in %s: %s", len(updates), collection, e)
                    stats.errors.append(f"Error updating batch: {e}")
            if on_progress is not None:
                on_progress(stats)
        stats.time_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "Enrichment (%s) on %s: %s processed, %s updated, %s skipped, %s errors in %sms",
            name,
            collection,
            stats.records_processed,
            stats.records_updated,
            stats.records_skipped,
            len(stats.errors),
            stats.time_ms,
        )
        return stats
