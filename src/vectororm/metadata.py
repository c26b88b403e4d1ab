"""Metadata field conventions.

Prefixes mark who owns a field:

- ``__v_`` vertical: identifies the source document, set at ingestion
- ``__h_`` horizontal: derived by enrichment (themes, sections)
- ``__s_`` structural: chunk position within its document

Keys without a prefix belong to the caller.
"""

from typing import Any, Optional

VERTICAL_PREFIX = "__v_"
HORIZONTAL_PREFIX = "__h_"
STRUCTURAL_PREFIX = "__s_"


class VerticalFields:
    DOC_ID = "__v_doc_id"
    SOURCE = "__v_source"
    PARTITION = "__v_partition"
    DOC_TYPE = "__v_doc_type"
    TAGS = "__v_tags"


class HorizontalFields:
    THEME = "__h_theme"
    THEMES = "__h_themes"
    THEME_CONFIDENCE = "__h_theme_confidence"
    SECTION_PATH = "__h_section_path"
    SECTION_LEVEL = "__h_section_level"
    SECTION_TITLE = "__h_section_title"


class StructuralFields:
    CHUNK_INDEX = "__s_chunk_index"
    TOTAL_CHUNKS = "__s_total_chunks"
    START_CHAR = "__s_start_char"
    END_CHAR = "__s_end_char"


def is_vertical_field(key: str) -> bool:
    return key.startswith(VERTICAL_PREFIX)


def is_horizontal_field(key: str) -> bool:
    return key.startswith(HORIZONTAL_PREFIX)


def split_metadata(metadata: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Group metadata by owner: vertical, horizontal, structural, custom."""
    groups: dict[str, dict[str, Any]] = {"vertical": {}, "horizontal": {}, "structural": {}, "custom": {}}
    for key, value in metadata.items():
        if key.startswith(VERTICAL_PREFIX):
            groups["vertical"][key] = value
        elif key.startswith(HORIZONTAL_PREFIX):
            groups["horizontal"][key] = value
        elif key.startswith(STRUCTURAL_PREFIX):
            groups["structural"][key] = value
        else:
            groups["custom"][key] = value
    return groups


def _prefixed(prefix: str, key: str) -> str:
    return key if key.startswith(prefix) else f"{prefix}{key}"


class MetadataBuilder:
    """Fluent builder that applies prefixes and drops None values.

    Example:
        ```python
        meta = (
            MetadataBuilder()
            .vertical(doc_id="report", source="/data/report.pdf")
            .horizontal(theme="finance")
            .custom(author="alice")
            .build()
        )
        # {"__v_doc_id": "report", "__v_source": "/data/report.pdf",
        #  "__h_theme": "finance", "author": "alice"}
        ```
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._metadata: dict[str, Any] = dict(initial or {})

    def vertical(self, **fields: Any) -> "MetadataBuilder":
        return self._add(VERTICAL_PREFIX, fields)

    def horizontal(self, **fields: Any) -> "MetadataBuilder":
        return self._add(HORIZONTAL_PREFIX, fields)

    def structural(self, **fields: Any) -> "MetadataBuilder":
        return self._add(STRUCTURAL_PREFIX, fields)

    def custom(self, **fields: Any) -> "MetadataBuilder":
        return self._add("", fields)

    def update(self, metadata: Optional[dict[str, Any]]) -> "MetadataBuilder":
        """Merge raw keys as-is."""
        for key, value in (metadata or {}).items():
            if value is not None:
                self._metadata[key] = value
        return self

    def build(self) -> dict[str, Any]:
        return dict(self._metadata)

    def _add(self, prefix: str, fields: dict[str, Any]) -> "MetadataBuilder":
        for key, value in fields.items():
            if value is not None:
                self._metadata[_prefixed(prefix, key) if prefix else key] = value
        return self
