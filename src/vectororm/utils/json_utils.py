"""JSON extraction from LLM output."""

import json
import re
from typing import Any, Optional

_FENCED = re.compile(r"```(?:json)?\s*([\[{].*?[\]}])\s*```", re.DOTALL)
_OBJECT = re.compile(r"(\{[\s\S]*\})")
_ARRAY = re.compile(r"(\[[\s\S]*\])")


def parse_json_from_text(text: str) -> Optional[Any]:
    """
    Extract the first JSON object or array from text. Handles markdown code
    fences and surrounding prose.

    Args:
        text: Raw text that may contain JSON.

    Returns:
        Parsed value (dict or list), or None if no valid JSON found.
    """
    if not text or not text.strip():
        return None
    text = text.strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    candidates = []
    fenced = _FENCED.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    for pattern in (_OBJECT, _ARRAY):
        m = pattern.search(text)
        if m:
            candidates.append(m.group(1))
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None
