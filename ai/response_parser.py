"""
Generic utilities for parsing structured data from LLM responses.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

_PAIRS = {"{": "}", "[": "]"}


def parse_llm_json(raw: str) -> Optional[Union[Dict[str, Any], List[Any]]]:
    """
    Extract a JSON object or array from a (possibly messy) LLM response.

    Providers with native structured output return bare JSON; the rest
    may wrap it.  Handles:
      - Markdown code fences (```json ... ```)
      - Leading/trailing prose around the JSON payload
      - Nested structures

    Returns the parsed Python dict/list, or ``None`` if no valid JSON was
    found.
    """
    if not raw:
        return None

    # Strip markdown code fences if present
    cleaned = raw.strip()
    cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned)
    cleaned = re.sub(r"\s*```$", "", cleaned)
    cleaned = cleaned.strip()

    json_str = _extract_json_substring(cleaned)
    if json_str is None:
        logger.warning(
            "LLM response did not contain a JSON object or array: %s",
            raw[:200],
        )
        return None

    try:
        return json.loads(json_str)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse LLM JSON: %s, %s", exc, json_str[:200])
        return None


def _extract_json_substring(text: str) -> Optional[str]:
    """
    Find the outermost ``{…}`` or ``[…]`` substring, whichever opens
    first, so arrays nested inside an object do not win.
    """
    starts = [(text.find(ch), ch) for ch in _PAIRS if text.find(ch) != -1]
    if not starts:
        return None
    start, open_char = min(starts)
    end = text.rfind(_PAIRS[open_char])
    if end <= start:
        return None
    return text[start : end + 1]
