"""
Pull a JSON object out of free-form model output.

Models wrap JSON in code fences, prepend "Here is the result:" or append
commentary. Extraction tries progressively looser strategies and hands back
the caller's fallback instead of raising.
"""
import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

FENCED_BLOCK = re.compile(r"```(?:json|JSON)?[ \t]*\r?\n?(.*?)\r?\n?```", re.DOTALL)
FENCE_MARKER = re.compile(r"```(?:json|JSON)?")


def _loads_object(candidate: str) -> Optional[dict]:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def extract_json(text: Optional[str], fallback: Any) -> Any:
    """
    Parse the first usable JSON object in `text`.

    Order: fenced code block, whole string with fence markers stripped,
    then the span from the first "{" to the last "}".

    Returns:
        The parsed dict, or `fallback` when nothing parses
    """
    if not text:
        return fallback

    match = FENCED_BLOCK.search(text)
    if match:
        parsed = _loads_object(match.group(1).strip())
        if parsed is not None:
            return parsed

    parsed = _loads_object(FENCE_MARKER.sub("", text).strip())
    if parsed is not None:
        return parsed

    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        parsed = _loads_object(text[first:last + 1])
        if parsed is not None:
            return parsed

    logger.warning(f"Could not extract JSON from model output: {text[:200]!r}")
    return fallback
