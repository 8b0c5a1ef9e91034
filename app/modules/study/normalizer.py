"""Recover a JSON object from a raw model completion.

Models are told to answer with bare JSON but routinely wrap it in a markdown
fence or surround it with prose. Cleaning is a fixed sequence of narrowing
steps; the result is parsed but its shape is not checked here.
"""

from __future__ import annotations

import json
import re
from typing import Any

from app.core.exceptions import ResponseParseError
from app.core.logging import get_logger

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.IGNORECASE | re.DOTALL)


def clean_json_response(text: str) -> str:
    """Strip a whole-string code fence and any prose around the outermost braces."""
    cleaned = (text or "").strip()

    fenced = _FENCE_RE.fullmatch(cleaned)
    if fenced:
        cleaned = fenced.group(1).strip()
        logger.debug("Stripped markdown code block wrapper")

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        cleaned = cleaned[start : end + 1]

    return cleaned


def parse_ai_response(text: str) -> dict[str, Any]:
    """Clean ``text`` and parse it as a JSON object.

    Raises ``ResponseParseError`` when the cleaned text is not valid JSON or
    is not an object. The full offending text is logged, not raised.
    """
    cleaned = clean_json_response(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("JSON parse error: %s; first 500 chars: %r", e, cleaned[:500])
        raise ResponseParseError(str(e), cleaned) from e

    if not isinstance(parsed, dict):
        logger.error("AI response is JSON but not an object: %r", cleaned[:500])
        raise ResponseParseError(
            f"expected a JSON object, got {type(parsed).__name__}", cleaned
        )
    return parsed


__all__ = ["clean_json_response", "parse_ai_response"]
