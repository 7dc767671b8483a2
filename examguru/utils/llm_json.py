"""Helpers for pulling JSON objects out of raw LLM text."""

from __future__ import annotations

import json
import re
from typing import Any

# LLMs frequently wrap JSON in markdown fences despite being asked not to.
_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)


def strip_code_fences(text: str) -> str:
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_json_object(text: str) -> dict[str, Any]:
    """Decode *text* as a JSON object.

    Raises
    ------
    ValueError
        If the text is empty, is not valid JSON, or decodes to something
        other than an object.  ``json.JSONDecodeError`` is a subclass, so
        callers only need to catch ``ValueError``.
    """
    cleaned = strip_code_fences(text or "")
    if not cleaned:
        raise ValueError("empty response from language model")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValueError(f"response is not valid JSON ({exc.msg})") from exc
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object at the top level")
    return data
