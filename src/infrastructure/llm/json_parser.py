"""Robust JSON extraction from LLM replies (code fences, prose, <think> blocks)."""

import json
import re
from typing import Any

THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_reasoning(text: str) -> str:
    """Drop <think>...</think> sections emitted by reasoning models."""
    out: list[str] = []
    i = 0
    while i < len(text):
        start = text.find(THINK_OPEN, i)
        if start == -1:
            out.append(text[i:])
            break
        out.append(text[i:start])
        end = text.find(THINK_CLOSE, start + len(THINK_OPEN))
        if end == -1:
            # Unterminated block: everything after it is reasoning
            break
        i = end + len(THINK_CLOSE)
    return "".join(out).strip()


def _strip_code_fences(text: str) -> str:
    t = text.strip()
    if t.startswith("```") and t.endswith("```"):
        t = _FENCE_OPEN.sub("", t)
        t = _FENCE_CLOSE.sub("", t)
    return t.strip()


def extract_json_object(text: str | None) -> dict[str, Any]:
    """Parse the first JSON object in ``text``.

    Raises:
        ValueError: No JSON object could be found or decoded.

    """
    if not text or not text.strip():
        raise ValueError("Empty response from LLM")
    t = _strip_code_fences(strip_reasoning(text))
    try:
        data = json.loads(t)
    except json.JSONDecodeError:
        m = _JSON_OBJECT.search(t)
        if not m:
            raise ValueError(f"No JSON object in LLM response: {t[:200]!r}") from None
        try:
            data = json.loads(m.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in LLM response: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data
