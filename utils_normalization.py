import json
import re
from typing import Any, Optional

import config_master as config

JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.S | re.I)
GREEDY_OBJECT_RE = re.compile(r"\{.*\}", re.S)

NESTED_BULLET = "  • "


def normalize_value(value: Any) -> str:
    """
    Flattens a parsed JSON value into a single formatted string.

    Lists become a 1-based numbered list, objects become bulleted
    "key: value" entries separated by blank lines, and scalars are
    written the way JSON writes them.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "\n".join(f"{i + 1}. {normalize_value(item)}" for i, item in enumerate(value))
    if isinstance(value, dict):
        entries = []
        for key, item in value.items():
            text = normalize_value(item)
            if "\n" in text:
                bullets = "\n".join(f"{NESTED_BULLET}{line}" for line in text.split("\n"))
                entries.append(f"{key}:\n{bullets}")
            else:
                entries.append(f"• {key}: {text}")
        return "\n\n".join(entries)
    return json.dumps(value)


def coerce_plan(candidate: Any) -> Optional[dict]:
    """
    Best-effort coercion of every plan field to a flat string.
    Returns None when the candidate is not an object or a field is absent.
    """
    if not isinstance(candidate, dict):
        return None
    coerced = {}
    for field in config.PLAN_FIELDS:
        value = candidate.get(field)
        if value is None:
            return None
        coerced[field] = normalize_value(value)
    return coerced


def parse_model_content(text: str) -> Any:
    """Parses the reply as JSON, falling back to the first fenced code block."""
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        pass
    match = JSON_BLOCK_RE.search(text)
    if not match:
        return None
    try:
        return json.loads(match.group(1))
    except ValueError:
        return None


def extract_json_object(text: str) -> Any:
    """
    Greedy first-'{' to last-'}' extraction from free text.
    Trailing prose containing braces is captured too and makes the parse fail.
    """
    if not text:
        return None
    match = GREEDY_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        return json.loads(match.group(0))
    except ValueError:
        return None
