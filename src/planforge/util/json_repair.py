"""Best-effort JSON repair utilities for model replies."""

from __future__ import annotations

import ast
import json
import re
from typing import Any


_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_LITERALS = {"true": "True", "false": "False", "null": "None"}


class JsonRepairError(ValueError):
    """Raised when JSON repair fails."""


def _strip_fences(text: str) -> str:
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _extract_json_block(text: str) -> str:
    start_index = None
    for idx, char in enumerate(text):
        if char in "{[":
            start_index = idx
            break
    if start_index is None:
        raise JsonRepairError("No JSON object or array found")
    depth = 0
    in_string = False
    escape = False
    for idx in range(start_index, len(text)):
        char = text[idx]
        if in_string:
            if escape:
                escape = False
            elif char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
            continue
        if char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
            if depth == 0:
                return text[start_index : idx + 1]
    raise JsonRepairError("Unbalanced JSON braces")


def _remove_trailing_commas(text: str) -> str:
    return re.sub(r",\s*([}\]])", r"\1", text)


def _replace_single_quotes(text: str) -> str:
    return re.sub(r"(?<!\\)'([^'\\]*(?:\\.[^'\\]*)*)'", r'"\1"', text)


def _python_literals(text: str) -> str:
    return re.sub(r"\b(true|false|null)\b", lambda m: _LITERALS[m.group(1)], text)


def _attempts(block: str) -> list[str]:
    cleaned = _remove_trailing_commas(block)
    quoted = _remove_trailing_commas(_replace_single_quotes(cleaned))
    return [cleaned, quoted]


def repair_json(text: str) -> Any:
    """Parse JSON with best-effort repairs.

    Handles markdown fences, prose around the payload, trailing commas,
    single-quoted strings and Python-style literals.
    """
    block = _extract_json_block(_strip_fences(text))
    last_error: Exception | None = None
    for candidate in _attempts(block):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as exc:
            last_error = exc
        try:
            return ast.literal_eval(_python_literals(candidate))
        except (ValueError, SyntaxError) as exc:
            last_error = exc
    raise JsonRepairError(f"Failed to repair JSON: {last_error}") from last_error


def load_json_object(text: str) -> dict[str, Any]:
    """Decode a model reply into a JSON object, repairing it when needed."""
    try:
        payload = json.loads(text.strip())
    except json.JSONDecodeError:
        payload = repair_json(text)
    if not isinstance(payload, dict):
        raise JsonRepairError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload
