"""Textual tool-call protocol: model output -> ToolCall.

Two syntaxes are accepted, checked in this order:

1. Tagged:  ``<tool>NAME</tool><input>{...}</input>``
2. Fenced:  a ```json block holding ``{"tool": "NAME", "input": {...}}``

The first match wins. Malformed JSON inside ``<input>`` does not fail the
parse; it is passed on as ``{"raw": <text>}`` so the tool's input contract
can reject it with a useful message.
"""

import json
import re
from typing import Any

from ..models import FencedCall, TaggedCall, ToolCall

TAGGED_NAME = re.compile(r"<tool>\s*([\w.-]+)\s*</tool>")
TAGGED_INPUT = re.compile(r"<input>(.*?)</input>", re.DOTALL)
FENCED_BLOCK = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


def parse_tool_call(text: str) -> ToolCall | None:
    """Extract the tool call from a model response, or None for a final answer."""
    if not text:
        return None

    tagged = _parse_tagged(text)
    if tagged is not None:
        return tagged
    return _parse_fenced(text)


def _parse_tagged(text: str) -> TaggedCall | None:
    name_match = TAGGED_NAME.search(text)
    if not name_match:
        return None

    arguments: Any = {}
    input_match = TAGGED_INPUT.search(text)
    if input_match:
        arguments = _loads_or_raw(input_match.group(1))
    return TaggedCall(name=name_match.group(1), input=arguments)


def _parse_fenced(text: str) -> FencedCall | None:
    for block in FENCED_BLOCK.finditer(text):
        try:
            data = json.loads(block.group(1))
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict) and isinstance(data.get("tool"), str):
            return FencedCall(name=data["tool"], input=data.get("input") or {})
    return None


def _loads_or_raw(raw: str) -> Any:
    stripped = raw.strip()
    if not stripped:
        return {}
    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        return {"raw": raw}
