"""Tools module."""

from .protocol import parse_tool_call
from .registry import (
    Executor,
    ToolDescriptor,
    ToolRegistry,
    render_observation,
    to_jsonable,
    tool,
)

__all__ = [
    "Executor",
    "ToolDescriptor",
    "ToolRegistry",
    "parse_tool_call",
    "render_observation",
    "to_jsonable",
    "tool",
]
