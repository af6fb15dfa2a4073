"""Agent module."""

from .agent import Agent, IKnowledgeSource, Runnable
from .delegation import (
    DELEGATION_MAX_CYCLES,
    DelegatedTask,
    create_delegating_agent,
    delegation_tool,
    delegation_tool_name,
)
from .react import ReActLoop

__all__ = [
    "Agent",
    "IKnowledgeSource",
    "Runnable",
    "ReActLoop",
    "DELEGATION_MAX_CYCLES",
    "DelegatedTask",
    "create_delegating_agent",
    "delegation_tool",
    "delegation_tool_name",
]
