"""Core data models for Orchestra."""

from .agents import AgentConfig, Route, RouteInfo
from .messages import ROLES, ChatResponse, History, Message, Role, coerce_messages
from .tracing import FencedCall, ObservationCycle, TaggedCall, ToolCall, ToolObservation

__all__ = [
    # Messages
    "Role",
    "ROLES",
    "Message",
    "ChatResponse",
    "History",
    "coerce_messages",
    # Agents
    "AgentConfig",
    "Route",
    "RouteInfo",
    # Tracing
    "TaggedCall",
    "FencedCall",
    "ToolCall",
    "ToolObservation",
    "ObservationCycle",
]
