"""Orchestra: agents, routers and workflows over local and cloud LLM backends."""

from .agent import Agent, IKnowledgeSource, Runnable, create_delegating_agent
from .config import Settings
from .errors import (
    BackendError,
    ConfigurationError,
    ModelNotFoundError,
    OrchestraError,
    RoutingValidationError,
    StageError,
    ToolNotFoundError,
    ToolValidationError,
)
from .llm import ILLMBackend, create_backend
from .models import AgentConfig, ChatResponse, Message, Route, RouteInfo
from .routing import Router
from .safety import redact
from .tools import ToolDescriptor, ToolRegistry, tool
from .workflow import Workflow

__all__ = [
    # Runnables
    "Agent",
    "Router",
    "Workflow",
    "Runnable",
    "create_delegating_agent",
    # Models
    "AgentConfig",
    "ChatResponse",
    "Message",
    "Route",
    "RouteInfo",
    # Components
    "IKnowledgeSource",
    "ILLMBackend",
    "create_backend",
    "Settings",
    "ToolDescriptor",
    "ToolRegistry",
    "tool",
    "redact",
    # Errors
    "OrchestraError",
    "ConfigurationError",
    "BackendError",
    "ModelNotFoundError",
    "ToolValidationError",
    "ToolNotFoundError",
    "RoutingValidationError",
    "StageError",
]
