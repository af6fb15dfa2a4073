"""Agent-related data models."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..agent.agent import Runnable


@dataclass(frozen=True)
class AgentConfig:
    """Generation and loop limits owned by a single Agent."""

    temperature: float = 0.7
    max_tokens: int = 1024
    max_observation_cycles: int = 5

    def __post_init__(self) -> None:
        if self.max_observation_cycles < 1:
            raise ConfigurationError("max_observation_cycles must be >= 1")
        if self.max_tokens < 1:
            raise ConfigurationError("max_tokens must be >= 1")


@dataclass(frozen=True)
class Route:
    """Maps a classified intent to the agent that handles it."""

    intent: str
    description: str
    agent: "Runnable"


@dataclass(frozen=True)
class RouteInfo:
    """Read-only view of a Route."""

    intent: str
    description: str
    agent_name: str
