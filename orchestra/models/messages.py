"""Message-related data models."""

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Literal, Mapping, get_args

from .tracing import ObservationCycle

Role = Literal["system", "user", "assistant", "tool"]

ROLES: tuple[str, ...] = get_args(Role)

# Conversation input accepted everywhere: Messages or wire-shaped dicts
History = Iterable["Message | Mapping[str, Any]"]


@dataclass(frozen=True)
class Message:
    """A single message in a conversation.

    Messages are immutable: transformations such as redaction produce a new
    Message via ``with_content``.
    """

    role: Role
    content: str
    name: str | None = None
    metadata: Mapping[str, Any] | None = None

    @classmethod
    def system(cls, content: str, name: str | None = None) -> "Message":
        return cls(role="system", content=content, name=name)

    @classmethod
    def user(cls, content: str, name: str | None = None) -> "Message":
        return cls(role="user", content=content, name=name)

    @classmethod
    def assistant(cls, content: str, name: str | None = None) -> "Message":
        return cls(role="assistant", content=content, name=name)

    @classmethod
    def tool(cls, content: str, name: str | None = None) -> "Message":
        return cls(role="tool", content=content, name=name)

    def with_content(self, content: str) -> "Message":
        """Return a copy of this message with new content."""
        return replace(self, content=content)

    def to_wire(self) -> dict:
        """Plain dict shape exchanged with backends."""
        wire = {"role": self.role, "content": self.content}
        if self.name:
            wire["name"] = self.name
        return wire


def coerce_messages(history: History) -> list[Message]:
    """Accept Messages or wire-shaped dicts and return a list of Messages."""
    messages: list[Message] = []
    for item in history:
        if isinstance(item, Message):
            messages.append(item)
            continue

        role = item.get("role")
        if role not in ROLES:
            raise ValueError(f"Unknown message role: {role!r}")
        messages.append(
            Message(
                role=role,
                content=str(item.get("content", "")),
                name=item.get("name"),
                metadata=item.get("metadata"),
            )
        )
    return messages


@dataclass
class ChatResponse:
    """Result of invoking an Agent, Router or Workflow."""

    content: str
    token_usage: int = 0
    cycles: list[ObservationCycle] = field(default_factory=list)
    stage_responses: list["ChatResponse"] | None = None
