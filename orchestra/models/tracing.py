"""Per-invocation trace models for the ReAct loop."""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class TaggedCall:
    """Tool call written as <tool>NAME</tool><input>{...}</input>."""

    name: str
    input: Any


@dataclass(frozen=True)
class FencedCall:
    """Tool call written as a fenced JSON block with "tool" and "input" keys."""

    name: str
    input: Any


ToolCall = Union[TaggedCall, FencedCall]


@dataclass(frozen=True)
class ToolObservation:
    """Outcome of one tool call, as reported back to the model."""

    tool_name: str
    result: Any = None
    error: str | None = None
    attempt: int = 1  # how many times this tool has been called in the invocation
    retryable: bool = False  # the executor ran and failed; the same call may be repeated

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class ObservationCycle:
    """One THINK (+ ACT + OBSERVE) iteration of a single invocation."""

    index: int
    thought: str
    tool_call: ToolCall | None = None
    observation: ToolObservation | None = None
