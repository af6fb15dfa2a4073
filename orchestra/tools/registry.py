"""Tool descriptors, the tool() decorator and the per-agent ToolRegistry."""

import inspect
import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator

from pydantic import BaseModel, ValidationError
from pydantic_core import to_jsonable_python

from ..errors import ConfigurationError, ToolNotFoundError, ToolValidationError
from ..logging_config import get_logger
from ..models import ToolCall, ToolObservation

logger = get_logger(__name__)

Executor = Callable[[Any], Any]  # sync or async; receives the validated input


CALL_SYNTAX = """You have access to the following tools. When you need to use a tool, format it as:
<tool>toolName</tool>
<input>{"param1": "value1", "param2": "value2"}</input>

You may instead reply with a fenced JSON block:
```json
{"tool": "toolName", "input": {"param1": "value1"}}
```"""

CALL_GUIDANCE = (
    "Call one tool per reply, observe its result, and reason about next steps. "
    "When you have the final answer, reply without a tool call."
)


@dataclass(frozen=True)
class ToolDescriptor:
    """A callable tool: name, description, input contract and executor."""

    name: str
    description: str
    executor: Executor
    input_model: type[BaseModel] | None = None

    def validate(self, arguments: Any) -> Any:
        """Check arguments against the input model; return what the executor gets."""
        if self.input_model is None:
            return arguments
        try:
            return self.input_model.model_validate(arguments)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
                for err in e.errors()
            )
            raise ToolValidationError(self.name, problems) from e

    def describe_input(self) -> str:
        if self.input_model is None:
            return "See tool description"

        schema = self.input_model.model_json_schema()
        required = set(schema.get("required", []))
        fields = []
        for field_name, spec in schema.get("properties", {}).items():
            type_name = spec.get("type", "any")
            marker = "" if field_name in required else ", optional"
            fields.append(f"{field_name} ({type_name}{marker})")
        return "{" + ", ".join(fields) + "}"


def tool(
    name: str | None = None,
    description: str | None = None,
    input_model: type[BaseModel] | None = None,
) -> Callable[[Executor], ToolDescriptor]:
    """Turn a function into a ToolDescriptor.

    Example::

        class AddInput(BaseModel):
            a: float
            b: float

        @tool(input_model=AddInput)
        async def add(params: AddInput) -> dict:
            \"\"\"Add two numbers.\"\"\"
            return {"result": params.a + params.b}
    """

    def decorator(func: Executor) -> ToolDescriptor:
        doc = inspect.getdoc(func) or ""
        return ToolDescriptor(
            name=name or func.__name__,
            description=description or doc.split("\n", 1)[0],
            executor=func,
            input_model=input_model,
        )

    return decorator


class ToolRegistry:
    """Tools available to one agent, keyed by name.

    Filled once when the agent is built and only read afterwards.
    """

    def __init__(self, tools: Iterable[ToolDescriptor] = ()):
        self._tools: dict[str, ToolDescriptor] = {}
        for descriptor in tools:
            self.register(descriptor)

    def register(self, descriptor: ToolDescriptor) -> None:
        if not isinstance(descriptor, ToolDescriptor):
            raise ConfigurationError(
                f"Expected a ToolDescriptor, got {type(descriptor).__name__}"
            )
        if descriptor.name in self._tools:
            raise ConfigurationError(f"Duplicate tool name: {descriptor.name}")
        self._tools[descriptor.name] = descriptor

    def get(self, name: str) -> ToolDescriptor:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name, self.names) from None

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    def render_context(self) -> str:
        """Describe every tool and the accepted call syntax for the system prompt."""
        if not self._tools:
            return ""

        descriptions = "\n\n".join(
            f"- **{t.name}**: {t.description}\n  Input: {t.describe_input()}"
            for t in self._tools.values()
        )
        return f"{CALL_SYNTAX}\n\nAvailable Tools:\n{descriptions}\n\n{CALL_GUIDANCE}"

    async def execute(self, call: ToolCall, attempt: int = 1) -> ToolObservation:
        """Run a parsed tool call. Every failure comes back as an observation."""
        try:
            descriptor = self.get(call.name)
            arguments = descriptor.validate(call.input)
        except (ToolNotFoundError, ToolValidationError) as e:
            logger.info("Tool call rejected: %s", e)
            return ToolObservation(tool_name=call.name, error=str(e), attempt=attempt)

        try:
            result = descriptor.executor(arguments)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning(
                "Tool '%s' raised on attempt %s: %s", call.name, attempt, e, exc_info=True
            )
            return ToolObservation(
                tool_name=call.name,
                error=f"Tool execution failed: {e}",
                attempt=attempt,
                retryable=True,
            )

        result = to_jsonable(result)
        if isinstance(result, dict) and result.get("error"):
            return ToolObservation(
                tool_name=call.name,
                result=result,
                error=str(result["error"]),
                attempt=attempt,
                retryable=True,
            )
        return ToolObservation(tool_name=call.name, result=result, attempt=attempt)


def to_jsonable(value: Any) -> Any:
    """Plain JSON data for a tool result, including models nested in lists and dicts."""
    return to_jsonable_python(value, fallback=str)


def render_observation(observation: ToolObservation) -> str:
    """JSON text reported back to the model for one observation."""
    if observation.failed:
        return json.dumps({"error": observation.error}, default=str)
    return json.dumps(observation.result, default=str)
