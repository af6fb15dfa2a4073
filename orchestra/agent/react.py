"""Bounded think/act/observe loop for tool-using agents."""

from collections import Counter
from dataclasses import replace
from typing import Awaitable, Callable

from ..llm import Completion
from ..logging_config import get_logger
from ..models import ChatResponse, Message, ObservationCycle, ToolCall, ToolObservation
from ..tools import ToolRegistry, parse_tool_call, render_observation

logger = get_logger(__name__)

CompleteFn = Callable[[list[Message]], Awaitable[Completion]]


class ReActLoop:
    """State of one ReAct run. Built per invocation and discarded afterwards.

    THINK asks the backend for the next step. A parsed tool call leads to ACT
    (execute) and OBSERVE (feed the result back); anything else is the final
    answer. When the executor fails, the same call is repeated in place until
    it succeeds or only one cycle is left, which is kept for the model to
    react to the final error.

    Everything draws from one budget of ``max_cycles``: each THINK uses one
    cycle and so does each repeated attempt of a failing call. Every unit of
    budget shows up as one ``ObservationCycle`` in the response.
    """

    def __init__(
        self,
        agent_name: str,
        complete: CompleteFn,
        tools: ToolRegistry,
        max_cycles: int,
    ):
        self._agent_name = agent_name
        self._complete = complete
        self._tools = tools
        self._max_cycles = max_cycles

    async def run(self, messages: list[Message]) -> ChatResponse:
        conversation = self._with_tool_context(messages)
        cycles: list[ObservationCycle] = []
        attempts: Counter[str] = Counter()
        token_usage = 0
        content = ""

        while len(cycles) < self._max_cycles:
            completion = await self._complete(conversation)
            token_usage += completion.token_count
            content = completion.content

            call = parse_tool_call(content)
            if call is None:
                cycles.append(ObservationCycle(index=len(cycles) + 1, thought=content))
                logger.info(
                    "Agent %s answered after %s cycle(s)", self._agent_name, len(cycles)
                )
                return ChatResponse(content=content, token_usage=token_usage, cycles=cycles)

            observation = await self._act(call, content, attempts, cycles)

            conversation.append(Message.assistant(content))
            conversation.append(
                Message.user(
                    f"Tool Result for {call.name}:\n{render_observation(observation)}"
                )
            )

            remaining = self._max_cycles - len(cycles)
            if observation.failed and remaining > 0:
                conversation.append(
                    Message.system(
                        f"The tool call failed: {observation.error}. Please try again "
                        f"or use a different approach. Cycles remaining: {remaining}"
                    )
                )

        logger.warning(
            "Agent %s stopped at the limit of %s cycles",
            self._agent_name,
            self._max_cycles,
        )
        return ChatResponse(content=content, token_usage=token_usage, cycles=cycles)

    async def _act(
        self,
        call: ToolCall,
        thought: str,
        attempts: Counter[str],
        cycles: list[ObservationCycle],
    ) -> ToolObservation:
        """Execute ``call``, repeating it while the executor fails and budget remains.

        Appends one cycle per attempt and returns the observation to report.
        """
        run = 0
        while True:
            run += 1
            attempts[call.name] += 1
            observation = await self._tools.execute(call, attempt=attempts[call.name])
            cycles.append(
                ObservationCycle(
                    index=len(cycles) + 1,
                    thought=thought,
                    tool_call=call,
                    observation=observation,
                )
            )
            self._log_cycle(call, observation, len(cycles))

            if not (observation.failed and observation.retryable):
                break
            # The last cycle stays free so the model can react to the error
            if len(cycles) >= self._max_cycles - 1:
                break

        if observation.failed and run > 1:
            observation = replace(
                observation,
                error=f"Tool failed after {run} attempts: {observation.error}",
            )
            cycles[-1] = replace(cycles[-1], observation=observation)
        return observation

    def _log_cycle(self, call: ToolCall, observation: ToolObservation, index: int) -> None:
        logger.info(
            "Agent %s cycle %s: %s -> %s",
            self._agent_name,
            index,
            call.name,
            "error" if observation.failed else "ok",
            extra={
                "context": {
                    "agent": self._agent_name,
                    "cycle": index,
                    "tool": call.name,
                    "attempt": observation.attempt,
                    "error": observation.error,
                }
            },
        )

    def _with_tool_context(self, messages: list[Message]) -> list[Message]:
        conversation = list(messages)
        tool_context = self._tools.render_context()
        if conversation and conversation[0].role == "system":
            head = conversation[0]
            conversation[0] = head.with_content(f"{head.content}\n\n{tool_context}")
        else:
            conversation.insert(0, Message.system(tool_context))
        return conversation
