"""Tests for the ReAct loop run through Agent.invoke()."""

import json

import pytest
from pydantic import BaseModel

from conftest import FakeBackend
from orchestra.agent import Agent, ReActLoop
from orchestra.llm import Completion
from orchestra.models import AgentConfig, Message
from orchestra.tools import ToolRegistry, tool


class BinaryInput(BaseModel):
    a: float
    b: float


@tool(input_model=BinaryInput)
async def add(params: BinaryInput) -> dict:
    """Add two numbers."""
    return {"result": params.a + params.b}


@tool(input_model=BinaryInput)
async def multiply(params: BinaryInput) -> dict:
    """Multiply two numbers."""
    return {"result": params.a * params.b}


def make_math_agent(replies, max_cycles=5, tools=(add, multiply)):
    backend = FakeBackend(replies, token_count=10)
    agent = Agent(
        name="Math",
        model="llama3.2",
        description="Does arithmetic",
        config=AgentConfig(max_observation_cycles=max_cycles),
        tools=tools,
        backend=backend,
    )
    return agent, backend


class TestReActLoop:
    """Tests for think/act/observe cycles."""

    @pytest.mark.asyncio
    async def test_two_tools_then_answer(self):
        """Test (5 + 3) * 2 solved with two tool calls."""
        agent, backend = make_math_agent(
            [
                '<tool>add</tool>\n<input>{"a": 5, "b": 3}</input>',
                '```json\n{"tool": "multiply", "input": {"a": 8, "b": 2}}\n```',
                "The answer is 16.",
            ]
        )

        response = await agent.invoke([Message.user("What is (5 + 3) * 2?")])

        assert response.content == "The answer is 16."
        assert response.token_usage == 30
        assert [c.index for c in response.cycles] == [1, 2, 3]
        assert response.cycles[0].tool_call.name == "add"
        assert response.cycles[0].observation.result == {"result": 8.0}
        assert response.cycles[1].observation.result == {"result": 16.0}
        assert response.cycles[2].tool_call is None

        # Third request carries both tool results
        last_request = backend.requests[2]
        assert last_request[-1] == {
            "role": "user",
            "content": "Tool Result for multiply:\n" + json.dumps({"result": 16.0}),
        }
        assert "Tool Result for add" in last_request[-3]["content"]

    @pytest.mark.asyncio
    async def test_tool_context_in_system_prompt(self):
        """Test that tools are described in the leading system message."""
        agent, backend = make_math_agent(["no tools needed"])

        await agent.invoke([Message.user("hi")])

        system = backend.requests[0][0]
        assert system["role"] == "system"
        assert system["content"].startswith("You are Math. Does arithmetic\n\n")
        assert "- **add**: Add two numbers." in system["content"]
        assert sum(1 for m in backend.requests[0] if m["role"] == "system") == 1

    @pytest.mark.asyncio
    async def test_always_failing_tool_stops_at_limit(self):
        """Test that a tool failing every time runs exactly max cycles."""
        attempts = []

        @tool()
        def flaky(params):
            """Never works."""
            attempts.append(params)
            raise RuntimeError("service down")

        call = "<tool>flaky</tool><input>{}</input>"
        agent, backend = make_math_agent([call] * 10, max_cycles=3, tools=[flaky])

        response = await agent.invoke([Message.user("go")])

        # One retry in place, then the last cycle goes back to the model
        assert len(backend.requests) == 2
        assert len(attempts) == 3
        assert len(response.cycles) == 3
        assert [c.index for c in response.cycles] == [1, 2, 3]
        assert [c.observation.attempt for c in response.cycles] == [1, 2, 3]
        assert response.cycles[1].observation.error == (
            "Tool failed after 2 attempts: Tool execution failed: service down"
        )
        assert response.content == call
        assert response.token_usage == 20

    @pytest.mark.asyncio
    async def test_failing_tool_is_retried_in_place(self):
        """Test that a tool failing once is repeated and its result reported."""
        calls = []

        @tool()
        def flaky(params):
            """Fails on the first call only."""
            calls.append(params)
            if len(calls) == 1:
                raise RuntimeError("transient")
            return {"result": 42}

        agent, backend = make_math_agent(
            ["<tool>flaky</tool><input>{}</input>", "answer 42"], tools=[flaky]
        )

        response = await agent.invoke([Message.user("go")])

        assert len(calls) == 2
        assert response.content == "answer 42"
        first, second, final = response.cycles
        assert first.observation.error == "Tool execution failed: transient"
        assert second.observation.error is None
        assert second.observation.result == {"result": 42}
        assert second.observation.attempt == 2
        assert final.tool_call is None

        # Only the successful result reaches the model, without a failure hint
        second_request = backend.requests[1]
        assert second_request[-1] == {
            "role": "user",
            "content": "Tool Result for flaky:\n" + json.dumps({"result": 42}),
        }
        assert all("The tool call failed" not in m["content"] for m in second_request)

    @pytest.mark.asyncio
    async def test_last_cycle_is_left_to_the_model(self):
        """Test that no retry happens in place when one cycle is left."""
        calls = []

        @tool()
        def flaky(params):
            """Fails on the first call only."""
            calls.append(params)
            if len(calls) == 1:
                return {"error": "busy"}
            return {"result": "ok"}

        call = "<tool>flaky</tool><input>{}</input>"
        agent, backend = make_math_agent([call, call, "never asked"], max_cycles=2, tools=[flaky])

        response = await agent.invoke([Message.user("go")])

        assert len(calls) == 2
        assert len(backend.requests) == 2
        assert len(response.cycles) == 2
        assert response.cycles[0].observation.error == "busy"
        assert backend.requests[1][-1]["content"].endswith("Cycles remaining: 1")
        assert response.content == call

    @pytest.mark.asyncio
    async def test_error_after_retries_reaches_model(self):
        """Test the attempt count in the error reported back to the model."""

        @tool()
        def broken(params):
            """Always fails."""
            return {"error": "quota exceeded"}

        agent, backend = make_math_agent(
            ["<tool>broken</tool><input>{}</input>", "giving up"], max_cycles=3, tools=[broken]
        )

        response = await agent.invoke([Message.user("go")])

        assert response.content == "giving up"
        assert len(response.cycles) == 3
        request = backend.requests[1]
        assert request[-2]["content"] == "Tool Result for broken:\n" + json.dumps(
            {"error": "Tool failed after 2 attempts: quota exceeded"}
        )
        assert request[-1]["role"] == "system"
        assert request[-1]["content"].endswith("Cycles remaining: 1")

    @pytest.mark.asyncio
    async def test_failure_hint_reports_remaining_cycles(self):
        """Test the retry hint after a failed tool call."""
        agent, backend = make_math_agent(
            ["<tool>divide</tool><input>{}</input>", "I cannot divide."], max_cycles=4
        )

        response = await agent.invoke([Message.user("10 / 2")])

        assert response.content == "I cannot divide."
        assert "Tool 'divide' not found" in response.cycles[0].observation.error
        hint = backend.requests[1][-1]
        assert hint["role"] == "system"
        assert "The tool call failed" in hint["content"]
        assert hint["content"].endswith("Cycles remaining: 3")

    @pytest.mark.asyncio
    async def test_validation_error_is_reported(self):
        """Test that invalid input goes back to the model as an error."""
        agent, backend = make_math_agent(
            [
                '<tool>add</tool><input>{"a": 5}</input>',
                '<tool>add</tool><input>{"a": 5, "b": 1}</input>',
                "6",
            ]
        )

        response = await agent.invoke([Message.user("5 + 1")])

        assert response.content == "6"
        first, second = response.cycles[0].observation, response.cycles[1].observation
        assert "Invalid input for tool 'add'" in first.error
        assert (second.attempt, second.result) == (2, {"result": 6.0})
        result_message = backend.requests[1][-2]["content"]
        assert result_message.startswith("Tool Result for add:\n")
        assert "error" in json.loads(result_message.split("\n", 1)[1])

    @pytest.mark.asyncio
    async def test_input_is_not_mutated(self):
        """Test that the caller's history is unchanged after the loop."""
        agent, _ = make_math_agent(['<tool>add</tool><input>{"a": 1, "b": 1}</input>', "2"])
        history = [Message.user("1 + 1")]

        await agent.invoke(history)

        assert history == [Message.user("1 + 1")]


class TestReActLoopDirect:
    """Tests for ReActLoop without an Agent."""

    @pytest.mark.asyncio
    async def test_inserts_system_message_when_missing(self):
        """Test that tool context gets its own system message if needed."""
        seen = []

        async def complete(messages):
            seen.append(messages)
            return Completion(content="final", token_count=1)

        loop = ReActLoop("Solo", complete, ToolRegistry([add]), max_cycles=2)
        response = await loop.run([Message.user("hi")])

        assert response.content == "final"
        assert seen[0][0].role == "system"
        assert seen[0][1] == Message.user("hi")
