"""Manager pattern: an Agent whose tools are other agents."""

import re
from typing import Any, Sequence

from pydantic import BaseModel, Field

from ..errors import ConfigurationError
from ..logging_config import get_logger
from ..models import AgentConfig, Message
from ..tools import ToolDescriptor
from .agent import Agent, Runnable

logger = get_logger(__name__)

# Delegation chains (plan, several delegations, synthesis) need more room
DELEGATION_MAX_CYCLES = 10

ORCHESTRATION_PROMPT = """You are an orchestrator agent named {name}.
Your goal is to solve complex user requests by managing a team of specialized agents.

YOUR TEAM:
{team}

PROTOCOL:
1. PLAN: Analyze the user's request and break it down into sub-tasks.
2. DELEGATE: Use the available "call_*" tools to assign these tasks to the most appropriate team member.
3. SYNTHESIZE: Once you receive results from your agents, combine them into a final, cohesive answer for the user.

Do not attempt to do the specialized work yourself if you have an agent for it. Coordinate them."""


class DelegatedTask(BaseModel):
    """Input of every delegation tool."""

    task: str = Field(
        description="The detailed instruction or question for the agent. "
        "Be specific about what you need back."
    )


def delegation_tool_name(agent_name: str) -> str:
    return "call_" + re.sub(r"[^a-z0-9_]", "_", agent_name.lower())


def delegation_tool(sub_agent: Runnable) -> ToolDescriptor:
    """Wrap a sub-agent as a tool. Sub-agent failures come back as data."""

    async def execute(params: DelegatedTask) -> dict[str, Any]:
        try:
            response = await sub_agent.invoke([Message.user(params.task)])
        except Exception as e:
            logger.warning("Sub-agent %s failed: %s", sub_agent.name, e, exc_info=True)
            return {"agent": sub_agent.name, "error": f"Failed to execute task: {e}"}

        return {
            "agent": sub_agent.name,
            "output": response.content,
            "usage": response.token_usage,
        }

    return ToolDescriptor(
        name=delegation_tool_name(sub_agent.name),
        description=f"Delegates a specific task to {sub_agent.name}.\n"
        f"Capabilities: {sub_agent.description}",
        executor=execute,
        input_model=DelegatedTask,
    )


def orchestration_prompt(
    name: str, agents: Sequence[Runnable], extra_instructions: str | None = None
) -> str:
    team = "\n".join(f"- {a.name}: {a.description}" for a in agents)
    prompt = ORCHESTRATION_PROMPT.format(name=name, team=team)
    if extra_instructions:
        prompt = f"{prompt}\n\nAdditional Instructions:\n{extra_instructions}"
    return prompt


def create_delegating_agent(
    name: str,
    model: str,
    description: str,
    agents: Sequence[Runnable],
    *,
    system_prompt: str | None = None,
    tools: Sequence[ToolDescriptor] = (),
    config: AgentConfig | None = None,
    **agent_options: Any,
) -> Agent:
    """Build an Agent that plans, delegates to ``agents`` and synthesizes.

    ``system_prompt`` is appended to the orchestration prompt as additional
    instructions. Remaining keyword arguments go to ``Agent`` unchanged.
    """
    if not agents:
        raise ConfigurationError("A delegating agent needs at least one sub-agent")

    delegation_tools = [delegation_tool(a) for a in agents]

    return Agent(
        name=name,
        model=model,
        description=description,
        config=config or AgentConfig(max_observation_cycles=DELEGATION_MAX_CYCLES),
        system_prompt=orchestration_prompt(name, agents, system_prompt),
        tools=[*tools, *delegation_tools],
        **agent_options,
    )
