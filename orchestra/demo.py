"""Default served runnable: a small local assistant with a calculator tool."""

import operator
from typing import Literal

from pydantic import BaseModel

from .agent import Agent
from .config import Settings
from .models import AgentConfig
from .tools import tool

DEFAULT_MODEL = "llama3.2"

OPERATIONS = {
    "add": operator.add,
    "subtract": operator.sub,
    "multiply": operator.mul,
    "divide": operator.truediv,
}


class CalculatorInput(BaseModel):
    operation: Literal["add", "subtract", "multiply", "divide"]
    a: float
    b: float


@tool(input_model=CalculatorInput)
def calculator(params: CalculatorInput) -> dict:
    """Perform basic arithmetic (add, subtract, multiply, divide) on two numbers."""
    if params.operation == "divide" and params.b == 0:
        return {"error": "Division by zero"}
    return {"result": OPERATIONS[params.operation](params.a, params.b)}


def create_assistant(settings: Settings) -> Agent:
    return Agent(
        name="Assistant",
        model=DEFAULT_MODEL,
        description="A helpful assistant that can do arithmetic",
        config=AgentConfig(temperature=0.2),
        tools=[calculator],
        settings=settings,
    )
