"""Router implementation."""

from collections import Counter
from typing import AsyncIterator, Iterable

from pydantic import BaseModel, ValidationError, ValidationInfo, field_validator

from ..agent import Agent, Runnable
from ..config import Settings
from ..errors import ConfigurationError, RoutingValidationError
from ..llm import ILLMBackend
from ..logging_config import get_logger
from ..models import AgentConfig, ChatResponse, History, Message, Route, RouteInfo, coerce_messages

logger = get_logger(__name__)

ROUTER_INSTRUCTION = """You are a router that decides which agent should handle a request based on the user's intent.

Available routes and their intents:
{routes}

You MUST respond with ONLY one of these exact intent names: {intents}
Respond with nothing else, no explanation, no punctuation. Just the intent name."""


class RouteDecision(BaseModel):
    """Classifier output, validated against the router's intents."""

    intent: str

    @field_validator("intent")
    @classmethod
    def intent_must_be_known(cls, value: str, info: ValidationInfo) -> str:
        valid = (info.context or {}).get("valid_intents", ())
        if value not in valid:
            raise ValueError(f"Intent must be one of: {', '.join(valid)}")
        return value


class Router:
    """Selects one agent per conversation from a fixed set of routes.

    An internal classification agent names the intent; anything that is not
    exactly one of the route intents (or any failure while asking) sends the
    conversation to the default agent instead.
    """

    def __init__(
        self,
        model: str,
        default: Runnable,
        routes: Iterable[Route],
        *,
        name: str = "Router",
        description: str = "An intelligent router that directs requests to the appropriate agent",
        config: AgentConfig | None = None,
        redaction: bool | None = None,
        backend: ILLMBackend | None = None,
        api_key: str | None = None,
        settings: Settings | None = None,
    ):
        self.name = name
        self.description = description
        self._default = default
        self._routes = tuple(routes)

        if not self._routes:
            raise ConfigurationError("Router must have at least one route defined")

        duplicates = [i for i, n in Counter(r.intent for r in self._routes).items() if n > 1]
        if duplicates:
            raise ConfigurationError(f"Duplicate route intents: {', '.join(duplicates)}")

        self._by_intent = {route.intent: route for route in self._routes}
        self._valid_intents = tuple(self._by_intent)
        self._instruction = ROUTER_INSTRUCTION.format(
            routes="\n".join(f"- {r.intent}: {r.description}" for r in self._routes),
            intents=", ".join(self._valid_intents),
        )

        self._classifier = Agent(
            name="InternalRouter",
            model=model,
            description="Routes requests to appropriate agents",
            config=config,
            redaction=redaction,
            backend=backend,
            api_key=api_key,
            settings=settings,
        )

    @property
    def default(self) -> Runnable:
        return self._default

    @property
    def valid_intents(self) -> tuple[str, ...]:
        return self._valid_intents

    @property
    def classifier(self) -> Agent:
        return self._classifier

    def get_available_routes(self) -> tuple[RouteInfo, ...]:
        """List routes as read-only views."""
        return tuple(
            RouteInfo(intent=r.intent, description=r.description, agent_name=r.agent.name)
            for r in self._routes
        )

    def validate_intent(self, label: str) -> str:
        try:
            decision = RouteDecision.model_validate(
                {"intent": label}, context={"valid_intents": self._valid_intents}
            )
        except ValidationError as e:
            raise RoutingValidationError(label, list(self._valid_intents)) from e
        return decision.intent

    async def route(self, history: History) -> Runnable:
        """Pick the agent for this conversation. Never raises for bad labels."""
        try:
            messages = coerce_messages(history) + [Message.system(self._instruction)]
            response = await self._classifier.invoke(messages)
            intent = self.validate_intent(response.content.strip())
        except RoutingValidationError as e:
            logger.warning("Router response validation failed: %s. Using default agent.", e)
            return self._default
        except Exception as e:
            logger.warning("Router failed: %s. Using default agent.", e, exc_info=True)
            return self._default

        selected = self._by_intent[intent].agent
        logger.info("Routed to %s (intent=%s)", selected.name, intent)
        return selected

    async def invoke(self, history: History) -> ChatResponse:
        """Route, then invoke the selected agent with the same conversation."""
        messages = coerce_messages(history)
        selected = await self.route(messages)
        return await selected.invoke(messages)

    async def stream(self, history: History) -> AsyncIterator[str]:
        """Route, then stream from the selected agent."""
        messages = coerce_messages(history)
        selected = await self.route(messages)
        async for fragment in selected.stream(messages):
            yield fragment
