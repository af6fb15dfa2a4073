"""Agent implementation."""

from typing import AsyncIterator, Iterable, Protocol

from ..config import Settings
from ..errors import ModelNotFoundError
from ..llm import (
    BackendKind,
    Completion,
    GenerationOptions,
    ILLMBackend,
    IProvisioningBackend,
    backend_kind_for,
    create_backend,
)
from ..logging_config import get_logger
from ..models import AgentConfig, ChatResponse, History, Message, coerce_messages
from ..safety import Redactor, redact
from ..tools import ToolDescriptor, ToolRegistry
from .react import ReActLoop

logger = get_logger(__name__)


class Runnable(Protocol):
    """Anything that can answer a conversation: Agent, Router, Workflow."""

    name: str
    description: str

    async def invoke(self, history: History) -> ChatResponse:
        """Produce one complete response."""
        ...

    def stream(self, history: History) -> AsyncIterator[str]:
        """Produce the response as text fragments."""
        ...


class IKnowledgeSource(Protocol):
    """Similarity search over a passage store."""

    async def search(self, query: str, limit: int = 5) -> list[str]:
        """Return passages ordered by relevance."""
        ...


class Agent:
    """Reasoning/acting core around one model.

    Construction fixes everything: backend, tools, prompts and limits. Each
    ``invoke``/``stream`` call keeps its working state on its own stack, so a
    single Agent can serve concurrent callers.
    """

    def __init__(
        self,
        name: str,
        model: str,
        description: str,
        *,
        config: AgentConfig | None = None,
        system_prompt: str | None = None,
        tools: Iterable[ToolDescriptor] = (),
        knowledge_source: IKnowledgeSource | None = None,
        redaction: bool | None = None,
        redactor: Redactor = redact,
        backend: ILLMBackend | None = None,
        api_key: str | None = None,
        settings: Settings | None = None,
    ):
        self._name = name
        self._model = model
        self._description = description
        self._config = config or AgentConfig()
        self._system_prompt = system_prompt
        self._tools = ToolRegistry(tools)
        self._knowledge_source = knowledge_source
        self._redactor = redactor

        self._backend_kind: BackendKind = backend_kind_for(model)
        # Cloud traffic leaves the process, so it is redacted unless told otherwise
        self._redaction_enabled = (
            redaction if redaction is not None else self._backend_kind == "cloud"
        )
        self._backend = backend or create_backend(model, settings, api_key)
        self._options = GenerationOptions(
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def model(self) -> str:
        return self._model

    @property
    def description(self) -> str:
        return self._description

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def system_prompt(self) -> str | None:
        return self._system_prompt

    @property
    def effective_system_prompt(self) -> str:
        return self._system_prompt or f"You are {self._name}. {self._description}"

    @property
    def tools(self) -> ToolRegistry:
        return self._tools

    @property
    def knowledge_source(self) -> IKnowledgeSource | None:
        return self._knowledge_source

    @property
    def backend_kind(self) -> BackendKind:
        return self._backend_kind

    @property
    def redaction_enabled(self) -> bool:
        return self._redaction_enabled

    @property
    def backend(self) -> ILLMBackend:
        return self._backend

    def __repr__(self) -> str:
        return f"Agent(name={self._name!r}, model={self._model!r}, tools={self._tools.names})"

    async def prepare_context(self, history: History) -> list[Message]:
        """Build the message list sent to the backend.

        The latest user message is redacted (when enabled) and wrapped with
        knowledge-source passages (when any); then the agent's system prompt
        is put in front, merged into a caller-supplied system message if the
        conversation already starts with one. The input is never mutated.
        """
        messages = coerce_messages(history)

        last_user = next(
            (i for i in range(len(messages) - 1, -1, -1) if messages[i].role == "user"),
            None,
        )
        if last_user is not None:
            content = messages[last_user].content
            if self._redaction_enabled:
                content = self._redactor(content)

            if self._knowledge_source is not None:
                passages = await self._knowledge_source.search(content)
                if passages:
                    context = "\n".join(passages)
                    content = f"CONTEXT:\n{context}\n\nQUESTION:\n{content}"

            messages[last_user] = messages[last_user].with_content(content)

        prompt = self.effective_system_prompt
        if messages and messages[0].role == "system":
            messages[0] = messages[0].with_content(f"{prompt}\n{messages[0].content}")
        else:
            messages.insert(0, Message.system(prompt))

        return messages

    async def invoke(self, history: History) -> ChatResponse:
        """Answer the conversation, running the ReAct loop when tools are registered."""
        messages = await self.prepare_context(history)

        if len(self._tools) > 0:
            loop = ReActLoop(
                agent_name=self._name,
                complete=self.complete,
                tools=self._tools,
                max_cycles=self._config.max_observation_cycles,
            )
            return await loop.run(messages)

        completion = await self.complete(messages)
        return ChatResponse(content=completion.content, token_usage=completion.token_count)

    async def stream(self, history: History) -> AsyncIterator[str]:
        """Stream the answer as fragments. Tools are not used while streaming."""
        messages = await self.prepare_context(history)
        wire = [m.to_wire() for m in messages]

        started = False
        try:
            async for fragment in self._backend.complete_stream(wire, self._options):
                started = True
                yield fragment
            return
        except ModelNotFoundError as e:
            # Once text reached the caller a retry would duplicate it
            if started:
                raise
            await self._provision_model(e)

        async for fragment in self._backend.complete_stream(wire, self._options):
            yield fragment

    async def complete(self, messages: list[Message]) -> Completion:
        """One backend round trip, with a single retry after fetching a missing model."""
        wire = [m.to_wire() for m in messages]
        try:
            return await self._backend.complete(wire, self._options)
        except ModelNotFoundError as e:
            await self._provision_model(e)

        return await self._backend.complete(wire, self._options)

    async def _provision_model(self, error: ModelNotFoundError) -> None:
        if not isinstance(self._backend, IProvisioningBackend):
            raise error

        logger.warning(
            "Local model '%s' not found, starting automatic download", self._model,
            extra={"context": {"agent": self._name, "model": self._model}},
        )

        layers: dict[str, tuple[int, int]] = {}
        last_reported = -1
        async for progress in self._backend.pull():
            if not (progress.digest and progress.total and progress.completed):
                logger.debug("Pull status for '%s': %s", self._model, progress.status)
                continue

            layers[progress.digest] = (progress.total, progress.completed)
            total = sum(t for t, _ in layers.values())
            done = sum(c for _, c in layers.values())
            percentage = round(done * 100 / total) if total else 0
            if percentage // 10 > last_reported // 10:
                last_reported = percentage
                logger.info("Downloading '%s': %s%%", self._model, percentage)

        logger.info("Model '%s' downloaded, resuming", self._model)
