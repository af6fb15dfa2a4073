"""Workflow implementation."""

from typing import AsyncIterator

from ..agent import Runnable
from ..errors import StageError
from ..logging_config import get_logger
from ..models import ChatResponse, History, Message, coerce_messages

logger = get_logger(__name__)


class Workflow:
    """Runs Agents/Routers one after another over a shared conversation.

    Each stage sees the original messages plus every earlier stage's answer
    (as assistant messages). Stages are added, then ``build()`` seals the
    pipeline.
    """

    def __init__(
        self,
        name: str = "Workflow",
        description: str = "A sequential pipeline of agents",
        capture_all_stages: bool = False,
    ):
        self.name = name
        self.description = description
        self._capture_all_stages = capture_all_stages
        self._stages: list[Runnable] = []
        self._sealed = False

    def add(self, stage: Runnable) -> "Workflow":
        """Append a stage."""
        if stage is None:
            raise ValueError("Cannot add None as a workflow stage")
        self._check_not_sealed()
        self._stages.append(stage)
        return self

    def build(self) -> "Workflow":
        """Seal the workflow; no stages can be added or removed afterwards."""
        if not self._stages:
            logger.warning("Workflow %s has no stages defined", self.name)
        self._sealed = True
        return self

    def clear(self) -> "Workflow":
        """Remove all stages."""
        self._check_not_sealed()
        self._stages.clear()
        return self

    @property
    def stages(self) -> tuple[Runnable, ...]:
        return tuple(self._stages)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __len__(self) -> int:
        return len(self._stages)

    def _check_not_sealed(self) -> None:
        if self._sealed:
            raise RuntimeError(f"Workflow {self.name} is sealed; build() was already called")

    async def invoke(
        self, history: History, capture_all_stages: bool | None = None
    ) -> ChatResponse:
        """Run every stage in order; the last stage's content is the result."""
        capture = self._capture_all_stages if capture_all_stages is None else capture_all_stages
        conversation = coerce_messages(history)
        stage_responses: list[ChatResponse] = []
        token_usage = 0
        content = conversation[-1].content if conversation else ""

        for index, stage in enumerate(self._stages, start=1):
            try:
                response = await stage.invoke(list(conversation))
            except Exception as e:
                logger.error(
                    "Workflow %s failed at stage %s (%s): %s",
                    self.name, index, stage.name, e,
                    extra={"context": {"workflow": self.name, "stage": index, "agent": stage.name}},
                )
                raise StageError(index, e, stage.name) from e

            logger.info("Workflow %s: stage %s (%s) done", self.name, index, stage.name)
            token_usage += response.token_usage
            content = response.content
            if capture:
                stage_responses.append(response)
            conversation.append(Message.assistant(response.content))

        return ChatResponse(
            content=content,
            token_usage=token_usage,
            stage_responses=stage_responses if capture else None,
        )

    async def stream(
        self, history: History, capture_all_stages: bool | None = None
    ) -> AsyncIterator[str]:
        """Stream stages in order.

        With capture, every stage's fragments are yielded; otherwise only the
        final stage's. Earlier stages are always consumed in full so their
        text reaches the next stage.
        """
        capture = self._capture_all_stages if capture_all_stages is None else capture_all_stages
        conversation = coerce_messages(history)
        last = len(self._stages)

        for index, stage in enumerate(self._stages, start=1):
            fragments: list[str] = []
            try:
                async for fragment in stage.stream(list(conversation)):
                    fragments.append(fragment)
                    if capture or index == last:
                        yield fragment
            except Exception as e:
                logger.error(
                    "Workflow %s stream failed at stage %s (%s): %s",
                    self.name, index, stage.name, e,
                    extra={"context": {"workflow": self.name, "stage": index, "agent": stage.name}},
                )
                raise StageError(index, e, stage.name) from e

            conversation.append(Message.assistant("".join(fragments)))
