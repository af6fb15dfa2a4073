"""Routes serving one Agent, Router or Workflow."""

import json
from typing import Any, AsyncIterator, Literal

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from ...agent import Agent, Runnable
from ...errors import BackendError
from ...logging_config import get_logger
from ...models import ChatResponse, Message
from ...routing import Router
from ...workflow import Workflow

logger = get_logger(__name__)


class MessageModel(BaseModel):
    """One message in the request conversation."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str
    name: str | None = None


class InvokeRequest(BaseModel):
    """Request model for invoke and stream."""

    messages: list[MessageModel]
    capture_all_stages: bool | None = None  # workflows only


class CycleModel(BaseModel):
    index: int
    thought: str
    tool: str | None = None
    tool_input: Any = None
    result: Any = None
    error: str | None = None


class InvokeResponse(BaseModel):
    """Response model for invoke."""

    content: str
    token_usage: int
    cycles: list[CycleModel] = []
    stage_responses: list["InvokeResponse"] | None = None


InvokeResponse.model_rebuild()


class RouteModel(BaseModel):
    intent: str
    description: str
    agent_name: str


class InfoResponse(BaseModel):
    """Description of the served runnable."""

    name: str
    description: str
    kind: str
    model: str | None = None
    tools: list[str] = []
    routes: list[RouteModel] = []
    stages: list[str] = []


def to_response_model(response: ChatResponse) -> InvokeResponse:
    cycles = []
    for cycle in response.cycles:
        observation = cycle.observation
        cycles.append(
            CycleModel(
                index=cycle.index,
                thought=cycle.thought,
                tool=cycle.tool_call.name if cycle.tool_call else None,
                tool_input=cycle.tool_call.input if cycle.tool_call else None,
                result=observation.result if observation else None,
                error=observation.error if observation else None,
            )
        )

    stages = None
    if response.stage_responses is not None:
        stages = [to_response_model(r) for r in response.stage_responses]

    return InvokeResponse(
        content=response.content,
        token_usage=response.token_usage,
        cycles=cycles,
        stage_responses=stages,
    )


def describe(runnable: Runnable) -> InfoResponse:
    info = InfoResponse(
        name=runnable.name,
        description=runnable.description,
        kind=type(runnable).__name__,
    )
    if isinstance(runnable, Agent):
        info.model = runnable.model
        info.tools = runnable.tools.names
    elif isinstance(runnable, Router):
        info.routes = [
            RouteModel(intent=r.intent, description=r.description, agent_name=r.agent_name)
            for r in runnable.get_available_routes()
        ]
    elif isinstance(runnable, Workflow):
        info.stages = [stage.name for stage in runnable.stages]
    return info


def create_runnable_router(runnable: Runnable) -> APIRouter:
    """Create the API router bound to one runnable."""
    router = APIRouter(prefix="/api", tags=["agents"])

    def _messages(request: InvokeRequest) -> list[Message]:
        return [Message(role=m.role, content=m.content, name=m.name) for m in request.messages]

    @router.get("/info", response_model=InfoResponse)
    async def get_info() -> InfoResponse:
        """Describe the served runnable."""
        return describe(runnable)

    @router.post("/invoke", response_model=InvokeResponse)
    async def invoke(request: InvokeRequest) -> InvokeResponse:
        """Run the conversation to completion."""
        messages = _messages(request)
        try:
            if isinstance(runnable, Workflow):
                response = await runnable.invoke(messages, request.capture_all_stages)
            else:
                response = await runnable.invoke(messages)
        except BackendError as e:
            raise HTTPException(status_code=502, detail=str(e))
        except Exception as e:
            logger.error("Invoke failed: %s", e, exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))
        return to_response_model(response)

    @router.post("/stream")
    async def stream(request: InvokeRequest) -> StreamingResponse:
        """Stream fragments as server-sent events, ending with [DONE]."""
        messages = _messages(request)
        if isinstance(runnable, Workflow):
            fragments = runnable.stream(messages, request.capture_all_stages)
        else:
            fragments = runnable.stream(messages)

        async def event_generator() -> AsyncIterator[str]:
            try:
                async for fragment in fragments:
                    yield f"data: {json.dumps({'content': fragment})}\n\n"
            except Exception as e:
                # Headers are already sent; report the failure in-band
                logger.error("Stream failed: %s", e, exc_info=True)
                yield f"data: {json.dumps({'error': str(e)})}\n\n"
            yield "data: [DONE]\n\n"

        return StreamingResponse(event_generator(), media_type="text/event-stream")

    return router
