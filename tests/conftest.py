"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import AsyncIterator

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from orchestra.errors import ModelNotFoundError  # noqa: E402
from orchestra.llm import Completion, GenerationOptions, PullProgress  # noqa: E402


class FakeBackend:
    """Scripted backend: returns queued replies and records every request."""

    def __init__(self, replies=(), token_count: int = 10, chunk_size: int = 0):
        self.replies = list(replies)
        self.token_count = token_count
        self.chunk_size = chunk_size
        self.requests: list[list[dict]] = []
        self.options: list[GenerationOptions] = []

    def _next(self, messages: list[dict], options: GenerationOptions):
        self.requests.append(messages)
        self.options.append(options)
        if not self.replies:
            return "done"
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def complete(self, messages: list[dict], options: GenerationOptions) -> Completion:
        return Completion(content=self._next(messages, options), token_count=self.token_count)

    async def complete_stream(
        self, messages: list[dict], options: GenerationOptions
    ) -> AsyncIterator[str]:
        content = self._next(messages, options)
        size = self.chunk_size or len(content) or 1
        for start in range(0, len(content), size):
            yield content[start:start + size]


class ProvisioningFakeBackend(FakeBackend):
    """Fake local runtime that can pull a missing model."""

    def __init__(self, replies=(), **kwargs):
        super().__init__(replies, **kwargs)
        self.pulls = 0

    async def pull(self) -> AsyncIterator[PullProgress]:
        self.pulls += 1
        yield PullProgress(status="pulling manifest")
        yield PullProgress(status="downloading", digest="sha256:a", total=100, completed=50)
        yield PullProgress(status="downloading", digest="sha256:a", total=100, completed=100)
        yield PullProgress(status="success")


def missing_model(model: str = "llama3.2") -> ModelNotFoundError:
    return ModelNotFoundError(model, f"model '{model}' not found, try pulling it first")


@pytest.fixture
def fake_backend():
    """Create a fake backend with no scripted replies."""
    return FakeBackend()


@pytest.fixture
def make_agent():
    """Factory for local agents bound to a fake backend."""
    from orchestra.agent import Agent

    def _make(name="Helper", replies=(), backend=None, **kwargs):
        return Agent(
            name=name,
            model=kwargs.pop("model", "llama3.2"),
            description=kwargs.pop("description", f"{name} agent"),
            backend=backend or FakeBackend(replies),
            **kwargs,
        )

    return _make
