"""Backend adapter abstraction and static backend selection."""

from dataclasses import dataclass
from typing import AsyncIterator, Literal, Protocol, runtime_checkable

from ..config import Settings
from ..errors import ConfigurationError

BackendKind = Literal["local", "cloud"]

NAMESPACE_SEPARATOR = "/"


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling options sent with every completion request."""

    temperature: float = 0.7
    max_tokens: int = 1024


@dataclass(frozen=True)
class Completion:
    """A finished, non-streamed completion."""

    content: str
    token_count: int = 0


@dataclass(frozen=True)
class PullProgress:
    """One progress report while the local runtime fetches a model."""

    status: str
    digest: str | None = None
    total: int | None = None
    completed: int | None = None


class ILLMBackend(Protocol):
    """Abstraction for LLM access."""

    async def complete(
        self,
        messages: list[dict],  # [{"role": "user", "content": "..."}]
        options: GenerationOptions,
    ) -> Completion:
        """Generate completion."""
        ...

    def complete_stream(
        self,
        messages: list[dict],
        options: GenerationOptions,
    ) -> AsyncIterator[str]:
        """Stream completion fragments until the backend signals the end."""
        ...


@runtime_checkable
class IProvisioningBackend(Protocol):
    """Backend that can fetch a missing model on demand."""

    def pull(self) -> AsyncIterator[PullProgress]:
        """Download the backend's model, yielding progress reports."""
        ...


def backend_kind_for(model: str) -> BackendKind:
    """Cloud iff the model identifier carries a namespace (``vendor/model``)."""
    return "cloud" if NAMESPACE_SEPARATOR in model else "local"


def create_backend(
    model: str,
    settings: Settings | None = None,
    api_key: str | None = None,
) -> ILLMBackend:
    """Build the adapter for a model identifier.

    Selection is decided once, here, from the identifier's shape and the
    configured cloud provider.
    """
    settings = settings or Settings()

    if backend_kind_for(model) == "local":
        from .ollama import OllamaBackend

        return OllamaBackend(
            model=model,
            host=settings.ollama_host,
            timeout=settings.request_timeout,
        )

    if settings.cloud_provider == "anthropic":
        from .anthropic_backend import AnthropicBackend

        return AnthropicBackend(
            model=model,
            api_key=api_key or settings.anthropic_api_key,
        )

    if settings.cloud_provider == "openrouter":
        from .openrouter import OpenRouterBackend

        return OpenRouterBackend(
            model=model,
            api_key=api_key or settings.openrouter_api_key,
            url=settings.openrouter_url,
            timeout=settings.request_timeout,
        )

    raise ConfigurationError(f"Unknown cloud provider: {settings.cloud_provider}")
