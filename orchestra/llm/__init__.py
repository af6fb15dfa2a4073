"""LLM backend module."""

from .anthropic_backend import AnthropicBackend
from .backend import (
    BackendKind,
    Completion,
    GenerationOptions,
    ILLMBackend,
    IProvisioningBackend,
    PullProgress,
    backend_kind_for,
    create_backend,
)
from .ollama import OllamaBackend
from .openrouter import OpenRouterBackend

__all__ = [
    "AnthropicBackend",
    "BackendKind",
    "Completion",
    "GenerationOptions",
    "ILLMBackend",
    "IProvisioningBackend",
    "OllamaBackend",
    "OpenRouterBackend",
    "PullProgress",
    "backend_kind_for",
    "create_backend",
]
