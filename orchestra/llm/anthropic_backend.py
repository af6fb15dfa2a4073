"""Cloud inference backend using the Anthropic Claude API."""

from typing import AsyncIterator

import anthropic

from ..errors import BackendError, ConfigurationError
from .backend import Completion, GenerationOptions

NAMESPACE = "anthropic/"


class AnthropicBackend:
    """Anthropic Claude API provider."""

    def __init__(self, model: str, api_key: str | None = None):
        # "anthropic/claude-..." identifiers are namespaced for cloud selection
        self._model = model[len(NAMESPACE):] if model.startswith(NAMESPACE) else model
        self._api_key = api_key
        self._client = anthropic.AsyncAnthropic(api_key=api_key) if api_key else None

    @property
    def model(self) -> str:
        return self._model

    def _require_client(self) -> "anthropic.AsyncAnthropic":
        if self._client is None:
            raise ConfigurationError(
                "Anthropic API key required: pass api_key or set ANTHROPIC_API_KEY"
            )
        return self._client

    def _request(self, messages: list[dict], options: GenerationOptions) -> dict:
        system, turns = _split_system(messages)
        request = {
            "model": self._model,
            "messages": turns,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
        }
        if system:
            request["system"] = system
        return request

    async def complete(
        self,
        messages: list[dict],
        options: GenerationOptions,
    ) -> Completion:
        """Generate completion using Claude API."""
        client = self._require_client()
        try:
            response = await client.messages.create(**self._request(messages, options))
        except Exception as e:
            raise BackendError(f"LLM API error: {e}") from e

        text = "".join(getattr(block, "text", "") for block in response.content)
        usage = getattr(response, "usage", None)
        tokens = 0
        if usage is not None:
            tokens = (usage.input_tokens or 0) + (usage.output_tokens or 0)
        return Completion(content=text, token_count=tokens)

    async def complete_stream(
        self,
        messages: list[dict],
        options: GenerationOptions,
    ) -> AsyncIterator[str]:
        """Stream text deltas from Claude API."""
        client = self._require_client()
        try:
            async with client.messages.stream(**self._request(messages, options)) as stream:
                async for text in stream.text_stream:
                    yield text
        except anthropic.APIError as e:
            raise BackendError(f"LLM API error: {e}") from e


def _split_system(messages: list[dict]) -> tuple[str, list[dict]]:
    """Move system content to the top-level prompt; merge same-role turns."""
    system_parts: list[str] = []
    turns: list[dict] = []

    for msg in messages:
        role = msg["role"]
        content = str(msg["content"])
        if role == "system" and not turns:
            system_parts.append(content)
            continue
        # Claude only knows user/assistant turns
        if role != "assistant":
            role = "user"
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"] = f"{turns[-1]['content']}\n\n{content}"
        else:
            turns.append({"role": role, "content": content})

    system = "\n\n".join(system_parts)
    if not turns:
        # The Messages API needs at least one turn
        return "", [{"role": "user", "content": system}]
    return system, turns
