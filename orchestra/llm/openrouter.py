"""Cloud inference backend for OpenRouter's OpenAI-compatible API."""

import json
from typing import AsyncIterator

import httpx

from ..config import DEFAULT_OPENROUTER_URL, DEFAULT_REQUEST_TIMEOUT
from ..errors import BackendError, ConfigurationError
from ..logging_config import get_logger
from .backend import Completion, GenerationOptions

logger = get_logger(__name__)

SSE_PREFIX = "data: "
SSE_DONE = "[DONE]"


class OpenRouterBackend:
    """OpenRouter chat completions provider."""

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        url: str = DEFAULT_OPENROUTER_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        app_title: str = "Orchestra",
    ):
        self._model = model
        self._api_key = api_key
        self._url = url
        self._timeout = timeout
        self._transport = transport
        self._app_title = app_title

    @property
    def model(self) -> str:
        return self._model

    def _headers(self) -> dict:
        # Checked on every call so a missing key fails before any network I/O
        if not self._api_key:
            raise ConfigurationError(
                "OpenRouter API key required: pass api_key or set OPEN_ROUTER_API_KEY"
            )
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_title,
        }

    def _payload(
        self, messages: list[dict], options: GenerationOptions, stream: bool
    ) -> dict:
        payload = {
            "model": self._model,
            "messages": [
                {"role": m["role"], "content": str(m["content"])} for m in messages
            ],
            "temperature": options.temperature,
        }
        if options.max_tokens > 0:
            payload["max_tokens"] = options.max_tokens
        if stream:
            payload["stream"] = True
        return payload

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def complete(
        self,
        messages: list[dict],
        options: GenerationOptions,
    ) -> Completion:
        """Generate completion using the OpenRouter API."""
        headers = self._headers()
        payload = self._payload(messages, options, stream=False)
        try:
            async with self._client() as client:
                response = await client.post(self._url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise BackendError(f"Failed to call OpenRouter: {e}") from e

        if response.status_code >= 400:
            raise BackendError(
                f"OpenRouter API error: {response.status_code} - {response.text}"
            )

        data = response.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise BackendError(f"Malformed OpenRouter response: {data}") from e

        usage = data.get("usage") or {}
        return Completion(content=content or "", token_count=usage.get("total_tokens") or 0)

    async def complete_stream(
        self,
        messages: list[dict],
        options: GenerationOptions,
    ) -> AsyncIterator[str]:
        """Stream completion deltas from server-sent events until ``[DONE]``."""
        headers = self._headers()
        payload = self._payload(messages, options, stream=True)
        try:
            async with self._client() as client:
                async with client.stream(
                    "POST", self._url, headers=headers, json=payload
                ) as response:
                    if response.status_code >= 400:
                        body = (await response.aread()).decode("utf-8", "replace")
                        raise BackendError(
                            f"OpenRouter API error: {response.status_code} - {body}"
                        )

                    async for line in response.aiter_lines():
                        line = line.strip()
                        if not line.startswith(SSE_PREFIX):
                            continue
                        data = line[len(SSE_PREFIX):]
                        if data == SSE_DONE:
                            return
                        try:
                            chunk = json.loads(data)
                        except json.JSONDecodeError:
                            logger.warning("Skipping malformed SSE chunk: %s", data[:100])
                            continue
                        choices = chunk.get("choices") or [{}]
                        delta = (choices[0].get("delta") or {}).get("content")
                        if delta:
                            yield delta
        except httpx.HTTPError as e:
            raise BackendError(f"Failed to stream from OpenRouter: {e}") from e
