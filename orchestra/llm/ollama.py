"""Local inference backend talking to an Ollama runtime over HTTP."""

import json
from typing import AsyncIterator

import httpx

from ..config import DEFAULT_OLLAMA_HOST, DEFAULT_REQUEST_TIMEOUT
from ..errors import BackendError, ModelNotFoundError
from ..logging_config import get_logger
from .backend import Completion, GenerationOptions, PullProgress

logger = get_logger(__name__)

MISSING_MODEL_MARKERS = ("not found", "try pulling")


class OllamaBackend:
    """Ollama chat API provider."""

    def __init__(
        self,
        model: str,
        host: str = DEFAULT_OLLAMA_HOST,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._model = model
        self._host = host.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def model(self) -> str:
        return self._model

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._host,
            timeout=self._timeout if timeout is None else timeout,
            transport=self._transport,
        )

    def _payload(
        self, messages: list[dict], options: GenerationOptions, stream: bool
    ) -> dict:
        return {
            "model": self._model,
            "messages": messages,
            "stream": stream,
            "options": {
                "temperature": options.temperature,
                "num_predict": options.max_tokens,
            },
        }

    def _raise_for_status(self, status_code: int, body: str) -> None:
        if status_code < 400:
            return

        detail = _error_detail(body)
        if status_code == 404 or any(m in detail.lower() for m in MISSING_MODEL_MARKERS):
            raise ModelNotFoundError(self._model, detail)
        raise BackendError(f"Ollama API error: {status_code} - {detail}")

    async def complete(
        self,
        messages: list[dict],
        options: GenerationOptions,
    ) -> Completion:
        """Generate completion using the local runtime."""
        payload = self._payload(messages, options, stream=False)
        try:
            async with self._client() as client:
                response = await client.post("/api/chat", json=payload)
        except httpx.HTTPError as e:
            raise BackendError(f"Ollama request failed: {e}") from e

        self._raise_for_status(response.status_code, response.text)

        data = response.json()
        return Completion(
            content=data.get("message", {}).get("content", ""),
            token_count=data.get("eval_count") or 0,
        )

    async def complete_stream(
        self,
        messages: list[dict],
        options: GenerationOptions,
    ) -> AsyncIterator[str]:
        """Stream completion fragments; the runtime ends with ``done: true``."""
        payload = self._payload(messages, options, stream=True)
        try:
            async with self._client() as client:
                async with client.stream("POST", "/api/chat", json=payload) as response:
                    if response.status_code >= 400:
                        body = (await response.aread()).decode("utf-8", "replace")
                        self._raise_for_status(response.status_code, body)

                    async for chunk in _iter_ndjson(response):
                        if chunk.get("error"):
                            raise BackendError(f"Ollama stream error: {chunk['error']}")
                        content = chunk.get("message", {}).get("content")
                        if content:
                            yield content
                        if chunk.get("done"):
                            return
        except httpx.HTTPError as e:
            raise BackendError(f"Ollama stream failed: {e}") from e

    async def pull(self) -> AsyncIterator[PullProgress]:
        """Download the model, yielding per-layer progress."""
        payload = {"model": self._model, "stream": True}
        try:
            # Downloads can take minutes between reads on slow links
            async with self._client(timeout=None) as client:
                async with client.stream("POST", "/api/pull", json=payload) as response:
                    if response.status_code >= 400:
                        body = (await response.aread()).decode("utf-8", "replace")
                        raise BackendError(
                            f"Failed to download model '{self._model}': {_error_detail(body)}"
                        )

                    async for part in _iter_ndjson(response):
                        if part.get("error"):
                            raise BackendError(
                                f"Failed to download model '{self._model}': {part['error']}"
                            )
                        yield PullProgress(
                            status=part.get("status", ""),
                            digest=part.get("digest"),
                            total=part.get("total"),
                            completed=part.get("completed"),
                        )
        except httpx.HTTPError as e:
            raise BackendError(f"Failed to download model '{self._model}': {e}") from e


async def _iter_ndjson(response: httpx.Response) -> AsyncIterator[dict]:
    async for line in response.aiter_lines():
        if not line.strip():
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError:
            logger.warning("Skipping malformed line from Ollama: %s", line[:100])


def _error_detail(body: str) -> str:
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return body
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return body
