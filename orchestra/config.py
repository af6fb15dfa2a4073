"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_LOG_PATH = LOGS_DIR / "orchestra.log"

DEFAULT_OLLAMA_HOST = "http://localhost:11434"
DEFAULT_OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_REQUEST_TIMEOUT = 120.0


PathLike = Union[str, Path]
CloudProvider = Literal["openrouter", "anthropic"]


@dataclass(frozen=True)
class Settings:
    """Connection and runtime settings injected into agents and backends.

    Nothing in the engine reads the process environment on its own; use
    ``Settings.from_env()`` at the outermost boundary (``main.py``, tests,
    application code) and pass the result down.
    """

    openrouter_api_key: str | None = None
    openrouter_url: str = DEFAULT_OPENROUTER_URL
    anthropic_api_key: str | None = None
    cloud_provider: CloudProvider = "openrouter"
    ollama_host: str = DEFAULT_OLLAMA_HOST
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: str = "INFO"
    log_file: PathLike = DEFAULT_LOG_PATH

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        provider = os.getenv("ORCHESTRA_CLOUD_PROVIDER", "openrouter").lower()
        if provider not in ("openrouter", "anthropic"):
            provider = "openrouter"

        return cls(
            openrouter_api_key=os.getenv("OPEN_ROUTER_API_KEY") or None,
            openrouter_url=os.getenv("OPEN_ROUTER_URL", DEFAULT_OPENROUTER_URL),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            cloud_provider=provider,
            ollama_host=os.getenv("OLLAMA_HOST", DEFAULT_OLLAMA_HOST),
            request_timeout=float(
                os.getenv("ORCHESTRA_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=resolve_log_path(os.getenv("LOG_FILE")),
        )


def resolve_log_path(env_value: PathLike | None = None) -> Path:
    """Resolve LOG_FILE to an absolute path."""
    if not env_value:
        return DEFAULT_LOG_PATH

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate
