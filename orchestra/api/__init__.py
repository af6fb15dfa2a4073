"""HTTP API module."""

from .app import create_fastapi_app
from .loader import load_runnable

__all__ = ["create_fastapi_app", "load_runnable"]
