"""FastAPI application setup."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..agent import Runnable
from .routes import runnables


def create_fastapi_app(
    runnable: Runnable,
    allow_origins: list[str] | None = None,
) -> FastAPI:
    """Create a FastAPI application serving one Agent, Router or Workflow."""
    fastapi_app = FastAPI(
        title=f"{runnable.name} API",
        description=runnable.description,
        version="0.1.0",
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins or ["http://localhost:5173"],  # Vite default
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    fastapi_app.include_router(runnables.create_runnable_router(runnable))

    return fastapi_app
