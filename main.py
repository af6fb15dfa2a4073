"""Main entry point for the Orchestra HTTP server."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from orchestra.api import create_fastapi_app, load_runnable
from orchestra.config import Settings
from orchestra.logging_config import get_logger, setup_logging

DEFAULT_TARGET = "orchestra.demo:create_assistant"


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent
    load_dotenv(project_root / ".env")

    settings = Settings.from_env()
    setup_logging(log_level=settings.log_level, log_file=settings.log_file)
    logger = get_logger(__name__)

    # Get configuration from environment
    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))
    target = os.getenv("ORCHESTRA_TARGET", DEFAULT_TARGET)

    runnable = load_runnable(target, settings)
    logger.info("Serving %s (%s) on %s:%s", runnable.name, target, api_host, api_port)

    # Create FastAPI app
    app = create_fastapi_app(runnable)

    # Run with uvicorn
    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
