"""Main entry point for the Jami bridge."""

import asyncio
import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from jami_bridge.api import create_fastapi_app
from jami_bridge.app import Application
from jami_bridge.config import Settings
from jami_bridge.errors import BridgeError
from jami_bridge.logging_config import get_logger, setup_logging

logger = get_logger("jami_bridge.main")


async def serve(settings: Settings, api_host: str, api_port: int) -> None:
    """Run the event stream and the HTTP API until either one stops."""
    application = Application(settings)
    server = uvicorn.Server(
        uvicorn.Config(
            create_fastapi_app(application),
            host=api_host,
            port=api_port,
            log_config=None,
        )
    )

    await application.start()
    server_task = asyncio.create_task(server.serve(), name="http-api")
    stream_task = asyncio.create_task(application.wait(), name="event-stream")

    done, _ = await asyncio.wait(
        {server_task, stream_task}, return_when=asyncio.FIRST_COMPLETED
    )

    # Either side stopping brings the other one down
    server.should_exit = True
    await application.stop()
    await server_task
    if stream_task in done:
        stream_task.result()
    else:
        await stream_task


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    # Get configuration from environment
    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))

    try:
        settings = Settings.from_env()
    except ValueError as e:
        logger.critical("Invalid configuration: %s", e)
        sys.exit(2)

    try:
        asyncio.run(serve(settings, api_host, api_port))
    except BridgeError as e:
        logger.critical("Jami bridge terminated: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
