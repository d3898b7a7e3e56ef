"""Main entry point for the trace archiver."""

import asyncio
import signal
import sys

from dotenv import load_dotenv
from pydantic import ValidationError

from .app import Application, StartupError
from .config import PROJECT_ROOT, ArchiverSettings
from .logging_config import get_logger, setup_logging

logger = get_logger(__name__)


async def serve(settings: ArchiverSettings) -> None:
    """Run the archiver until SIGINT/SIGTERM."""
    app = Application(settings)
    await app.start()

    loop = asyncio.get_running_loop()
    run_task = asyncio.create_task(app.run())
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, run_task.cancel)

    try:
        await run_task
    except asyncio.CancelledError:
        logger.info("Shutdown requested")
    finally:
        await app.stop()


def main() -> int:
    """Run the application."""
    load_dotenv(PROJECT_ROOT / ".env")
    setup_logging()

    try:
        settings = ArchiverSettings()
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    try:
        asyncio.run(serve(settings))
    except StartupError as e:
        logger.error("Startup failed: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
