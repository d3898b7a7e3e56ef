"""Main entry point for the trace generator."""

import asyncio
import signal
import sys

from aiokafka.errors import KafkaError
from dotenv import load_dotenv
from pydantic import ValidationError

from archiver.bus import create_producer
from archiver.config import PROJECT_ROOT
from archiver.logging_config import get_logger, setup_logging

from .generator import TraceGenerator, TraceGeneratorSettings

logger = get_logger(__name__)


async def serve(settings: TraceGeneratorSettings) -> None:
    """Emit frames until the limit or SIGINT/SIGTERM."""
    producer = create_producer(settings)
    await producer.start()

    generator = TraceGenerator(producer, settings)
    try:
        await generator.start()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, generator.task.cancel)

        try:
            await generator.task
        except asyncio.CancelledError:
            logger.info("Shutdown requested")
    finally:
        await generator.stop()
        await producer.stop()
        logger.info(
            "Sent %s frames, %s failed",
            generator.frames_sent,
            generator.send_failures,
        )


def main() -> int:
    """Run the trace generator."""
    load_dotenv(PROJECT_ROOT / ".env")
    setup_logging("tracegen")

    try:
        settings = TraceGeneratorSettings()
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    try:
        asyncio.run(serve(settings))
    except KafkaError as e:
        logger.error("Cannot connect to Kafka at %s: %s", settings.broker, e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
