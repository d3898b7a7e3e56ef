"""Application bootstrap and lifecycle management."""

import asyncio
import socket
from typing import Any, Protocol

import uvicorn
from aiokafka.errors import KafkaError

from .api import create_fastapi_app
from .bus import create_consumer
from .classifier import MessageClassifier
from .config import ArchiverSettings
from .consumer import ConsumeLoop
from .controller import ArchivingController
from .logging_config import get_logger
from .metrics import MetricsReporter
from .sink import TraceFileFactory

logger = get_logger(__name__)


class StartupError(RuntimeError):
    """The archiver could not reach a running state."""


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Bind the metrics listener and subscribe to the bus."""
        ...

    async def run(self) -> None:
        """Consume until stopped."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        settings: ArchiverSettings,
        consumer: Any | None = None,
        reporter: MetricsReporter | None = None,
    ):
        self._settings = settings
        self._consumer = consumer
        self._reporter = reporter

        # Components (will be initialized in start())
        self._server: uvicorn.Server | None = None
        self._server_task: asyncio.Task | None = None
        self._socket: socket.socket | None = None
        self._loop: ConsumeLoop | None = None
        self._loop_task: asyncio.Task | None = None
        self._consumer_started = False

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting archiver")
        settings = self._settings

        # 1. Metrics (no dependencies)
        if self._reporter is None:
            self._reporter = MetricsReporter()
        self._socket = self._bind_listener(
            settings.observability_host, settings.observability_port
        )
        config = uvicorn.Config(
            create_fastapi_app(self._reporter),
            log_config=None,
            access_log=False,
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        self._server_task = asyncio.create_task(self._server.serve(sockets=[self._socket]))
        logger.info("Metrics exporter listening on %s:%s", *self.metrics_address)

        # 2. Bus consumer
        if self._consumer is None:
            self._consumer = create_consumer(settings)
        try:
            await self._consumer.start()
        except KafkaError as e:
            await self._stop_server()
            raise StartupError(f"Cannot connect to Kafka at {settings.broker}: {e}") from e
        self._consumer_started = True
        logger.info(
            "Subscribed to %s and %s",
            settings.control_topic,
            settings.trace_topic,
        )

        # 3. Consume loop (depends on consumer, reporter)
        sink_factory = TraceFileFactory(settings.output_dir, settings.artifact_extension)
        self._loop = ConsumeLoop(
            consumer=self._consumer,
            classifier=MessageClassifier(settings.control_topic),
            controller_factory=lambda: ArchivingController(
                sink_factory, settings.digitizer_count
            ),
            reporter=self._reporter,
            isolate_partitions=settings.isolate_partitions,
        )
        logger.info("All components initialized successfully")

    async def run(self) -> None:
        """Consume until cancelled or until the metrics server exits."""
        if not self._loop or not self._server_task:
            raise RuntimeError("Application not started")

        self._loop_task = asyncio.create_task(self._loop.run())
        done, _ = await asyncio.wait(
            {self._loop_task, self._server_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        if self._loop_task in done:
            self._loop_task.result()
        else:
            logger.info("Metrics server exited, stopping consume loop")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        if self._loop:
            await self._loop.shutdown()

        if self._consumer and self._consumer_started:
            await self._consumer.stop()
            self._consumer_started = False
            logger.info("Consumer stopped")

        await self._stop_server()

    @property
    def loop(self) -> ConsumeLoop:
        """Get consume loop instance."""
        if not self._loop:
            raise RuntimeError("Application not started")
        return self._loop

    @property
    def reporter(self) -> MetricsReporter:
        """Get metrics reporter instance."""
        if not self._reporter:
            raise RuntimeError("Application not started")
        return self._reporter

    @property
    def metrics_address(self) -> tuple[str, int]:
        """Address the metrics listener is bound to."""
        if not self._socket:
            raise RuntimeError("Application not started")
        host, port = self._socket.getsockname()[:2]
        return host, port

    @staticmethod
    def _bind_listener(host: str, port: int) -> socket.socket:
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError as e:
            sock.close()
            raise StartupError(f"Cannot bind metrics listener to {host}:{port}: {e}") from e
        return sock

    async def _stop_server(self) -> None:
        if self._server:
            self._server.should_exit = True
        if self._server_task:
            await self._server_task
            self._server_task = None
        if self._socket:
            self._socket.close()
            self._socket = None
