"""Synthetic trace generator for throughput testing."""

import asyncio
import os
import time
from datetime import datetime, timezone
from typing import Any, Protocol

import numpy as np
from aiokafka.errors import KafkaError
from pydantic import Field

from archiver.config import KafkaSettings
from archiver.logging_config import get_logger
from archiver.schemas import (
    ChannelTrace,
    DigitizerAnalogTraceMessage,
    FrameMetadata,
    RunStartPayload,
    RunStopPayload,
    encode_run_start,
    encode_run_stop,
    encode_trace_message,
)

logger = get_logger(__name__)

BASELINE = 404
SAMPLE_RATE = 1_000_000_000


class TraceGeneratorSettings(KafkaSettings):
    """Configuration of the trace generator."""

    trace_topic: str = Field(default_factory=lambda: os.getenv("TRACEGEN_TRACE_TOPIC", "Traces"))
    control_topic: str | None = Field(
        default_factory=lambda: os.getenv("TRACEGEN_CONTROL_TOPIC") or None
    )
    digitizer_id: int = Field(
        default_factory=lambda: os.getenv("TRACEGEN_DIGITIZER_ID", "0"), ge=0, le=255
    )
    channels: int = Field(default_factory=lambda: os.getenv("TRACEGEN_CHANNELS", "8"), ge=1)
    time_bins: int = Field(
        default_factory=lambda: os.getenv("TRACEGEN_TIME_BINS", "20000"), ge=2
    )
    start_frame: int = Field(
        default_factory=lambda: os.getenv("TRACEGEN_START_FRAME", "0"), ge=0, le=0xFFFF_FFFF
    )
    frame_time_ms: int = Field(
        default_factory=lambda: os.getenv("TRACEGEN_FRAME_TIME_MS", "20"), ge=0
    )
    frame_limit: int | None = Field(
        default_factory=lambda: os.getenv("TRACEGEN_FRAME_LIMIT") or None, ge=0
    )
    send_timeout_ms: int = Field(
        default_factory=lambda: os.getenv("TRACEGEN_SEND_TIMEOUT_MS", "100"), gt=0
    )
    run_name: str = Field(default_factory=lambda: os.getenv("TRACEGEN_RUN_NAME", "tracegen"))


class ITraceProducer(Protocol):
    """The subset of AIOKafkaProducer the generator relies on."""

    async def send_and_wait(
        self,
        topic: str,
        value: bytes | None = None,
        key: bytes | None = None,
        timestamp_ms: int | None = None,
    ) -> Any:
        """Send one record and wait for delivery."""
        ...


class ITraceGenerator(Protocol):
    """Emit trace frames at a fixed period."""

    async def start(self) -> None:
        """Start emitting in the background."""
        ...

    async def stop(self) -> None:
        """Stop emitting."""
        ...


class TraceGenerator:
    """
    Periodically publishes trace frames for one digitizer.

    Every channel carries a flat baseline, with the frame number in the
    first sample and the digitizer id in the second so frames can be
    matched up after archiving. With a control topic and a frame limit,
    the frames are bracketed by a run start and a run stop.
    """

    def __init__(self, producer: ITraceProducer, settings: TraceGeneratorSettings):
        self._producer = producer
        self._settings = settings
        self._running = False
        self._task: asyncio.Task | None = None
        self._frames_sent = 0
        self._send_failures = 0

        self._voltage = np.full(
            (settings.channels, settings.time_bins), BASELINE, dtype=np.uint16
        )
        self._voltage[:, 1] = settings.digitizer_id

    @property
    def frames_sent(self) -> int:
        return self._frames_sent

    @property
    def send_failures(self) -> int:
        return self._send_failures

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    def build_frame(self, frame_number: int) -> DigitizerAnalogTraceMessage:
        """Trace message for ``frame_number``, stamped now."""
        self._voltage[:, 0] = frame_number & 0xFFFF

        return DigitizerAnalogTraceMessage(
            digitizer_id=self._settings.digitizer_id,
            metadata=FrameMetadata(
                frame_number=frame_number & 0xFFFF_FFFF,
                running=True,
                timestamp=datetime.now(timezone.utc),
            ),
            sample_rate=SAMPLE_RATE,
            channels=[
                ChannelTrace(channel=i, voltage=row.tolist())
                for i, row in enumerate(self._voltage)
            ],
        )

    async def start(self) -> None:
        """Start emitting in the background."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Stop emitting."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def run(self) -> None:
        """Emit frames until the limit is reached or the task is cancelled."""
        settings = self._settings
        self._running = True
        bracketed = settings.control_topic is not None and settings.frame_limit is not None

        if bracketed:
            await self._send_run_start()

        period = settings.frame_time_ms / 1000
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        frame_number = settings.start_frame

        try:
            while self._running:
                if settings.frame_limit is not None and self._frames_sent >= settings.frame_limit:
                    break

                await self._send_frame(frame_number)
                frame_number += 1

                next_tick += period
                await asyncio.sleep(max(0.0, next_tick - loop.time()))
        finally:
            self._running = False

        if bracketed:
            await self._send_run_stop()

    async def _send_frame(self, frame_number: int) -> None:
        payload = encode_trace_message(self.build_frame(frame_number))
        key = str(self._settings.digitizer_id).encode("ascii")

        start_time = time.perf_counter()
        if await self._send(self._settings.trace_topic, payload, key):
            self._frames_sent += 1
        logger.info("Trace send took: %.3f ms", (time.perf_counter() - start_time) * 1000)

    async def _send_run_start(self) -> None:
        now_ms = int(time.time() * 1000)
        payload = encode_run_start(
            RunStartPayload(run_name=self._settings.run_name, start_time=now_ms)
        )
        await self._send(self._settings.control_topic, payload, timestamp_ms=now_ms)

    async def _send_run_stop(self) -> None:
        now_ms = int(time.time() * 1000)
        payload = encode_run_stop(
            RunStopPayload(run_name=self._settings.run_name, stop_time=now_ms)
        )
        await self._send(self._settings.control_topic, payload, timestamp_ms=now_ms)

    async def _send(
        self,
        topic: str,
        payload: bytes,
        key: bytes | None = None,
        timestamp_ms: int | None = None,
    ) -> bool:
        try:
            result = await asyncio.wait_for(
                self._producer.send_and_wait(
                    topic, value=payload, key=key, timestamp_ms=timestamp_ms
                ),
                timeout=self._settings.send_timeout_ms / 1000,
            )
        except (KafkaError, asyncio.TimeoutError) as e:
            self._send_failures += 1
            logger.error("Delivery failed: %r", e)
            return False

        logger.debug("Delivery: %s", result)
        return True
