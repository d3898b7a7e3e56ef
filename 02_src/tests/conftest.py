"""Pytest configuration and fixtures."""

import asyncio
import sys
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

CONTROL_TOPIC = "Controls"
TRACE_TOPIC = "Traces"


@dataclass
class FakeRecord:
    """Stand-in for aiokafka's ConsumerRecord."""

    topic: str
    partition: int
    offset: int
    timestamp: int | None
    key: bytes | None = None
    value: bytes | None = b""


class FakeSink:
    """In-memory trace sink."""

    def __init__(self, filename: str, digitizer_count: int):
        self.filename = filename
        self.digitizer_count = digitizer_count
        self.frames = []
        self.closed = False
        self.fail_push = False
        self.fail_close = False

    async def push(self, message) -> None:
        from archiver.sink import TraceFileError

        if self.fail_push:
            raise TraceFileError("disk full")
        if self.closed:
            raise TraceFileError("closed")
        self.frames.append(message)

    async def close(self) -> None:
        from archiver.sink import TraceFileError

        self.closed = True
        if self.fail_close:
            raise TraceFileError("close failed")


class FakeSinkFactory:
    """Records every sink it creates."""

    extension = "db"

    def __init__(self):
        self.sinks: list[FakeSink] = []
        self.fail_create = False

    async def create(self, name: str, digitizer_count: int) -> FakeSink:
        from archiver.sink import TraceFileError

        if self.fail_create:
            raise TraceFileError("permission denied")
        sink = FakeSink(name, digitizer_count)
        self.sinks.append(sink)
        return sink


class FakeConsumer:
    """Queue-backed stand-in for AIOKafkaConsumer."""

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.commits: list[dict] = []
        self.started = False
        self.stopped = False
        self.start_error: Exception | None = None
        self.commit_error: Exception | None = None

    def feed(self, *items) -> None:
        """Queue records, or exceptions to be raised by getone()."""
        for item in items:
            self.queue.put_nowait(item)

    async def start(self) -> None:
        if self.start_error:
            raise self.start_error
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def getone(self):
        item = await self.queue.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def commit(self, offsets) -> None:
        if self.commit_error:
            raise self.commit_error
        self.commits.append(offsets)


@pytest.fixture
def make_trace():
    """Factory for trace messages."""
    from archiver.schemas import ChannelTrace, DigitizerAnalogTraceMessage, FrameMetadata

    def _make(digitizer_id=0, frame_number=0, channels=2, samples=4):
        return DigitizerAnalogTraceMessage(
            digitizer_id=digitizer_id,
            metadata=FrameMetadata(frame_number=frame_number),
            sample_rate=1_000_000_000,
            channels=[
                ChannelTrace(channel=c, voltage=[404 + c] * samples)
                for c in range(channels)
            ],
        )

    return _make


@pytest.fixture
def payloads(make_trace):
    """Encoded payloads of each schema."""
    from archiver.schemas import (
        RunStartPayload,
        RunStopPayload,
        encode_run_start,
        encode_run_stop,
        encode_trace_message,
    )

    class Payloads:
        @staticmethod
        def trace(**kwargs) -> bytes:
            return encode_trace_message(make_trace(**kwargs))

        @staticmethod
        def run_start(run_name="run-1", start_time=1000) -> bytes:
            return encode_run_start(RunStartPayload(run_name=run_name, start_time=start_time))

        @staticmethod
        def run_stop(run_name="run-1", stop_time=2000) -> bytes:
            return encode_run_stop(RunStopPayload(run_name=run_name, stop_time=stop_time))

    return Payloads


@pytest.fixture
def make_envelope():
    """Factory for message envelopes."""
    from archiver.models import MessageEnvelope

    def _make(topic=TRACE_TOPIC, payload=b"", timestamp=1000, partition=0, offset=0, key=None):
        return MessageEnvelope(
            topic=topic,
            partition=partition,
            offset=offset,
            timestamp=timestamp,
            key=key,
            payload=payload,
        )

    return _make


@pytest.fixture
def make_record():
    """Factory for consumer records."""

    def _make(topic, value, offset=0, partition=0, timestamp=1000, key=None):
        return FakeRecord(
            topic=topic,
            partition=partition,
            offset=offset,
            timestamp=timestamp,
            key=key,
            value=value,
        )

    return _make


@pytest.fixture
def classifier():
    """Classifier bound to the test control topic."""
    from archiver.classifier import MessageClassifier

    return MessageClassifier(CONTROL_TOPIC)


@pytest.fixture
def sink_factory():
    """In-memory sink factory."""
    return FakeSinkFactory()


@pytest.fixture
def controller(sink_factory):
    """Controller writing to in-memory sinks."""
    from archiver.controller import ArchivingController

    return ArchivingController(sink_factory, digitizer_count=4)


@pytest.fixture
def reporter():
    """Metrics reporter with its own registry."""
    from archiver.metrics import MetricsReporter

    return MetricsReporter()


@pytest.fixture
def trace_file_factory(tmp_path):
    """Factory writing real trace files under tmp_path."""
    from archiver.sink import TraceFileFactory

    return TraceFileFactory(tmp_path / "archive", extension="db")


@pytest.fixture
def fake_consumer():
    """Queue-backed consumer."""
    return FakeConsumer()


@pytest.fixture
def settings(tmp_path):
    """Archiver settings pointing at tmp_path."""
    from archiver.config import ArchiverSettings

    return ArchiverSettings(
        broker="localhost:9092",
        control_topic=CONTROL_TOPIC,
        trace_topic=TRACE_TOPIC,
        digitizer_count=4,
        observability_address="127.0.0.1:0",
        output_dir=tmp_path / "archive",
    )


@pytest_asyncio.fixture
async def trace_file(tmp_path):
    """Open trace file for four digitizers."""
    from archiver.sink import TraceFile

    tf = await TraceFile.create(tmp_path / "run.db", digitizer_count=4)
    yield tf
    await tf.close()
