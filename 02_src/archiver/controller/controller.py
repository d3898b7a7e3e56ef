"""Run-scoped archiving controller."""

from dataclasses import dataclass
from typing import Protocol

from ..logging_config import get_logger
from ..models import (
    ActionKind,
    ClassifiedMessage,
    ControllerAction,
    DecodeFailed,
    MessageEnvelope,
    RunStart,
    RunStop,
    TraceFrame,
    Unexpected,
    Unrecognized,
)
from ..sink import ISinkFactory, ITraceSink, TraceFileError
from .naming import NamingError, generate_filename

logger = get_logger(__name__)


@dataclass
class RunSession:
    """An open recording bound to one sink."""

    sink: ITraceSink
    digitizer_count: int
    artifact_name: str
    run_name: str | None = None


class IArchivingController(Protocol):
    """Run lifecycle state machine."""

    async def handle(
        self, classified: ClassifiedMessage, envelope: MessageEnvelope
    ) -> ControllerAction:
        """Apply one classified message."""
        ...

    async def shutdown(self) -> None:
        """Discard the open session without a run stop."""
        ...


class ArchivingController:
    """
    Gates trace persistence on the run lifecycle.

    Holds at most one RunSession. Messages must be handed over in receive
    order; the controller never reorders or buffers them.
    """

    def __init__(self, sink_factory: ISinkFactory, digitizer_count: int):
        self._sink_factory = sink_factory
        self._digitizer_count = digitizer_count
        self._session: RunSession | None = None

    @property
    def session(self) -> RunSession | None:
        return self._session

    async def handle(
        self, classified: ClassifiedMessage, envelope: MessageEnvelope
    ) -> ControllerAction:
        """Apply one classified message and report what was done."""
        if isinstance(classified, RunStart):
            return await self._start_run(classified, envelope)

        if isinstance(classified, RunStop):
            return await self._stop_run(classified)

        if isinstance(classified, TraceFrame):
            return await self._write_frame(classified)

        if isinstance(classified, Unrecognized):
            logger.warning('Incorrect message identifier on topic "%s"', classified.topic)
            return ControllerAction(ActionKind.UNRECOGNIZED, detail=classified.topic)

        if isinstance(classified, Unexpected):
            logger.warning('Unexpected message type on topic "%s"', classified.topic)
            return ControllerAction(ActionKind.UNEXPECTED, detail=classified.topic)

        if isinstance(classified, DecodeFailed):
            logger.warning("Failed to parse message: %s", classified.error)
            return ControllerAction(ActionKind.DECODE_FAILED, detail=classified.error)

        raise TypeError(f"Unhandled message kind: {type(classified).__name__}")

    async def shutdown(self) -> None:
        """Discard the open session without a run stop."""
        if self._session:
            logger.info(
                "Shutting down with %s open, file left as written",
                self._session.artifact_name,
            )
        await self._discard()

    async def _start_run(
        self, message: RunStart, envelope: MessageEnvelope
    ) -> ControllerAction:
        if self._session is not None:
            # Redelivered or overlapping start, keep the current file
            logger.info(
                "Run start received while %s is open, ignoring",
                self._session.artifact_name,
                extra={"context": {"run_name": message.run_name}},
            )
            return ControllerAction(
                ActionKind.START_IGNORED, artifact_name=self._session.artifact_name
            )

        try:
            filename = generate_filename(envelope.timestamp, self._sink_factory.extension)
        except NamingError as e:
            logger.warning("Failed to create new trace file: %s", e)
            return ControllerAction(ActionKind.SESSION_OPEN_FAILED, detail=str(e))

        try:
            sink = await self._sink_factory.create(filename, self._digitizer_count)
        except TraceFileError as e:
            logger.warning("Failed to create new trace file: %s", e)
            return ControllerAction(
                ActionKind.SESSION_OPEN_FAILED, artifact_name=filename, detail=str(e)
            )

        self._session = RunSession(
            sink=sink,
            digitizer_count=self._digitizer_count,
            artifact_name=filename,
            run_name=message.run_name,
        )
        logger.info(
            "Created new trace file %s",
            filename,
            extra={"context": {"run_name": message.run_name}},
        )
        return ControllerAction(ActionKind.SESSION_OPENED, artifact_name=filename)

    async def _stop_run(self, message: RunStop) -> ControllerAction:
        if self._session is None:
            logger.debug("Run stop with no open run")
            return ControllerAction(ActionKind.STOP_IGNORED)

        artifact_name = self._session.artifact_name
        await self._discard()
        logger.info(
            "Closed trace file %s",
            artifact_name,
            extra={"context": {"run_name": message.run_name}},
        )
        return ControllerAction(ActionKind.SESSION_CLOSED, artifact_name=artifact_name)

    async def _write_frame(self, frame: TraceFrame) -> ControllerAction:
        if self._session is None:
            return ControllerAction(ActionKind.FRAME_DROPPED)

        logger.debug(
            "Trace packet: dig. ID: %s, frame: %s",
            frame.digitizer_id,
            frame.frame_number,
        )
        artifact_name = self._session.artifact_name
        try:
            await self._session.sink.push(frame.message)
        except TraceFileError as e:
            logger.warning("Failed to save traces to file: %s", e)
            return ControllerAction(
                ActionKind.FRAME_WRITE_FAILED, artifact_name=artifact_name, detail=str(e)
            )

        return ControllerAction(ActionKind.FRAME_WRITTEN, artifact_name=artifact_name)

    async def _discard(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return

        try:
            await session.sink.close()
        except TraceFileError as e:
            logger.warning("Error closing %s: %s", session.artifact_name, e)
