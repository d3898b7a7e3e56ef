"""Metrics reporter built on prometheus_client."""

from enum import Enum
from typing import Protocol

from prometheus_client import CollectorRegistry, Counter

from ..models import ActionKind, ControllerAction

MESSAGES_RECEIVED = "messages_received"
FAILURES = "failures"


class MessageKind(str, Enum):
    """Label values of the messages_received counter."""

    TRACE = "trace"
    RUN_START = "run_start"
    RUN_STOP = "run_stop"
    UNKNOWN = "unknown"


class FailureKind(str, Enum):
    """Label values of the failures counter."""

    UNABLE_TO_DECODE_MESSAGE = "unable_to_decode_message"
    FILE_WRITE_FAILED = "file_write_failed"


_MESSAGE_KINDS: dict[ActionKind, MessageKind] = {
    ActionKind.SESSION_OPENED: MessageKind.RUN_START,
    ActionKind.SESSION_OPEN_FAILED: MessageKind.RUN_START,
    ActionKind.START_IGNORED: MessageKind.RUN_START,
    ActionKind.SESSION_CLOSED: MessageKind.RUN_STOP,
    ActionKind.STOP_IGNORED: MessageKind.RUN_STOP,
    ActionKind.FRAME_WRITTEN: MessageKind.TRACE,
    ActionKind.FRAME_WRITE_FAILED: MessageKind.TRACE,
    ActionKind.FRAME_DROPPED: MessageKind.TRACE,
    ActionKind.UNRECOGNIZED: MessageKind.UNKNOWN,
    ActionKind.UNEXPECTED: MessageKind.UNKNOWN,
}

_FAILURE_KINDS: dict[ActionKind, FailureKind] = {
    ActionKind.SESSION_OPEN_FAILED: FailureKind.FILE_WRITE_FAILED,
    ActionKind.FRAME_WRITE_FAILED: FailureKind.FILE_WRITE_FAILED,
    ActionKind.DECODE_FAILED: FailureKind.UNABLE_TO_DECODE_MESSAGE,
}


class IMetricsReporter(Protocol):
    """Observer of controller actions. Fire-and-forget."""

    def observe(self, action: ControllerAction) -> None:
        """Count one controller action."""
        ...


class MetricsReporter:
    """Counts received messages and failures by kind."""

    def __init__(self, registry: CollectorRegistry | None = None):
        self._registry = registry or CollectorRegistry()
        self._messages_received = Counter(
            MESSAGES_RECEIVED,
            "Number of messages received",
            ["message_kind"],
            registry=self._registry,
        )
        self._failures = Counter(
            FAILURES,
            "Number of failures encountered",
            ["failure_kind"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def message_received(self, kind: MessageKind) -> None:
        self._messages_received.labels(message_kind=kind.value).inc()

    def failure(self, kind: FailureKind) -> None:
        self._failures.labels(failure_kind=kind.value).inc()

    def observe(self, action: ControllerAction) -> None:
        """Count one controller action."""
        message_kind = _MESSAGE_KINDS.get(action.kind)
        if message_kind is not None:
            self.message_received(message_kind)

        failure_kind = _FAILURE_KINDS.get(action.kind)
        if failure_kind is not None:
            self.failure(failure_kind)
