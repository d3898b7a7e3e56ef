"""Message classifier implementation."""

from typing import Protocol

from ..logging_config import get_logger
from ..models import (
    ClassifiedMessage,
    DecodeFailed,
    RunStart,
    RunStop,
    TraceFrame,
    Unexpected,
    Unrecognized,
)
from ..schemas import (
    RUN_START_IDENTIFIER,
    RUN_STOP_IDENTIFIER,
    TRACE_IDENTIFIER,
    DecodeError,
    decode_run_start,
    decode_run_stop,
    decode_trace_message,
    has_identifier,
)

logger = get_logger(__name__)


class IMessageClassifier(Protocol):
    """Pure mapping from (topic, payload) to a semantic kind."""

    def classify(self, topic: str, payload: bytes) -> ClassifiedMessage:
        """Classify one payload. Never raises on bad input."""
        ...


class MessageClassifier:
    """Classifies payloads by schema identifier, then by topic."""

    def __init__(self, control_topic: str):
        self._control_topic = control_topic

    @property
    def control_topic(self) -> str:
        return self._control_topic

    def classify(self, topic: str, payload: bytes) -> ClassifiedMessage:
        """Classify one payload. Never raises on bad input."""
        # Trace packets are the high-rate path, check them first
        if has_identifier(payload, TRACE_IDENTIFIER):
            try:
                return TraceFrame(decode_trace_message(payload))
            except DecodeError as e:
                return DecodeFailed(topic=topic, error=str(e))

        if topic == self._control_topic:
            if has_identifier(payload, RUN_START_IDENTIFIER):
                return RunStart(run_name=self._run_name(decode_run_start, payload))
            if has_identifier(payload, RUN_STOP_IDENTIFIER):
                return RunStop(run_name=self._run_name(decode_run_stop, payload))
            return Unrecognized(topic=topic)

        return Unexpected(topic=topic)

    @staticmethod
    def _run_name(decode, payload: bytes) -> str | None:
        """Best-effort run name; the identifier alone decides the kind."""
        try:
            return decode(payload).run_name
        except DecodeError as e:
            logger.debug("Run control body not decodable: %s", e)
            return None
