"""Bus message envelope."""

from dataclasses import dataclass
from typing import Any

# Kafka reports a missing timestamp as -1
NO_TIMESTAMP = -1


@dataclass(frozen=True)
class MessageEnvelope:
    """Immutable view of one received bus message."""

    topic: str
    partition: int
    offset: int
    timestamp: int | None  # ms since epoch
    key: bytes | None
    payload: bytes

    @classmethod
    def from_record(cls, record: Any) -> "MessageEnvelope":
        """Build an envelope from an aiokafka ConsumerRecord."""
        timestamp = record.timestamp
        if timestamp is None or timestamp == NO_TIMESTAMP:
            timestamp = None

        return cls(
            topic=record.topic,
            partition=record.partition,
            offset=record.offset,
            timestamp=timestamp,
            key=record.key,
            payload=record.value or b"",
        )

    def describe(self) -> dict:
        """Loggable summary, payload excluded."""
        return {
            "key": self.key,
            "topic": self.topic,
            "partition": self.partition,
            "offset": self.offset,
            "timestamp": self.timestamp,
            "payload_size": len(self.payload),
        }
