"""Semantic kinds produced by the message classifier."""

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from ..schemas import DigitizerAnalogTraceMessage


@dataclass(frozen=True)
class RunStart:
    """Run start signal on the control topic."""

    run_name: str | None = None


@dataclass(frozen=True)
class RunStop:
    """Run stop signal on the control topic."""

    run_name: str | None = None


@dataclass(frozen=True)
class TraceFrame:
    """A decoded trace packet."""

    message: DigitizerAnalogTraceMessage

    @property
    def digitizer_id(self) -> int:
        return self.message.digitizer_id

    @property
    def frame_number(self) -> int:
        return self.message.metadata.frame_number

    @property
    def timestamp(self) -> datetime | None:
        return self.message.metadata.timestamp

    @property
    def sample_rate(self) -> int:
        return self.message.sample_rate

    @property
    def voltages(self) -> dict[int, list[int]]:
        return {c.channel: c.voltage for c in self.message.channels}


@dataclass(frozen=True)
class Unrecognized:
    """Unknown schema on the control topic."""

    topic: str


@dataclass(frozen=True)
class Unexpected:
    """Message on a topic, or with a tag, it should never use."""

    topic: str


@dataclass(frozen=True)
class DecodeFailed:
    """Trace identifier present but the body is malformed."""

    topic: str
    error: str


ClassifiedMessage = Union[RunStart, RunStop, TraceFrame, Unrecognized, Unexpected, DecodeFailed]
