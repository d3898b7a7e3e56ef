"""Outcomes of the archiving controller."""

from dataclasses import dataclass
from enum import Enum


class ActionKind(str, Enum):
    """What the controller did with one message."""

    SESSION_OPENED = "session_opened"
    SESSION_OPEN_FAILED = "session_open_failed"
    START_IGNORED = "start_ignored"
    SESSION_CLOSED = "session_closed"
    STOP_IGNORED = "stop_ignored"
    FRAME_WRITTEN = "frame_written"
    FRAME_WRITE_FAILED = "frame_write_failed"
    FRAME_DROPPED = "frame_dropped"
    UNRECOGNIZED = "unrecognized"
    UNEXPECTED = "unexpected"
    DECODE_FAILED = "decode_failed"


@dataclass(frozen=True)
class ControllerAction:
    """Result of ArchivingController.handle()."""

    kind: ActionKind
    artifact_name: str | None = None
    detail: str | None = None
