"""Core data models for the trace archiver."""

from .actions import ActionKind, ControllerAction
from .classified import (
    ClassifiedMessage,
    DecodeFailed,
    RunStart,
    RunStop,
    TraceFrame,
    Unexpected,
    Unrecognized,
)
from .envelope import MessageEnvelope

__all__ = [
    # Envelope
    "MessageEnvelope",
    # Classification
    "ClassifiedMessage",
    "RunStart",
    "RunStop",
    "TraceFrame",
    "Unrecognized",
    "Unexpected",
    "DecodeFailed",
    # Actions
    "ActionKind",
    "ControllerAction",
]
