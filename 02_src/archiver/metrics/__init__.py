"""Metrics module."""

from .reporter import (
    FAILURES,
    MESSAGES_RECEIVED,
    FailureKind,
    IMetricsReporter,
    MessageKind,
    MetricsReporter,
)

__all__ = [
    "FAILURES",
    "MESSAGES_RECEIVED",
    "FailureKind",
    "IMetricsReporter",
    "MessageKind",
    "MetricsReporter",
]
