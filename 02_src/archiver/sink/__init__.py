"""Trace file sink module."""

from .trace_file import (
    ISinkFactory,
    ITraceSink,
    TraceFile,
    TraceFileError,
    TraceFileFactory,
)

__all__ = [
    "ISinkFactory",
    "ITraceSink",
    "TraceFile",
    "TraceFileError",
    "TraceFileFactory",
]
