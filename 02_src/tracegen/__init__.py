"""Trace generator module."""

from .generator import (
    ITraceGenerator,
    ITraceProducer,
    TraceGenerator,
    TraceGeneratorSettings,
)

__all__ = [
    "ITraceGenerator",
    "ITraceProducer",
    "TraceGenerator",
    "TraceGeneratorSettings",
]
