"""Run-scoped trace archiver."""

from .app import Application, IApplication, StartupError
from .classifier import IMessageClassifier, MessageClassifier
from .config import ArchiverSettings, KafkaSettings
from .consumer import ConsumeLoop, IBusConsumer
from .controller import (
    ArchivingController,
    IArchivingController,
    NamingError,
    RunSession,
    generate_filename,
)
from .metrics import FailureKind, IMetricsReporter, MessageKind, MetricsReporter
from .models import (
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
from .sink import ISinkFactory, ITraceSink, TraceFile, TraceFileError, TraceFileFactory

__all__ = [
    # Application
    "Application",
    "IApplication",
    "StartupError",
    "ArchiverSettings",
    "KafkaSettings",
    # Models
    "MessageEnvelope",
    "ClassifiedMessage",
    "RunStart",
    "RunStop",
    "TraceFrame",
    "Unrecognized",
    "Unexpected",
    "DecodeFailed",
    "ActionKind",
    "ControllerAction",
    # Components
    "IMessageClassifier",
    "MessageClassifier",
    "IArchivingController",
    "ArchivingController",
    "RunSession",
    "NamingError",
    "generate_filename",
    "ISinkFactory",
    "ITraceSink",
    "TraceFile",
    "TraceFileError",
    "TraceFileFactory",
    "IMetricsReporter",
    "MetricsReporter",
    "MessageKind",
    "FailureKind",
    "IBusConsumer",
    "ConsumeLoop",
]
