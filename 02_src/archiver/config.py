"""Project-level configuration and path helpers."""

import os
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_ARCHIVE_DIR = DATA_DIR / "archive"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_output_dir(env_value: PathLike | None = None) -> Path:
    """Resolve ARCHIVER_OUTPUT_DIR to an absolute path."""
    if not env_value:
        return DEFAULT_ARCHIVE_DIR

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def parse_address(address: str) -> tuple[str, int]:
    """Split a ``host:port`` address."""
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"Expected host:port, got {address!r}")
    return host, int(port)


class KafkaSettings(BaseModel):
    """Broker connection shared by the archiver and the trace generator."""

    model_config = ConfigDict(validate_default=True)

    broker: str = Field(default_factory=lambda: os.getenv("KAFKA_BROKER", "localhost:9092"))
    username: str | None = Field(default_factory=lambda: os.getenv("KAFKA_USERNAME") or None)
    password: str | None = Field(default_factory=lambda: os.getenv("KAFKA_PASSWORD") or None)


class ArchiverSettings(KafkaSettings):
    """
    Static configuration of the archiver process.

    Read once at process start; nothing re-reads it while the consume
    loop is running.
    """

    consumer_group: str = Field(
        default_factory=lambda: os.getenv("KAFKA_CONSUMER_GROUP", "trace-archiver")
    )
    control_topic: str = Field(
        default_factory=lambda: os.getenv("ARCHIVER_CONTROL_TOPIC", "Controls")
    )
    trace_topic: str = Field(
        default_factory=lambda: os.getenv("ARCHIVER_TRACE_TOPIC", "Traces")
    )
    digitizer_count: int = Field(
        default_factory=lambda: os.getenv("ARCHIVER_DIGITIZER_COUNT", "8"),
        ge=1,
    )
    observability_address: str = Field(
        default_factory=lambda: os.getenv("ARCHIVER_OBSERVABILITY_ADDRESS", "127.0.0.1:9090")
    )
    output_dir: Path = Field(
        default_factory=lambda: resolve_output_dir(os.getenv("ARCHIVER_OUTPUT_DIR"))
    )
    artifact_extension: str = Field(
        default_factory=lambda: os.getenv("ARCHIVER_ARTIFACT_EXTENSION", "db")
    )
    isolate_partitions: bool = Field(
        default_factory=lambda: env_flag("ARCHIVER_ISOLATE_PARTITIONS")
    )

    @field_validator("observability_address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        parse_address(value)
        return value

    @field_validator("artifact_extension")
    @classmethod
    def _strip_dot(cls, value: str) -> str:
        value = value.lstrip(".")
        if not value:
            raise ValueError("artifact extension must not be empty")
        return value

    @property
    def observability_host(self) -> str:
        return parse_address(self.observability_address)[0]

    @property
    def observability_port(self) -> int:
        return parse_address(self.observability_address)[1]
