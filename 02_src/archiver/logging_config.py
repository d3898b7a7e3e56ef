"""JSON logging shared by the archiver and the trace generator."""

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path

from .config import LOGS_DIR


class JSONFormatter(logging.Formatter):
    """One JSON object per line, stamped with the emitting service."""

    def __init__(self, service: str = "archiver"):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": self.service,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}:{record.lineno}",
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Envelope details, run names
        if hasattr(record, "context"):
            log_data["context"] = record.context

        return json.dumps(log_data, default=str)


def setup_logging(
    service: str = "archiver",
    log_level: str | None = None,
    log_file: str | None = None,
) -> None:
    """
    Route the root logger to stdout and a rotating file, both as JSON.

    Args:
        service: Name stamped on every record; also names the default
                 log file, 04_logs/<service>.log.
        log_level: Defaults to LOG_LEVEL or INFO.
        log_file: Defaults to LOG_FILE or the per-service file.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    if log_file is None:
        log_file = os.getenv("LOG_FILE") or str(LOGS_DIR / f"{service}.log")

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "archiver.logging_config.JSONFormatter",
                "service": service,
            },
        },
        "handlers": {
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": log_file,
                "maxBytes": 10 * 1024 * 1024,  # 10 MB
                "backupCount": 5,
                "formatter": "json",
                "encoding": "utf-8",
            },
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": log_level.upper(),
            "handlers": ["file", "console"],
        },
        "loggers": {
            # group rebalance chatter
            "aiokafka": {"level": "WARNING"},
        },
    })


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
