"""FastAPI application for the metrics exporter."""

from fastapi import FastAPI

from ..metrics import MetricsReporter
from .routes import observability


def create_fastapi_app(reporter: MetricsReporter) -> FastAPI:
    """Create and configure the observability application."""
    fastapi_app = FastAPI(
        title="Trace Archiver",
        description="Metrics exporter for the trace archiver",
        version="0.1.0",
    )

    fastapi_app.include_router(observability.create_observability_router(reporter))

    return fastapi_app
