"""Observability API routes."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from ...metrics import MetricsReporter


class StatusResponse(BaseModel):
    """Response model for health checks."""

    status: str


def create_observability_router(reporter: MetricsReporter) -> APIRouter:
    """Create observability router."""
    router = APIRouter(tags=["observability"])

    @router.get("/metrics")
    async def metrics() -> Response:
        """Prometheus scrape endpoint."""
        return Response(
            content=generate_latest(reporter.registry),
            media_type=CONTENT_TYPE_LATEST,
        )

    @router.get("/api/health", response_model=StatusResponse)
    async def health() -> dict:
        """Liveness probe."""
        return {"status": "ok"}

    return router
