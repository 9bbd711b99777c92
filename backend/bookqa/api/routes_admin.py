"""Administrative routes for Book QA."""

from __future__ import annotations

from fastapi import APIRouter, Response

from bookqa.api.dependencies import probe_services
from bookqa.core.metrics import metrics_response
from bookqa.models.dto import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse, summary="Liveness plus model service probes")
def health() -> HealthResponse:
    probes = probe_services()
    status = "healthy" if all(probes.values()) else "degraded"
    return HealthResponse(status=status, **probes)


@router.get("/metrics", summary="Prometheus metrics")
def metrics() -> Response:
    return metrics_response()
