"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "bookqa_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "bookqa_request_latency_seconds",
    "Latency of HTTP requests",
    labelnames=("endpoint", "method"),
    registry=REGISTRY,
)

SERVICE_CALLS = Counter(
    "bookqa_service_calls_total",
    "Calls made to external model services",
    labelnames=("service", "outcome"),
    registry=REGISTRY,
)

SERVICE_LATENCY = Histogram(
    "bookqa_service_latency_seconds",
    "Latency of external model service calls",
    labelnames=("service",),
    registry=REGISTRY,
)

INGEST_DURATION = Histogram(
    "bookqa_ingest_duration_seconds",
    "Ingest pipeline duration",
    registry=REGISTRY,
)

INDEX_SIZE = Gauge(
    "bookqa_index_chunks",
    "Number of chunks stored",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SERVICE_CALLS",
    "SERVICE_LATENCY",
    "INGEST_DURATION",
    "INDEX_SIZE",
    "metrics_response",
]
