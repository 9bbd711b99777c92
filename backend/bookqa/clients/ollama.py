"""HTTP client for Ollama-compatible model services."""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from bookqa.core.errors import (
    ServiceError,
    ServiceTimeoutError,
    ServiceUnreachableError,
)
from bookqa.core.metrics import SERVICE_CALLS, SERVICE_LATENCY

logger = logging.getLogger(__name__)

PROBE_PATH = "/api/tags"
PROBE_TIMEOUT = 5.0
_BODY_PREVIEW = 500


class OllamaClient:
    """One attempt per call; every failure is mapped to a ``ServiceCallError``."""

    def __init__(
        self,
        base_url: str,
        timeout: float,
        service: str = "ollama",
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.service = service
        self.session = session or requests.Session()

    def _build_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    def post_json(self, path: str, payload: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        response = self._send("POST", path, timeout=timeout, json=payload)
        try:
            data = response.json()
        except ValueError as exc:
            SERVICE_CALLS.labels(service=self.service, outcome="bad_payload").inc()
            raise ServiceError(
                f"{self.service} returned a body that is not JSON",
                self.service,
                status_code=response.status_code,
                body=response.text[:_BODY_PREVIEW],
            ) from exc
        if not isinstance(data, dict):
            raise ServiceError(
                f"{self.service} returned unexpected JSON type {type(data).__name__}",
                self.service,
                status_code=response.status_code,
            )
        return data

    def get(self, path: str, timeout: float | None = None) -> requests.Response:
        return self._send("GET", path, timeout=timeout)

    def probe(self) -> bool:
        """Report whether the service answers; never raises for call failures."""
        try:
            self.get(PROBE_PATH, timeout=min(self.timeout, PROBE_TIMEOUT))
        except (ServiceUnreachableError, ServiceTimeoutError, ServiceError) as exc:
            logger.warning("%s probe at %s failed: %s", self.service, self.base_url, exc)
            return False
        return True

    def _send(self, method: str, path: str, timeout: float | None = None, **kwargs: Any) -> requests.Response:
        url = self._build_url(path)
        bound = timeout if timeout is not None else self.timeout
        started = time.perf_counter()
        try:
            response = self.session.request(method, url, timeout=bound, **kwargs)
        except requests.Timeout as exc:
            SERVICE_CALLS.labels(service=self.service, outcome="timeout").inc()
            raise ServiceTimeoutError(
                f"{self.service} call to {url} timed out after {bound:.1f}s",
                self.service,
            ) from exc
        except requests.ConnectionError as exc:
            SERVICE_CALLS.labels(service=self.service, outcome="unreachable").inc()
            raise ServiceUnreachableError(f"Failed to connect to {self.service} at {url}: {exc}", self.service) from exc
        except requests.RequestException as exc:
            SERVICE_CALLS.labels(service=self.service, outcome="error").inc()
            raise ServiceError(f"{self.service} request to {url} failed: {exc}", self.service) from exc
        finally:
            SERVICE_LATENCY.labels(service=self.service).observe(time.perf_counter() - started)

        if not response.ok:
            SERVICE_CALLS.labels(service=self.service, outcome="http_error").inc()
            body = response.text[:_BODY_PREVIEW]
            raise ServiceError(
                f"{self.service} API error (status {response.status_code}): {body}",
                self.service,
                status_code=response.status_code,
                body=body,
            )
        SERVICE_CALLS.labels(service=self.service, outcome="ok").inc()
        return response

    def close(self) -> None:
        self.session.close()


__all__ = ["OllamaClient", "PROBE_PATH"]
