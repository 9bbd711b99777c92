"""Exception hierarchy for the retrieval pipeline.

Every failure the core raises derives from :class:`BookQAError` and carries a
short ``kind`` string. The HTTP layer maps kinds to status codes; the core
itself only promises "fails with <kind> and a descriptive message".
"""

from __future__ import annotations

from typing import Any


class BookQAError(Exception):
    """Base exception for all Book QA errors."""

    kind = "error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InputEmptyError(BookQAError):
    """Raised when there is no text to chunk, embed, or answer."""

    kind = "input_empty"


class ServiceCallError(BookQAError):
    """Base class for failures talking to an external model service."""

    kind = "service_error"

    def __init__(self, message: str, service: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["service"] = service
        self.service = service
        super().__init__(message, details)


class ServiceUnreachableError(ServiceCallError):
    """Connection-level failure reaching the service."""

    kind = "service_unreachable"


class ServiceTimeoutError(ServiceCallError):
    """The call exceeded its configured timeout."""

    kind = "timeout"


class ServiceError(ServiceCallError):
    """The service answered with a non-success status."""

    kind = "service_error"

    def __init__(
        self,
        message: str,
        service: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, service, details)


class EmptyResponseError(ServiceCallError):
    """The service succeeded but returned no usable payload."""

    kind = "empty_response"


class DimensionMismatchError(BookQAError):
    """Two vectors of different length were compared."""

    kind = "dimension_mismatch"

    def __init__(self, left: int, right: int) -> None:
        self.left = left
        self.right = right
        super().__init__(
            f"Cannot compare vectors of length {left} and {right}",
            {"left": left, "right": right},
        )


class NoResultsError(BookQAError):
    """A valid search produced zero candidates."""

    kind = "no_results"


class EmbeddingError(BookQAError):
    """Embedding a query or a batch of chunks failed."""

    kind = "embedding_failed"


class SearchError(BookQAError):
    """Ranking against the chunk store failed."""

    kind = "search_failed"


__all__ = [
    "BookQAError",
    "InputEmptyError",
    "ServiceCallError",
    "ServiceUnreachableError",
    "ServiceTimeoutError",
    "ServiceError",
    "EmptyResponseError",
    "DimensionMismatchError",
    "NoResultsError",
    "EmbeddingError",
    "SearchError",
]
