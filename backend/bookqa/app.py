"""FastAPI application setup for Book QA."""

from __future__ import annotations

import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bookqa.api.dependencies import (
    get_app_settings,
    get_database,
    get_embedder,
    get_generator,
    get_ingest_pipeline,
    get_qa_service,
    probe_services,
)
from bookqa.api.routes_admin import router as admin_router
from bookqa.api.routes_books import router as books_router
from bookqa.api.routes_query import router as query_router
from bookqa.core.errors import (
    BookQAError,
    EmbeddingError,
    EmptyResponseError,
    InputEmptyError,
    NoResultsError,
    SearchError,
    ServiceError,
    ServiceTimeoutError,
    ServiceUnreachableError,
)
from bookqa.core.logging import configure_logging, get_logger
from bookqa.core.metrics import REQUEST_COUNT, REQUEST_LATENCY

configure_logging()
logger = get_logger(__name__)

# Most specific classes first; the first isinstance match wins.
ERROR_STATUS: tuple[tuple[type[BookQAError], int], ...] = (
    (InputEmptyError, 400),
    (NoResultsError, 404),
    (ServiceTimeoutError, 504),
    (ServiceUnreachableError, 503),
    (ServiceError, 502),
    (EmptyResponseError, 502),
    (EmbeddingError, 502),
    (SearchError, 500),
)

app = FastAPI(
    title="Book QA",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(books_router, prefix="/api/books", tags=["books"])
app.include_router(query_router, prefix="/api", tags=["query"])
app.include_router(admin_router, prefix="", tags=["admin"])


def status_for(exc: BookQAError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


@app.exception_handler(BookQAError)
async def handle_bookqa_error(request: Request, exc: BookQAError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"error": exc.kind, "detail": exc.message})


@app.middleware("http")
async def record_request_metrics(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    endpoint = request.url.path
    REQUEST_LATENCY.labels(endpoint=endpoint, method=request.method).observe(time.perf_counter() - started)
    REQUEST_COUNT.labels(endpoint=endpoint, method=request.method, status=str(response.status_code)).inc()
    return response


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons and probe the model services."""
    settings = get_app_settings()
    get_database()
    get_embedder()
    get_generator()
    get_ingest_pipeline()
    get_qa_service()
    if settings.probe_on_startup:
        probe_services()
