"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from bookqa.core.config import Settings, get_settings
from bookqa.core.logging import get_logger
from bookqa.db.chunk_store import ChunkStore
from bookqa.db.sqlite import SQLiteDatabase
from bookqa.generation.generator import Generator
from bookqa.ingest.embeddings import EmbeddingProvider, build_embedding_provider
from bookqa.ingest.pipeline import IngestPipeline
from bookqa.retrieval import QAService, Retriever

logger = get_logger(__name__)

_DB: SQLiteDatabase | None = None
_EMBEDDER: EmbeddingProvider | None = None
_GENERATOR: Generator | None = None
_PIPELINE: IngestPipeline | None = None
_QA_SERVICE: QAService | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        settings = get_app_settings()
        db = SQLiteDatabase(settings.db_path)
        db.ensure_schema()
        _DB = db
    return _DB


def get_chunk_store() -> ChunkStore:
    return ChunkStore(get_database())


def get_embedder() -> EmbeddingProvider:
    global _EMBEDDER
    if _EMBEDDER is None:
        _EMBEDDER = build_embedding_provider(get_app_settings())
    return _EMBEDDER


def get_generator() -> Generator:
    global _GENERATOR
    if _GENERATOR is None:
        _GENERATOR = Generator.from_settings(get_app_settings())
    return _GENERATOR


def get_retriever() -> Retriever:
    return Retriever(get_chunk_store(), get_embedder(), default_k=get_app_settings().top_k)


def get_ingest_pipeline() -> IngestPipeline:
    global _PIPELINE
    if _PIPELINE is None:
        _PIPELINE = IngestPipeline(
            store=get_chunk_store(),
            embedder=get_embedder(),
            settings=get_app_settings(),
        )
    return _PIPELINE


def get_qa_service() -> QAService:
    global _QA_SERVICE
    if _QA_SERVICE is None:
        _QA_SERVICE = QAService(
            retriever=get_retriever(),
            generator=get_generator(),
            default_k=get_app_settings().top_k,
        )
    return _QA_SERVICE


def probe_services() -> dict[str, bool]:
    """Run connectivity probes; failures are logged, never raised."""
    embedder_ok = get_embedder().test_connection()
    generator_ok = get_generator().test_connection()
    if embedder_ok:
        logger.info("Embedding backend reachable (%s)", get_embedder().backend)
    else:
        logger.warning("Embedding backend connection test failed")
    if generator_ok:
        logger.info("Generation backend reachable")
    else:
        logger.warning("Generation backend connection test failed")
    return {"embedder": embedder_ok, "generator": generator_ok}


def reset_dependencies() -> None:
    """Drop cached singletons (tests and CLI reuse)."""
    global _DB, _EMBEDDER, _GENERATOR, _PIPELINE, _QA_SERVICE
    if _DB is not None:
        _DB.close()
    get_app_settings.cache_clear()
    get_settings.cache_clear()
    _DB = None
    _EMBEDDER = None
    _GENERATOR = None
    _PIPELINE = None
    _QA_SERVICE = None


__all__ = [
    "get_app_settings",
    "get_database",
    "get_chunk_store",
    "get_embedder",
    "get_generator",
    "get_retriever",
    "get_ingest_pipeline",
    "get_qa_service",
    "probe_services",
    "reset_dependencies",
]
