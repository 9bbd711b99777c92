"""Ingest pipeline orchestration."""

from __future__ import annotations

import time

from bookqa.core.config import Settings
from bookqa.core.errors import InputEmptyError
from bookqa.core.logging import get_logger, with_context
from bookqa.core.metrics import INDEX_SIZE, INGEST_DURATION
from bookqa.db.chunk_store import ChunkStore
from bookqa.ingest.chunker import calculate_metrics, chunk_spans
from bookqa.ingest.embeddings import EmbeddingProvider
from bookqa.ingest.types import ChunkSpan, IngestResult
from bookqa.models.entities import Chunk, ChunkMetadata
from bookqa.utils.ids import new_id
from bookqa.utils.time import elapsed_ms, utc_now

logger = get_logger(__name__)


class IngestPipeline:
    """Coordinate chunking, embeddings, and persistence for one document."""

    def __init__(self, store: ChunkStore, embedder: EmbeddingProvider, settings: Settings) -> None:
        self.store = store
        self.embedder = embedder
        self.settings = settings

    def ingest_text(self, text: str, title: str, author: str) -> IngestResult:
        started = time.perf_counter()
        if not text or not text.strip():
            raise InputEmptyError("Document is empty")
        document_id = new_id("doc")
        log = with_context(logger, document_id=document_id, title=title)
        log.info("Processing document: %s by %s (%d characters)", title, author, len(text))

        spans = chunk_spans(text, size=self.settings.chunk_size, overlap=self.settings.chunk_overlap)
        if not spans:
            raise InputEmptyError("Document produced no chunks")
        metrics = calculate_metrics([span.text for span in spans], text)
        log.info(
            "Created %d chunks (avg %.0f, min %d, max %d chars)",
            metrics.total_chunks,
            metrics.avg_chunk_size,
            metrics.min_chunk_size,
            metrics.max_chunk_size,
        )

        embed_started = time.perf_counter()
        vectors = self.embedder.embed_many(
            [span.text for span in spans],
            batch_size=self.settings.embed_batch_size,
        )
        log.info("Generated %d embeddings in %dms", len(vectors), elapsed_ms(embed_started))

        chunks = _build_chunks(document_id, spans, title, author)
        self.store.insert_chunks(chunks, vectors)

        took = elapsed_ms(started)
        INGEST_DURATION.observe(took / 1000)
        self._update_index_metric()
        log.info("Document processed: %s (id=%s) in %dms", title, document_id, took)
        return IngestResult(
            document_id=document_id,
            title=title,
            author=author,
            total_chunks=len(chunks),
            processing_time_ms=took,
            metrics=metrics,
        )

    def _update_index_metric(self) -> None:
        INDEX_SIZE.set(self.store.count_chunks())


def _build_chunks(document_id: str, spans: list[ChunkSpan], title: str, author: str) -> list[Chunk]:
    created_at = utc_now()
    return [
        Chunk(
            id=new_id("chk"),
            document_id=document_id,
            chunk_index=idx,
            text=span.text,
            metadata=ChunkMetadata(
                title=title,
                author=author,
                character_start=span.start,
                character_end=span.end,
                chunk_size=len(span.text),
            ),
            created_at=created_at,
        )
        for idx, span in enumerate(spans)
    ]


__all__ = ["IngestPipeline"]
