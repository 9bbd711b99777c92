"""Question answering over one ingested document."""

from __future__ import annotations

import time
from dataclasses import dataclass

from bookqa.core.errors import InputEmptyError, NoResultsError
from bookqa.core.logging import get_logger, with_context
from bookqa.generation.generator import Generator
from bookqa.models.entities import SearchResult
from bookqa.retrieval.retriever import Retriever
from bookqa.utils.time import elapsed_ms

logger = get_logger(__name__)


@dataclass(slots=True)
class Answer:
    answer: str
    sources: list[SearchResult]
    processing_time_ms: int


class QAService:
    """Retrieve, then generate. No partial answers: any failure propagates."""

    def __init__(self, retriever: Retriever, generator: Generator, default_k: int) -> None:
        self.retriever = retriever
        self.generator = generator
        self.default_k = default_k

    def answer(self, question: str, document_id: str, k: int | None = None) -> Answer:
        started = time.perf_counter()
        if not question or not question.strip():
            raise InputEmptyError("Question is empty")
        if not document_id:
            raise InputEmptyError("document_id is required")
        top_k = k if k and k > 0 else self.default_k

        log = with_context(logger, document_id=document_id)
        log.info("Query: %r (document=%s, top-k=%d)", question, document_id, top_k)
        results = self.retriever.retrieve(question, top_k, document_id)
        if not results:
            raise NoResultsError("No relevant chunks found", {"document_id": document_id})

        answer = self.generator.generate(question, [result.chunk.text for result in results])
        took = elapsed_ms(started)
        log.info("Query answered in %dms from %d chunks", took, len(results))
        return Answer(answer=answer, sources=results, processing_time_ms=took)


__all__ = ["QAService", "Answer"]
