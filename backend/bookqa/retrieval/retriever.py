"""Query-time retrieval: embed the question, rank the stored chunks."""

from __future__ import annotations

import logging
import sqlite3

from bookqa.core.errors import BookQAError, EmbeddingError, SearchError
from bookqa.db.chunk_store import ChunkStore
from bookqa.ingest.embeddings import EmbeddingProvider
from bookqa.models.entities import SearchResult
from bookqa.retrieval.similarity import DEFAULT_TOP_K, search

logger = logging.getLogger(__name__)


class Retriever:
    """Finds the chunks of one document most similar to a query."""

    def __init__(self, store: ChunkStore, embedder: EmbeddingProvider, default_k: int = DEFAULT_TOP_K) -> None:
        self.store = store
        self.embedder = embedder
        self.default_k = default_k

    def retrieve(self, query_text: str, k: int, document_id: str | None = None) -> list[SearchResult]:
        try:
            query_vector = self.embedder.embed(query_text)
        except BookQAError as exc:
            raise EmbeddingError(f"Failed to generate query embedding: {exc.message}", {"kind": exc.kind}) from exc

        try:
            candidates = self.store.fetch_candidates(document_id)
        except sqlite3.Error as exc:
            raise SearchError(f"Vector search failed: {exc}") from exc

        results = search(query_vector, candidates, k, document_id=document_id, default_k=self.default_k)
        logger.info(
            "Retrieved %d of %d candidates (document=%s, k=%d)",
            len(results),
            len(candidates),
            document_id or "*",
            k if k > 0 else self.default_k,
        )
        return results


__all__ = ["Retriever"]
