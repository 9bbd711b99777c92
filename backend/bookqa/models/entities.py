"""Internal dataclasses representing stored and transient entities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ChunkMetadata:
    title: str
    author: str
    character_start: int
    character_end: int
    chunk_size: int


@dataclass(frozen=True, slots=True)
class Chunk:
    id: str
    document_id: str
    chunk_index: int
    text: str
    metadata: ChunkMetadata
    created_at: datetime


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A chunk paired with its cosine similarity to one query."""

    chunk: Chunk
    score: float


@dataclass(slots=True)
class DocumentSummary:
    """Aggregate view of the chunks that share a document id."""

    id: str
    title: str
    author: str
    total_chunks: int
    uploaded_at: datetime


__all__ = ["ChunkMetadata", "Chunk", "SearchResult", "DocumentSummary"]
