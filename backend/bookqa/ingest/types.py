"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ChunkSpan:
    """A chunk of cleaned text with its offsets in that text."""

    text: str
    start: int
    end: int


@dataclass(slots=True)
class ChunkMetrics:
    """Size statistics for one chunking run."""

    total_chunks: int = 0
    avg_chunk_size: float = 0.0
    min_chunk_size: int = 0
    max_chunk_size: int = 0
    original_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class IngestResult:
    """Outcome of ingesting one document."""

    document_id: str
    title: str
    author: str
    total_chunks: int
    processing_time_ms: int
    metrics: ChunkMetrics = field(default_factory=ChunkMetrics)


__all__ = ["ChunkSpan", "ChunkMetrics", "IngestResult"]
