"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from bookqa.models.entities import SearchResult


class UploadBookRequest(BaseModel):
    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    text: str


class ChunkMetrics(BaseModel):
    total_chunks: int
    avg_chunk_size: float
    min_chunk_size: int
    max_chunk_size: int
    original_size: int


class UploadBookResponse(BaseModel):
    book_id: str
    title: str
    author: str
    total_chunks: int
    processing_time_ms: int
    status: str = "success"
    metrics: ChunkMetrics | None = None


class BookResponse(BaseModel):
    id: str
    title: str
    author: str
    total_chunks: int
    uploaded_at: datetime


class DeleteBookResponse(BaseModel):
    book_id: str
    deleted_chunks: int


class QueryRequest(BaseModel):
    question: str
    book_id: str | None = None
    top_k: int | None = Field(default=None, le=50)


class SourceMetadata(BaseModel):
    book_title: str
    book_author: str
    character_start: int
    character_end: int
    chunk_size: int


class SourceChunk(BaseModel):
    chunk_id: str
    chunk_index: int
    text: str
    score: float
    metadata: SourceMetadata

    @classmethod
    def from_result(cls, result: SearchResult) -> "SourceChunk":
        chunk = result.chunk
        return cls(
            chunk_id=chunk.id,
            chunk_index=chunk.chunk_index,
            text=chunk.text,
            score=result.score,
            metadata=SourceMetadata(
                book_title=chunk.metadata.title,
                book_author=chunk.metadata.author,
                character_start=chunk.metadata.character_start,
                character_end=chunk.metadata.character_end,
                chunk_size=chunk.metadata.chunk_size,
            ),
        )


class QueryResponse(BaseModel):
    answer: str
    sources: list[SourceChunk]
    processing_time_ms: int


class ErrorResponse(BaseModel):
    error: str
    detail: str


class HealthResponse(BaseModel):
    status: str
    service: str = "bookqa"
    embedder: bool
    generator: bool


__all__ = [
    "UploadBookRequest",
    "UploadBookResponse",
    "BookResponse",
    "DeleteBookResponse",
    "QueryRequest",
    "QueryResponse",
    "SourceChunk",
    "ErrorResponse",
    "HealthResponse",
]
