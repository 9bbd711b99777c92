"""Book upload and management routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from bookqa.api.dependencies import get_chunk_store, get_ingest_pipeline
from bookqa.core.metrics import INDEX_SIZE
from bookqa.db.chunk_store import ChunkStore
from bookqa.ingest.pipeline import IngestPipeline
from bookqa.models.dto import (
    BookResponse,
    ChunkMetrics,
    DeleteBookResponse,
    UploadBookRequest,
    UploadBookResponse,
)

router = APIRouter()


@router.post("", response_model=UploadBookResponse, summary="Chunk, embed and store a book")
def upload_book(
    request: UploadBookRequest,
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> UploadBookResponse:
    result = pipeline.ingest_text(request.text, title=request.title, author=request.author)
    return UploadBookResponse(
        book_id=result.document_id,
        title=result.title,
        author=result.author,
        total_chunks=result.total_chunks,
        processing_time_ms=result.processing_time_ms,
        metrics=ChunkMetrics(**result.metrics.to_dict()),
    )


@router.get("", response_model=list[BookResponse], summary="List ingested books")
def list_books(store: ChunkStore = Depends(get_chunk_store)) -> list[BookResponse]:
    return [
        BookResponse(
            id=summary.id,
            title=summary.title,
            author=summary.author,
            total_chunks=summary.total_chunks,
            uploaded_at=summary.uploaded_at,
        )
        for summary in store.list_documents()
    ]


@router.delete("/{book_id}", response_model=DeleteBookResponse, summary="Delete a book's chunks")
def delete_book(book_id: str, store: ChunkStore = Depends(get_chunk_store)) -> DeleteBookResponse:
    deleted = store.delete_document(book_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Book not found")
    INDEX_SIZE.set(store.count_chunks())
    return DeleteBookResponse(book_id=book_id, deleted_chunks=deleted)
