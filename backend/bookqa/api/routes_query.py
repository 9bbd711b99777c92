"""Query API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from bookqa.api.dependencies import get_qa_service
from bookqa.models.dto import QueryRequest, QueryResponse, SourceChunk
from bookqa.retrieval.qa import QAService

router = APIRouter()


@router.post("/query", response_model=QueryResponse, summary="Answer a question about one book")
def query_book(
    request: QueryRequest,
    service: QAService = Depends(get_qa_service),
) -> QueryResponse:
    answer = service.answer(request.question, request.book_id or "", k=request.top_k)
    return QueryResponse(
        answer=answer.answer,
        sources=[SourceChunk.from_result(result) for result in answer.sources],
        processing_time_ms=answer.processing_time_ms,
    )
