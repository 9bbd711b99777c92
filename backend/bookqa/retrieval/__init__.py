"""Retrieval orchestration components."""

from .qa import Answer, QAService
from .retriever import Retriever
from .similarity import cosine_similarity, search

__all__ = [
    "Answer",
    "QAService",
    "Retriever",
    "cosine_similarity",
    "search",
]
