"""Exact cosine-similarity ranking over stored chunk vectors."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Sequence, Tuple

from bookqa.core.errors import DimensionMismatchError
from bookqa.models.entities import Chunk, SearchResult

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5

Candidate = Tuple[Chunk, Sequence[float]]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product over the product of norms; 0.0 when either norm is zero."""
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def search(
    query_vector: Sequence[float],
    candidates: Iterable[Candidate],
    k: int,
    document_id: str | None = None,
    default_k: int = DEFAULT_TOP_K,
) -> list[SearchResult]:
    """Return the top ``k`` candidates by descending cosine similarity.

    Candidates outside ``document_id`` are dropped before scoring, and
    candidates whose vector length differs from the query's are skipped
    rather than scored.
    """
    top_k = k if k > 0 else default_k
    dim = len(query_vector)
    scored: list[SearchResult] = []
    skipped = 0
    for chunk, vector in candidates:
        if document_id and chunk.document_id != document_id:
            continue
        if len(vector) != dim:
            skipped += 1
            continue
        scored.append(SearchResult(chunk=chunk, score=cosine_similarity(query_vector, vector)))

    if skipped:
        logger.debug("Skipped %d candidates with dimension != %d", skipped, dim)

    scored.sort(key=lambda item: item.score, reverse=True)
    return scored[:top_k]


__all__ = ["cosine_similarity", "search", "Candidate", "DEFAULT_TOP_K"]
