"""Chunking utilities."""

from __future__ import annotations

import logging
import time
from typing import Sequence

from bookqa.ingest.types import ChunkMetrics, ChunkSpan
from bookqa.utils.text import clean_lines

logger = logging.getLogger(__name__)

SENTENCE_ENDERS = frozenset(".!?。！？")
_ITERATION_MARGIN = 1000


def clean_text(text: str) -> str:
    """Collapse whitespace inside lines, drop blank lines, join with spaces."""
    return clean_lines(text)


def chunk_text(text: str, size: int = 500, overlap: int = 50) -> list[str]:
    """Split text into overlapping, boundary-aware chunks."""
    return [span.text for span in chunk_spans(text, size=size, overlap=overlap)]


def chunk_spans(text: str, size: int = 500, overlap: int = 50) -> list[ChunkSpan]:
    """Like :func:`chunk_text` but keeps each chunk's offsets in the cleaned text."""
    size = max(1, size)
    overlap = max(0, overlap)
    started = time.perf_counter()

    cleaned = clean_text(text)
    length = len(cleaned)
    if not cleaned:
        logger.debug("Text is empty after cleaning")
        return []
    if length <= size:
        return [ChunkSpan(text=cleaned, start=0, end=length)]

    step = max(size - overlap, 1)
    max_iterations = length // step + _ITERATION_MARGIN

    spans: list[ChunkSpan] = []
    start = 0
    iteration = 0
    while start < length:
        iteration += 1
        if iteration > max_iterations:
            logger.error(
                "Chunking exceeded %d iterations (start=%d, length=%d, chunks=%d); stopping early",
                max_iterations,
                start,
                length,
                len(spans),
            )
            break

        end = min(start + size, length)
        if end < length:
            boundary = find_boundary(cleaned, start, end)
            # Only take the boundary if the next window still moves forward.
            if boundary > start + overlap:
                end = boundary

        span = _strip_span(cleaned, start, end)
        if span is not None:
            # Windows advancing one character at a time can strip to the same start.
            if spans and span.start <= spans[-1].start:
                if span.end > spans[-1].end:
                    spans[-1] = span
            else:
                spans.append(span)

        if end >= length:
            break

        previous = start
        start = max(end - overlap, 0)
        if start <= previous:
            start = previous + 1

    logger.debug(
        "Created %d chunks from %d characters in %.1fms",
        len(spans),
        length,
        (time.perf_counter() - started) * 1000,
    )
    return spans


def find_boundary(text: str, start: int, end: int) -> int:
    """Return the best break position in ``text[start:end]``.

    Searches backward from ``end`` for a sentence terminator followed by
    whitespace, then a paragraph break, then any whitespace. Falls back to
    ``end`` when none exists.
    """
    if end <= start:
        return end
    length = len(text)

    for idx in range(end - 1, start, -1):
        if text[idx] in SENTENCE_ENDERS and (idx + 1 >= length or text[idx + 1].isspace()):
            return idx + 1

    for idx in range(end - 1, start, -1):
        if idx + 1 < length and text[idx] == "\n" and text[idx + 1] == "\n":
            return idx + 2

    for idx in range(end - 1, start, -1):
        if text[idx].isspace():
            return idx + 1

    return end


def calculate_metrics(chunks: Sequence[str], original_text: str) -> ChunkMetrics:
    """Summarize chunk sizes for logging."""
    if not chunks:
        return ChunkMetrics(original_size=len(original_text))
    sizes = [len(chunk) for chunk in chunks]
    return ChunkMetrics(
        total_chunks=len(sizes),
        avg_chunk_size=sum(sizes) / len(sizes),
        min_chunk_size=min(sizes),
        max_chunk_size=max(sizes),
        original_size=len(original_text),
    )


def _strip_span(text: str, start: int, end: int) -> ChunkSpan | None:
    seg_start = start
    seg_end = end
    while seg_start < seg_end and text[seg_start].isspace():
        seg_start += 1
    while seg_end > seg_start and text[seg_end - 1].isspace():
        seg_end -= 1
    if seg_start >= seg_end:
        return None
    return ChunkSpan(text=text[seg_start:seg_end], start=seg_start, end=seg_end)


__all__ = ["clean_text", "chunk_text", "chunk_spans", "find_boundary", "calculate_metrics"]
