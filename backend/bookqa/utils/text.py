"""Text processing helpers."""

from __future__ import annotations

import re


WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Collapse whitespace and strip."""
    return WHITESPACE_RE.sub(" ", text).strip()


def clean_lines(text: str) -> str:
    """Normalize every line, drop blank ones, and join the rest with spaces."""
    lines = (normalize(line) for line in text.splitlines())
    return " ".join(line for line in lines if line)
