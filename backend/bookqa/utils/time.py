"""Time helpers."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def from_ms(value: int) -> datetime:
    """Convert a millisecond timestamp back to a UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def elapsed_ms(started: float) -> int:
    """Milliseconds elapsed since a ``time.perf_counter()`` reading."""
    return int((time.perf_counter() - started) * 1000)
