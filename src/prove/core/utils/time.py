"""Timestamp helpers.

Persisted records use integer milliseconds since the epoch; reports and
human output render them as ISO 8601 UTC.
"""
from __future__ import annotations

import time
from datetime import datetime, timezone


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def elapsed_ms(start: float) -> int:
    """Return milliseconds elapsed since a ``time.perf_counter()`` reading."""
    return max(0, int(round((time.perf_counter() - start) * 1000)))


def format_ms(timestamp_ms: float) -> str:
    """Render epoch milliseconds as an ISO 8601 UTC string with a ``Z`` suffix."""
    dt = datetime.fromtimestamp(float(timestamp_ms) / 1000.0, tz=timezone.utc)
    return dt.isoformat(timespec="seconds").replace("+00:00", "Z")


__all__ = ["now_ms", "elapsed_ms", "format_ms"]
