"""Millisecond timestamps used to build store keys.

Every key written by the log, the record store and the notification composer
ends in an epoch-millisecond value.  :class:`MonotonicClock` hands out values
that are strictly increasing even when two writes land in the same clock
tick.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def to_iso(ms: int) -> str:
    """Render epoch milliseconds as ``2026-02-17T10:30:00.000Z``."""
    dt = datetime.fromtimestamp(ms // 1000, UTC) + timedelta(milliseconds=ms % 1000)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class MonotonicClock:
    """Strictly increasing millisecond stamps.

    One high-water mark is shared by every caller, so stamps increase within
    each session or record type while the clock's state stays a single int.
    """

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        self._clock = clock or now_ms
        self._last = -1
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._last = max(self._clock(), self._last + 1)
            return self._last
