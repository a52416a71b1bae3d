"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Recent-call history and repeated-call (loop) detection.
"""

from __future__ import annotations

from collections import Counter, deque
from collections.abc import Iterable

from .contracts import CallRecord, LoopReport

DEFAULT_HISTORY_SIZE = 20
LOOP_WINDOW_S = 5 * 60.0
LOOP_THRESHOLD = 2
OVERUSE_THRESHOLD = 5


class CallHistory:
    """Bounded FIFO of the most recent calls; the oldest record is evicted first."""

    def __init__(self, capacity: int = DEFAULT_HISTORY_SIZE) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._rows: deque[CallRecord] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._rows.maxlen or 0

    def record(self, endpoint: str, cache_key: str, timestamp_s: float) -> CallRecord:
        row = CallRecord(endpoint=endpoint, cache_key=cache_key, timestamp_s=timestamp_s)
        self._rows.append(row)
        return row

    def records(self) -> list[CallRecord]:
        return list(self._rows)

    def clear(self) -> None:
        self._rows.clear()

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self):
        return iter(list(self._rows))


def detect_loops(
    records: Iterable[CallRecord],
    *,
    now_s: float,
    window_s: float = LOOP_WINDOW_S,
) -> LoopReport:
    """
    Inspect call records for stuck-caller patterns.

    An identical cache key seen ``LOOP_THRESHOLD`` times inside ``window_s``
    declares a loop. An endpoint seen ``OVERUSE_THRESHOLD`` times anywhere in
    the retained history only produces an advisory warning.
    """
    rows = list(records)
    cutoff = now_s - window_s

    key_counts = Counter(row.cache_key for row in rows if row.timestamp_s > cutoff)
    warnings: list[str] = []
    is_loop = False
    repeated_key: str | None = None
    repeated_count = 0

    for key, count in key_counts.items():
        if count < LOOP_THRESHOLD:
            continue
        is_loop = True
        if count > repeated_count:
            repeated_key, repeated_count = key, count
        warnings.append(
            f"CRITICAL LOOP DETECTED: Identical call made {count} times in the last 5 minutes"
        )
        warnings.append("STOP IMMEDIATELY: You already have all the data from this endpoint")
        warnings.append("MANDATORY: Analyze the existing data - DO NOT make more calls")
        warnings.append("SYSTEM: Further identical calls will be blocked")

    endpoint_counts = Counter(row.endpoint for row in rows)
    for endpoint, count in endpoint_counts.items():
        if count >= OVERUSE_THRESHOLD:
            warnings.append(f"OVERUSE WARNING: {endpoint} called {count} times recently")
            warnings.append(
                "SUGGESTION: Consider using different endpoints or analyzing existing data"
            )

    return LoopReport(
        is_loop=is_loop,
        warnings=tuple(warnings),
        repeated_key=repeated_key,
        repeated_count=repeated_count,
    )
