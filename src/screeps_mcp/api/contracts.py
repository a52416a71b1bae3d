"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed policies and records used by the Screeps API access layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

JSONValue = Any

DEFAULT_RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry semantics for outbound API requests."""

    max_retries: int = 3
    initial_delay_s: float = 1.0
    max_delay_s: float = 10.0
    retryable_status_codes: frozenset[int] = DEFAULT_RETRYABLE_STATUS_CODES

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay_s < 0 or self.max_delay_s < 0:
            raise ValueError("retry delays must be >= 0")
        # Accept any iterable of ints from callers.
        object.__setattr__(
            self, "retryable_status_codes", frozenset(self.retryable_status_codes)
        )


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached response body with its storage time and lifetime."""

    data: JSONValue
    stored_at_s: float
    ttl_s: float

    def is_fresh(self, now_s: float) -> bool:
        return now_s < self.stored_at_s + self.ttl_s


@dataclass(frozen=True, slots=True)
class CallRecord:
    """One entry of the recent-call history used for loop detection."""

    endpoint: str
    cache_key: str
    timestamp_s: float


@dataclass(frozen=True, slots=True)
class RateLimitSnapshot:
    """Most recent quota state reported by the upstream API."""

    remaining: int
    limit: int
    reset_at: int


@dataclass(frozen=True, slots=True)
class LoopReport:
    """Result of loop/overuse detection over the call history."""

    is_loop: bool = False
    warnings: tuple[str, ...] = ()
    repeated_key: str | None = None
    repeated_count: int = 0


@dataclass(frozen=True, slots=True)
class CallInfo:
    """Metadata describing the most recent ``call()`` made on a client."""

    endpoint: str
    cache_key: str
    cache_hit: bool
    cached_at: str | None = None
    rate_limit: RateLimitSnapshot | None = None
    loop_report: LoopReport = field(default_factory=LoopReport)
