"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: api/rate_limit.py.
"""

from __future__ import annotations

from .contracts import RateLimitSnapshot
from .transport import HttpResponse

LIMIT_HEADER = "X-RateLimit-Limit"
REMAINING_HEADER = "X-RateLimit-Remaining"
RESET_HEADER = "X-RateLimit-Reset"
RETRY_AFTER_HEADER = "Retry-After"


def _parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def extract_rate_limit(response: HttpResponse) -> RateLimitSnapshot | None:
    """Return a snapshot when all three rate-limit headers are valid integers."""
    limit = _parse_int(response.header(LIMIT_HEADER))
    remaining = _parse_int(response.header(REMAINING_HEADER))
    reset_at = _parse_int(response.header(RESET_HEADER))
    if limit is None or remaining is None or reset_at is None:
        return None
    return RateLimitSnapshot(remaining=remaining, limit=limit, reset_at=reset_at)


def parse_retry_after(response: HttpResponse) -> int | None:
    """Retry-After in seconds, or None when absent or not an integer."""
    return _parse_int(response.header(RETRY_AFTER_HEADER))
