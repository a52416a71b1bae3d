"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Screeps Web API access layer: caching, retry/backoff, rate-limit tracking and
repeated-call detection.
"""

from .cache import DEFAULT_TTL_S, TTL_RULES, ResponseCache, cache_ttl_for, make_cache_key
from .client import ScreepsApiClient
from .contracts import (
    DEFAULT_RETRYABLE_STATUS_CODES,
    CacheEntry,
    CallInfo,
    CallRecord,
    LoopReport,
    RateLimitSnapshot,
    RetryPolicy,
)
from .history import CallHistory, detect_loops
from .query import build_endpoint_with_query, build_query_params
from .rate_limit import extract_rate_limit, parse_retry_after
from .retry import backoff_delay, fetch_with_retry
from .transport import HttpResponse, Transport, UrllibTransport

__all__ = [
    "ScreepsApiClient",
    "RetryPolicy",
    "DEFAULT_RETRYABLE_STATUS_CODES",
    "CacheEntry",
    "CallInfo",
    "CallRecord",
    "LoopReport",
    "RateLimitSnapshot",
    "ResponseCache",
    "TTL_RULES",
    "DEFAULT_TTL_S",
    "cache_ttl_for",
    "make_cache_key",
    "CallHistory",
    "detect_loops",
    "build_query_params",
    "build_endpoint_with_query",
    "extract_rate_limit",
    "parse_retry_after",
    "backoff_delay",
    "fetch_with_retry",
    "HttpResponse",
    "Transport",
    "UrllibTransport",
]
