"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Process-local response cache and endpoint TTL policy.
"""

from __future__ import annotations

import copy
import time
from collections.abc import Callable

from .contracts import CacheEntry, JSONValue

# Ordered (substrings, ttl_s) rules. First match wins, so the more specific
# patterns must stay ahead of the generic ``market`` rule.
TTL_RULES: tuple[tuple[tuple[str, ...], float], ...] = (
    (("/auth/me",), 15 * 60.0),
    (("/version",), 60 * 60.0),
    (("/game/world-size",), 60 * 60.0),
    (("/game/shards/info",), 10 * 60.0),
    (("/user/world-status",), 2 * 60.0),
    (("/game/time",), 5.0),
    (("/game/market/stats",), 60.0),
    (("room-terrain",), 5 * 60.0),
    (("room-status",), 60.0),
    (("room-objects",), 10.0),
    (("user/stats", "user/overview"), 30.0),
    (("market",), 15.0),
)
DEFAULT_TTL_S = 30.0


def cache_ttl_for(endpoint: str) -> float:
    """Return the cache lifetime in seconds for ``endpoint``."""
    for patterns, ttl_s in TTL_RULES:
        if any(pattern in endpoint for pattern in patterns):
            return ttl_s
    return DEFAULT_TTL_S


def make_cache_key(endpoint: str, *, method: str = "GET", body: str | None = None) -> str:
    """Build the cache/loop key for one request. The body is used verbatim."""
    return f"{method.upper()}:{endpoint}:{body or ''}"


class ResponseCache:
    """
    TTL cache keyed by request cache key.

    Stored and returned values are deep copies so callers can never mutate
    cached payloads. Expired entries are removed lazily on lookup.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._rows: dict[str, CacheEntry] = {}
        self._clock = clock

    def get_entry(self, key: str) -> CacheEntry | None:
        row = self._rows.get(key)
        if row is None:
            return None
        if not row.is_fresh(self._clock()):
            self._rows.pop(key, None)
            return None
        return row

    def get(self, key: str) -> JSONValue | None:
        row = self.get_entry(key)
        if row is None:
            return None
        return copy.deepcopy(row.data)

    def set(self, key: str, data: JSONValue, *, ttl_s: float) -> None:
        self._rows[key] = CacheEntry(
            data=copy.deepcopy(data),
            stored_at_s=self._clock(),
            ttl_s=ttl_s,
        )

    def delete(self, key: str) -> None:
        self._rows.pop(key, None)

    def clear(self) -> None:
        self._rows.clear()

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: object) -> bool:
        return key in self._rows
