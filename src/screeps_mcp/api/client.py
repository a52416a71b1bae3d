"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: api/client.py.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import time
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from ..errors import (
    AuthenticationError,
    HttpStatusError,
    LoopDetectedError,
    RateLimitError,
    ScreepsApiError,
)
from .cache import ResponseCache, cache_ttl_for, make_cache_key
from .contracts import CallInfo, JSONValue, LoopReport, RateLimitSnapshot
from .history import DEFAULT_HISTORY_SIZE, CallHistory, detect_loops
from .query import build_endpoint_with_query, build_query_params
from .rate_limit import extract_rate_limit, parse_retry_after
from .retry import SleepFn, fetch_with_retry
from .transport import HttpResponse, Transport, UrllibTransport

if TYPE_CHECKING:
    from ..settings import ConfigManager

logger = logging.getLogger("screeps_mcp.api")


class ScreepsApiClient:
    """
    Single access point for outbound Screeps Web API calls.

    Owns the response cache, the recent-call history and the rate-limit
    snapshot. Every call is recorded for loop detection before the cache is
    consulted, so an identical call repeated inside the loop window is
    rejected even when a fresh cache entry exists.

    The client assumes one asyncio event loop. Concurrent misses for the same
    key are not coalesced; each one reaches the network.
    """

    def __init__(
        self,
        config: ConfigManager,
        *,
        transport: Transport | None = None,
        clock: Callable[[], float] = time.time,
        sleep: SleepFn = asyncio.sleep,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        self._config = config
        self._transport = transport or UrllibTransport(
            timeout_s=config.get_config().request_timeout_s
        )
        self._clock = clock
        self._sleep = sleep
        self._cache = ResponseCache(clock=clock)
        self._history = CallHistory(history_size)
        self._rate_limit: RateLimitSnapshot | None = None
        self._last_call: CallInfo | None = None

    @property
    def config(self) -> ConfigManager:
        return self._config

    @property
    def rate_limit(self) -> RateLimitSnapshot | None:
        """Quota state from the latest network response; None after a cache hit."""
        return self._rate_limit

    @property
    def last_call(self) -> CallInfo | None:
        """Metadata for the most recently completed or attempted ``call()``."""
        return self._last_call

    @property
    def history(self) -> CallHistory:
        return self._history

    def detect_loops(self) -> LoopReport:
        """Run loop/overuse detection over the current call history."""
        return detect_loops(self._history, now_s=self._clock())

    async def call(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> JSONValue:
        """
        Call ``endpoint`` (path plus query string, relative to the base URL).

        Raises:
            LoopDetectedError: an identical call happened recently.
            RateLimitError: the final response was HTTP 429.
            AuthenticationError: the final response was HTTP 401.
            HttpStatusError: any other non-2xx final response.
            NetworkError: the transport kept failing until retries ran out.
        """
        method = method.upper()
        cache_key = make_cache_key(endpoint, method=method, body=body)

        self._history.record(endpoint, cache_key, self._clock())
        report = self.detect_loops()
        if report.is_loop:
            self._last_call = CallInfo(
                endpoint=endpoint,
                cache_key=cache_key,
                cache_hit=False,
                rate_limit=self._rate_limit,
                loop_report=report,
            )
            logger.warning(
                "Loop detected for %s %s (%d identical calls)",
                method,
                endpoint,
                report.repeated_count,
            )
            raise LoopDetectedError(
                endpoint,
                cache_key=cache_key,
                count=report.repeated_count,
                warnings=list(report.warnings),
            )

        entry = self._cache.get_entry(cache_key)
        if entry is not None:
            self._rate_limit = None
            self._last_call = CallInfo(
                endpoint=endpoint,
                cache_key=cache_key,
                cache_hit=True,
                cached_at=_iso_timestamp(entry.stored_at_s),
                rate_limit=None,
                loop_report=report,
            )
            logger.debug("Cache hit for %s %s", method, endpoint)
            return copy.deepcopy(entry.data)

        self._last_call = CallInfo(
            endpoint=endpoint,
            cache_key=cache_key,
            cache_hit=False,
            rate_limit=self._rate_limit,
            loop_report=report,
        )
        url = f"{self._config.base_url}{endpoint}"
        request_headers = {**self._config.get_auth_headers(), **dict(headers or {})}

        async def _send() -> HttpResponse:
            return await self._transport.request(
                url,
                method=method,
                headers=request_headers,
                body=body,
            )

        response = await fetch_with_retry(
            _send,
            policy=self._config.retry_policy,
            sleep=self._sleep,
            label=url,
        )

        snapshot = extract_rate_limit(response)
        if snapshot is not None:
            self._rate_limit = snapshot
        self._last_call = CallInfo(
            endpoint=endpoint,
            cache_key=cache_key,
            cache_hit=False,
            rate_limit=self._rate_limit,
            loop_report=report,
        )

        if not response.ok:
            raise self._status_error(response)

        try:
            data = response.json()
        except ValueError as e:
            raise ScreepsApiError(
                f"Invalid JSON response from {endpoint}",
                "INVALID_RESPONSE",
                response.status,
            ) from e

        self._cache.set(cache_key, data, ttl_s=cache_ttl_for(endpoint))
        return data

    def _status_error(self, response: HttpResponse) -> ScreepsApiError:
        if response.status == 429:
            retry_after = parse_retry_after(response)
            shown = retry_after if retry_after is not None else "unknown"
            return RateLimitError(
                f"Rate limit exceeded. Retry after {shown} seconds. "
                "Consider reducing API call frequency.",
                retry_after=retry_after,
            )
        if response.status == 401:
            return AuthenticationError(
                f"Authentication failed: HTTP 401 {response.reason}".rstrip()
            )
        return HttpStatusError(response.status, response.reason)

    def build_query_params(self, params: Mapping[str, Any]) -> list[tuple[str, str]]:
        return build_query_params(params)

    def build_endpoint_with_query(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        return build_endpoint_with_query(path, params)

    def clear_cache(self) -> None:
        self._cache.clear()

    def reset(self) -> None:
        """Drop cached responses, call history and rate-limit state."""
        self._cache.clear()
        self._history.clear()
        self._rate_limit = None
        self._last_call = None


def _iso_timestamp(epoch_s: float) -> str:
    return datetime.fromtimestamp(epoch_s, tz=timezone.utc).isoformat()
