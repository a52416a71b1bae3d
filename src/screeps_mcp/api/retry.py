"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: api/retry.py.
"""

from __future__ import annotations

import asyncio
import http.client
import logging
from collections.abc import Awaitable, Callable

from ..errors import NetworkError
from .contracts import RetryPolicy
from .transport import HttpResponse

logger = logging.getLogger("screeps_mcp.api")

SleepFn = Callable[[float], Awaitable[None]]

RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    NetworkError,
    OSError,
    http.client.HTTPException,
    asyncio.TimeoutError,
    TimeoutError,
)


def backoff_delay(attempt: int, policy: RetryPolicy) -> float:
    """
    Delay in seconds before 1-indexed ``attempt`` (no delay before attempt 1).

    Grows as ``initial_delay_s * 2 ** (attempt - 2)`` and is capped at
    ``max_delay_s``.
    """
    if attempt < 2:
        return 0.0
    return min(policy.initial_delay_s * (2 ** (attempt - 2)), policy.max_delay_s)


async def fetch_with_retry(
    send: Callable[[], Awaitable[HttpResponse]],
    *,
    policy: RetryPolicy,
    sleep: SleepFn = asyncio.sleep,
    label: str = "",
) -> HttpResponse:
    """
    Execute ``send`` up to ``1 + policy.max_retries`` times.

    Responses with a retryable status and network-level exceptions are
    retried. On the final attempt a retryable response is returned as-is and
    a network failure is raised as ``NetworkError``.
    """
    attempts = policy.max_retries + 1
    for attempt in range(1, attempts + 1):
        if attempt > 1:
            delay = backoff_delay(attempt, policy)
            logger.info(
                "Waiting %.3fs before retry %d/%d for %s",
                delay,
                attempt - 1,
                policy.max_retries,
                label,
            )
            await sleep(delay)

        try:
            response = await send()
        except RETRYABLE_EXCEPTIONS as error:
            if attempt == attempts:
                logger.warning(
                    "API call failed after %d retries: %s - %s",
                    policy.max_retries,
                    label,
                    error,
                )
                if isinstance(error, NetworkError):
                    raise
                raise NetworkError(str(error) or type(error).__name__) from error
            logger.info(
                "Retry attempt %d/%d for %s (error: %s)",
                attempt,
                policy.max_retries,
                label,
                error,
            )
            continue

        if response.ok or response.status not in policy.retryable_status_codes:
            if attempt > 1:
                logger.info("API call succeeded after %d retries: %s", attempt - 1, label)
            return response

        if attempt == attempts:
            logger.warning(
                "API call failed after %d retries: %s - HTTP %d",
                policy.max_retries,
                label,
                response.status,
            )
            return response
        logger.info(
            "Retry attempt %d/%d for %s (status: %d)",
            attempt,
            policy.max_retries,
            label,
            response.status,
        )

    raise NetworkError(f"Retry loop exhausted for {label}")
