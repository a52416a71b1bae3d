"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed error hierarchy for Screeps API access.

Every failure raised by the access layer is an instance of one of these
classes so callers can branch on the kind of failure with ``isinstance``.
"""

from __future__ import annotations

import json
from typing import Any, NoReturn


class ScreepsApiError(Exception):
    """Base error for Screeps API failures."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.context = context


class LoopDetectedError(ScreepsApiError):
    """Raised when an identical call was repeated inside the loop window."""

    def __init__(
        self,
        endpoint: str,
        *,
        cache_key: str,
        count: int,
        warnings: list[str] | None = None,
    ) -> None:
        super().__init__(
            "Loop detected: this identical API call has been made "
            f"{count} times recently. Analyze the existing data instead of "
            f"repeating the call. Endpoint: {endpoint}",
            "LOOP_DETECTED",
            context={"endpoint": endpoint, "cacheKey": cache_key, "count": count},
        )
        self.endpoint = endpoint
        self.cache_key = cache_key
        self.count = count
        self.warnings = list(warnings or [])


class RateLimitError(ScreepsApiError):
    """Raised when the final response is HTTP 429."""

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message, "RATE_LIMITED", 429)
        self.retry_after = retry_after


class AuthenticationError(ScreepsApiError):
    """Raised when the final response is HTTP 401."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTH_FAILED", 401)


class HttpStatusError(ScreepsApiError):
    """Raised for any other non-2xx final response."""

    def __init__(self, status: int, reason: str = "") -> None:
        message = f"HTTP {status}: {reason}" if reason else f"HTTP {status}"
        super().__init__(message, "HTTP_ERROR", status)
        self.status = status
        self.reason = reason


class NetworkError(ScreepsApiError):
    """Raised for transport-level failures (connection reset, DNS, timeout)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "NETWORK_ERROR")


class ValidationError(Exception):
    """Raised when tool or resource input fails validation."""

    def __init__(self, message: str, field: str, value: Any) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value


def handle_api_error(error: BaseException) -> NoReturn:
    """
    Re-raise ``error`` as a typed error.

    ``ScreepsApiError`` and ``ValidationError`` instances propagate unchanged;
    anything else is wrapped in ``ScreepsApiError`` with code ``UNKNOWN_ERROR``.
    """
    if isinstance(error, (ScreepsApiError, ValidationError)):
        raise error
    if isinstance(error, Exception):
        raise ScreepsApiError(
            str(error),
            "UNKNOWN_ERROR",
            context={"originalError": type(error).__name__},
        ) from error
    raise ScreepsApiError(
        "An unknown error occurred",
        "UNKNOWN_ERROR",
        context={"originalValue": repr(error)},
    ) from error


def describe_error(error: BaseException) -> str:
    """Render a user-facing description of ``error`` based on its kind."""
    details: list[str] = []
    if isinstance(error, LoopDetectedError):
        headline = f"Loop Detected: {error.message}"
        details.append(f"Repeated calls: {error.count}")
        details.extend(error.warnings)
    elif isinstance(error, RateLimitError):
        headline = f"Rate Limit Error: {error.message}"
        if error.retry_after is not None:
            details.append(f"Retry after: {error.retry_after} seconds")
        details.append(f"Status code: {error.status_code}")
    elif isinstance(error, AuthenticationError):
        headline = f"Authentication Error: {error.message}"
        details.append(f"Status code: {error.status_code}")
        details.append("Check your SCREEPS_TOKEN environment variable")
    elif isinstance(error, ValidationError):
        headline = f"Validation Error: {error.message}"
        details.append(f"Field: {error.field}")
        details.append(f"Value: {json.dumps(error.value, default=str)}")
    elif isinstance(error, ScreepsApiError):
        headline = f"API Error: {error.message}"
        details.append(f"Error code: {error.code}")
        if error.status_code is not None:
            details.append(f"Status code: {error.status_code}")
        if error.context:
            details.append(f"Context: {json.dumps(error.context, default=str)}")
    else:
        headline = f"Error: {error}"
        details.append(f"Type: {type(error).__name__}")

    if not details:
        return headline
    lines = "\n".join(f"- {row}" for row in details)
    return f"{headline}\n\nDetails:\n{lines}"
