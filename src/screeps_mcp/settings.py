"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Screeps server settings and explicit config loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any

from .api.contracts import DEFAULT_RETRYABLE_STATUS_CODES, RetryPolicy

DEFAULT_BASE_URL = "https://screeps.com/api"


def _env_first(*names: str, default: str | None = None) -> str | None:
    """Return the first non-empty environment variable in ``names``."""
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def _parse_status_codes(raw: str | None) -> frozenset[int]:
    if not raw:
        return DEFAULT_RETRYABLE_STATUS_CODES
    return frozenset(int(part) for part in raw.split(",") if part.strip())


@dataclass(frozen=True, slots=True)
class ScreepsSettings:
    """Explicit settings used by the API client and the MCP server."""

    base_url: str = DEFAULT_BASE_URL
    token: str | None = None
    username: str | None = None
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    request_timeout_s: float = 30.0
    log_level: str = "INFO"

    @staticmethod
    def from_env() -> "ScreepsSettings":
        """Load settings from ``SCREEPS_*`` environment variables."""
        retry_policy = RetryPolicy(
            max_retries=int(_env_first("SCREEPS_MAX_RETRIES", default="3") or "3"),
            initial_delay_s=float(
                _env_first("SCREEPS_RETRY_INITIAL_DELAY_S", default="1.0") or "1.0"
            ),
            max_delay_s=float(
                _env_first("SCREEPS_RETRY_MAX_DELAY_S", default="10.0") or "10.0"
            ),
            retryable_status_codes=_parse_status_codes(
                _env_first("SCREEPS_RETRYABLE_STATUS_CODES")
            ),
        )
        return ScreepsSettings(
            base_url=_env_first("SCREEPS_BASE_URL", default=DEFAULT_BASE_URL)
            or DEFAULT_BASE_URL,
            token=_env_first("SCREEPS_TOKEN"),
            username=_env_first("SCREEPS_USERNAME"),
            retry_policy=retry_policy,
            request_timeout_s=float(
                _env_first("SCREEPS_REQUEST_TIMEOUT_S", default="30") or "30"
            ),
            log_level=(_env_first("SCREEPS_LOG_LEVEL", default="INFO") or "INFO").upper(),
        )


class ConfigManager:
    """
    Mutable holder around ``ScreepsSettings``.

    The access layer treats configuration as read-only except for the session
    token, which a successful ``auth_signin`` replaces through ``set_token``.
    """

    def __init__(self, settings: ScreepsSettings | None = None, **overrides: Any) -> None:
        base = settings if settings is not None else ScreepsSettings()
        self._settings = replace(base, **overrides) if overrides else base

    def get_config(self) -> ScreepsSettings:
        return self._settings

    def update_config(self, **changes: Any) -> None:
        self._settings = replace(self._settings, **changes)

    @property
    def base_url(self) -> str:
        return self._settings.base_url.rstrip("/")

    @property
    def token(self) -> str | None:
        return self._settings.token

    @property
    def username(self) -> str | None:
        return self._settings.username

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._settings.retry_policy

    def set_token(self, token: str) -> None:
        self._settings = replace(self._settings, token=token)

    def has_authentication(self) -> bool:
        return bool(self._settings.token or self._settings.username)

    def get_auth_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.token:
            headers["X-Token"] = self._settings.token
        if self._settings.username:
            headers["X-Username"] = self._settings.username
        return headers
