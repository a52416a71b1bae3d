"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

HTTP transport used by the access layer.
"""

from __future__ import annotations

import asyncio
import http.client
import json
import socket
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from ..errors import NetworkError
from .contracts import JSONValue


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """Status, headers and raw body of one HTTP response."""

    status: int
    reason: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def json(self) -> JSONValue:
        if not self.body:
            return None
        return json.loads(self.body.decode("utf-8"))


class Transport(Protocol):
    """Request/response primitive consumed by ``ScreepsApiClient``."""

    async def request(
        self,
        url: str,
        *,
        method: str,
        headers: Mapping[str, str],
        body: str | None = None,
    ) -> HttpResponse: ...


class UrllibTransport:
    """
    Blocking ``urllib`` transport executed in a worker thread.

    Non-2xx responses are returned as ``HttpResponse`` rows; only connection
    level failures raise ``NetworkError``.
    """

    def __init__(self, *, timeout_s: float = 30.0) -> None:
        self.timeout_s = timeout_s

    async def request(
        self,
        url: str,
        *,
        method: str,
        headers: Mapping[str, str],
        body: str | None = None,
    ) -> HttpResponse:
        return await asyncio.to_thread(self._send, url, method, dict(headers), body)

    def _send(
        self,
        url: str,
        method: str,
        headers: dict[str, str],
        body: str | None,
    ) -> HttpResponse:
        data = body.encode("utf-8") if body is not None else None
        req = urllib.request.Request(url, data=data, method=method, headers=headers)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_s) as resp:  # noqa: S310
                return HttpResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers=dict(resp.headers.items()),
                    body=resp.read(),
                )
        except urllib.error.HTTPError as e:
            try:
                payload = e.read()
            except (OSError, http.client.HTTPException):
                payload = b""
            return HttpResponse(
                status=e.code,
                reason=str(e.reason or ""),
                headers=dict(e.headers.items()) if e.headers is not None else {},
                body=payload,
            )
        except urllib.error.URLError as e:
            raise NetworkError(f"Network error calling {url}: {e.reason}") from e
        except (socket.timeout, TimeoutError) as e:
            raise NetworkError(f"Timed out calling {url}") from e
        except OSError as e:
            raise NetworkError(f"Network error calling {url}: {e}") from e
        except http.client.HTTPException as e:
            raise NetworkError(f"Network error calling {url}: {e!r}") from e
