"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Read-only MCP resources backed by static or slow-changing API endpoints.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .api import ScreepsApiClient
from .formatting import ResponseFormatter

logger = logging.getLogger("screeps_mcp.resources")


class ResourceNotFoundError(KeyError):
    """Raised when a resource URI is not registered."""


@dataclass(frozen=True, slots=True)
class ResourceSpec:
    """One resource as advertised by ``resources/list``."""

    uri: str
    name: str
    title: str
    description: str
    endpoint: str
    guidance: tuple[str, ...] = field(default_factory=tuple)
    mime_type: str = "text/markdown"


DEFAULT_RESOURCES: tuple[ResourceSpec, ...] = (
    ResourceSpec(
        uri="screeps://auth/me",
        name="auth-me",
        title="Authentication Info",
        description="Information about the authenticated user",
        endpoint="/auth/me",
        guidance=("Use this user info to identify your account in other tools",),
    ),
    ResourceSpec(
        uri="screeps://game/time",
        name="game-time",
        title="Game Time",
        description="Current game tick",
        endpoint="/game/time",
    ),
    ResourceSpec(
        uri="screeps://game/world-size",
        name="world-size",
        title="World Size",
        description="Dimensions of the game world",
        endpoint="/game/world-size",
    ),
    ResourceSpec(
        uri="screeps://game/shards/info",
        name="shards-info",
        title="Shards Info",
        description="Available shards and their statistics",
        endpoint="/game/shards/info",
    ),
    ResourceSpec(
        uri="screeps://game/market/stats",
        name="market-stats",
        title="Market Stats",
        description="Market statistics",
        endpoint="/game/market/stats",
    ),
    ResourceSpec(
        uri="screeps://version",
        name="version",
        title="Server Version",
        description="Server version and feature information",
        endpoint="/version",
    ),
    ResourceSpec(
        uri="screeps://user/world-status",
        name="user-world-status",
        title="User World Status",
        description="Status of the authenticated user in the world",
        endpoint="/user/world-status",
    ),
)


class ResourceRegistry:
    """Serves ``resources/list`` and ``resources/read`` for one API client."""

    def __init__(
        self,
        client: ScreepsApiClient,
        *,
        formatter: ResponseFormatter | None = None,
        resources: tuple[ResourceSpec, ...] = DEFAULT_RESOURCES,
    ) -> None:
        self._client = client
        self._formatter = formatter or ResponseFormatter(client)
        self._resources = {row.uri: row for row in resources}

    def list(self) -> list[ResourceSpec]:
        return list(self._resources.values())

    def get(self, uri: str) -> ResourceSpec:
        try:
            return self._resources[uri]
        except KeyError as e:
            raise ResourceNotFoundError(f"Unknown resource: {uri}") from e

    async def read(self, uri: str) -> dict[str, Any]:
        """
        Fetch and render one resource.

        API failures are rendered as an error resource instead of raised.
        """
        spec = self.get(uri)
        try:
            data = await self._client.call(spec.endpoint)
        except Exception as e:
            logger.warning("Resource %s failed: %s", uri, e)
            return self._formatter.create_error_resource_content(uri, e)
        return self._formatter.create_enhanced_resource_content(
            uri,
            data,
            spec.endpoint,
            spec.title,
            guidance=list(spec.guidance),
            call_info=self._client.last_call,
        )
