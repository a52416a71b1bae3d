"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Screeps tool handlers and the registry that serves them.
"""

from __future__ import annotations

from ..api import ScreepsApiClient
from ..formatting import ResponseFormatter
from ..settings import ConfigManager
from .base import (
    NoArgs,
    Tool,
    ToolAlreadyRegisteredError,
    ToolNotFoundError,
    ToolRegistry,
    ToolResult,
    ToolSpec,
    error_result,
    tool,
    validate_args,
)
from .market import build_market_tools
from .misc import build_misc_tools
from .room import build_room_tools, parse_room_name, process_room_objects, room_distance
from .user import build_user_tools, is_user_id


def build_tool_registry(
    client: ScreepsApiClient,
    config: ConfigManager,
    *,
    formatter: ResponseFormatter | None = None,
) -> ToolRegistry:
    """Register every Screeps tool against one shared client."""
    formatter = formatter or ResponseFormatter(client)
    registry = ToolRegistry()
    registry.register_many(build_room_tools(client, formatter))
    registry.register_many(build_user_tools(client, formatter, config))
    registry.register_many(build_market_tools(client, formatter))
    registry.register_many(build_misc_tools(client, formatter))
    return registry


__all__ = [
    "NoArgs",
    "Tool",
    "ToolSpec",
    "ToolResult",
    "ToolRegistry",
    "ToolNotFoundError",
    "ToolAlreadyRegisteredError",
    "tool",
    "error_result",
    "validate_args",
    "build_tool_registry",
    "build_room_tools",
    "build_user_tools",
    "build_market_tools",
    "build_misc_tools",
    "parse_room_name",
    "process_room_objects",
    "room_distance",
    "is_user_id",
]
