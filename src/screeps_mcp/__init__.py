"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Screeps Web API access layer and MCP server.

Public surface:
- ``ScreepsApiClient``: cached, retrying, loop-aware API client
- ``ConfigManager`` / ``ScreepsSettings``: explicit configuration
- ``ScreepsMcpServer``: MCP tools and resources over stdio or HTTP
"""

from .settings import ConfigManager, ScreepsSettings
from .api import (
    CallInfo,
    LoopReport,
    RateLimitSnapshot,
    RetryPolicy,
    ScreepsApiClient,
    fetch_with_retry,
)
from .errors import (
    AuthenticationError,
    HttpStatusError,
    LoopDetectedError,
    NetworkError,
    RateLimitError,
    ScreepsApiError,
    ValidationError,
    describe_error,
    handle_api_error,
)
from .formatting import ResponseFormatter
from .resources import ResourceRegistry
from .mcp import ScreepsMcpServer

__version__ = "0.1.0"

__all__ = [
    "ConfigManager",
    "ScreepsSettings",
    "ScreepsApiClient",
    "RetryPolicy",
    "RateLimitSnapshot",
    "LoopReport",
    "CallInfo",
    "fetch_with_retry",
    "ScreepsApiError",
    "LoopDetectedError",
    "RateLimitError",
    "AuthenticationError",
    "HttpStatusError",
    "NetworkError",
    "ValidationError",
    "handle_api_error",
    "describe_error",
    "ResponseFormatter",
    "ResourceRegistry",
    "ScreepsMcpServer",
]
