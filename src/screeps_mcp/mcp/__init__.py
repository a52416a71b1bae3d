"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

MCP protocol handling and server transports.
"""

from .protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    MCP_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    MCPProtocolHandler,
    jsonrpc_error,
    jsonrpc_response,
)
from .server import MCPServerConfig, ScreepsMcpServer

__all__ = [
    "MCPProtocolHandler",
    "MCPServerConfig",
    "ScreepsMcpServer",
    "MCP_PROTOCOL_VERSION",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "jsonrpc_error",
    "jsonrpc_response",
]
