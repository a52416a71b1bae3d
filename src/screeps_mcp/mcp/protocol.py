"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Protocol-layer helpers for MCP JSON-RPC request handling.
"""

from __future__ import annotations

import logging
from typing import Any

from ..resources import ResourceNotFoundError, ResourceRegistry
from ..tools import ToolNotFoundError, ToolRegistry

logger = logging.getLogger("screeps_mcp.mcp")

MCP_PROTOCOL_VERSION = "2025-06-18"

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def jsonrpc_response(id: Any, result: Any) -> dict[str, Any]:
    """Build a JSON-RPC 2.0 success response."""
    return {"jsonrpc": "2.0", "id": id, "result": result}


def jsonrpc_error(
    id: Any,
    code: int,
    message: str,
    data: Any = None,
) -> dict[str, Any]:
    """Build a JSON-RPC 2.0 error response."""
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": id, "error": error}


class InvalidParamsError(ValueError):
    """Raised by method handlers when request params are malformed."""


class MCPProtocolHandler:
    """
    Handles MCP methods and JSON-RPC envelope validation.

    Kept independent from any transport so the HTTP app and the stdio loop
    share one routing table.
    """

    def __init__(
        self,
        *,
        tools: ToolRegistry,
        resources: ResourceRegistry,
        server_name: str,
        server_version: str,
        instructions: str | None = None,
    ) -> None:
        self._tools = tools
        self._resources = resources
        self._server_name = server_name
        self._server_version = server_version
        self._instructions = instructions

    async def handle_message(self, message: Any) -> dict[str, Any] | None:
        """Route one JSON-RPC 2.0 message; notifications yield ``None``."""
        if not isinstance(message, dict):
            return jsonrpc_error(None, INVALID_REQUEST, "Invalid Request")

        if message.get("jsonrpc") != "2.0":
            return jsonrpc_error(
                message.get("id"),
                INVALID_REQUEST,
                "Invalid JSON-RPC version",
            )

        method = message.get("method")
        params = message.get("params") or {}
        msg_id = message.get("id")

        if not method:
            return jsonrpc_error(msg_id, INVALID_REQUEST, "Missing method")

        is_notification = msg_id is None

        try:
            if method == "initialize":
                result = self.handle_initialize(params)
            elif method == "tools/list":
                result = self.handle_tools_list(params)
            elif method == "tools/call":
                result = await self.handle_tools_call(params)
            elif method == "resources/list":
                result = self.handle_resources_list(params)
            elif method == "resources/read":
                result = await self.handle_resources_read(params)
            elif method == "ping":
                result = {}
            elif method.startswith("notifications/"):
                result = {}
            else:
                if is_notification:
                    return None
                return jsonrpc_error(
                    msg_id,
                    METHOD_NOT_FOUND,
                    f"Method not found: {method}",
                )

            if is_notification:
                return None
            return jsonrpc_response(msg_id, result)
        except InvalidParamsError as exc:
            return jsonrpc_error(msg_id, INVALID_PARAMS, str(exc))
        except Exception as exc:
            logger.exception("Error handling MCP method %s", method)
            return jsonrpc_error(msg_id, INTERNAL_ERROR, str(exc))

    def handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle ``initialize`` and return server capabilities."""
        _ = params
        return {
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": {
                "tools": {"listChanged": False},
                "resources": {"listChanged": False, "subscribe": False},
            },
            "serverInfo": {
                "name": self._server_name,
                "version": self._server_version,
            },
            **({"instructions": self._instructions} if self._instructions else {}),
        }

    def handle_tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle ``tools/list`` and return MCP tool schemas."""
        _ = params
        tools = []
        for tool_obj in self._tools.list():
            spec = tool_obj.spec
            tools.append(
                {
                    "name": spec.name,
                    "title": spec.title,
                    "description": spec.description,
                    "inputSchema": {
                        "type": "object",
                        **(spec.parameters_schema or {}),
                    },
                }
            )
        return {"tools": tools}

    async def handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle ``tools/call``; tool failures come back as ``isError`` results."""
        tool_name = params.get("name")
        if not tool_name:
            raise InvalidParamsError("Missing 'name' in tools/call params")

        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise InvalidParamsError("'arguments' must be an object")

        try:
            return await self._tools.call(tool_name, arguments)
        except ToolNotFoundError as exc:
            raise InvalidParamsError(f"Unknown tool: {tool_name}") from exc

    def handle_resources_list(self, params: dict[str, Any]) -> dict[str, Any]:
        _ = params
        return {
            "resources": [
                {
                    "uri": spec.uri,
                    "name": spec.name,
                    "title": spec.title,
                    "description": spec.description,
                    "mimeType": spec.mime_type,
                }
                for spec in self._resources.list()
            ]
        }

    async def handle_resources_read(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = params.get("uri")
        if not uri:
            raise InvalidParamsError("Missing 'uri' in resources/read params")
        try:
            return await self._resources.read(uri)
        except ResourceNotFoundError as exc:
            raise InvalidParamsError(f"Unknown resource: {uri}") from exc
