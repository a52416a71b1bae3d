"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

MCP server wiring for the Screeps tools and resources.

Two transports share one ``MCPProtocolHandler``:
- HTTP: a FastAPI app with ``POST /mcp`` (JSON-RPC 2.0, batches allowed)
  and ``GET /health``, served by uvicorn
- stdio: newline-delimited JSON-RPC messages on stdin/stdout
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, TextIO

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from ..api import ScreepsApiClient, Transport
from ..formatting import ResponseFormatter
from ..resources import ResourceRegistry
from ..settings import ConfigManager, ScreepsSettings
from ..tools import build_tool_registry
from .protocol import INVALID_REQUEST, PARSE_ERROR, MCPProtocolHandler, jsonrpc_error

logger = logging.getLogger("screeps_mcp.mcp")

SERVER_NAME = "screeps-mcp"
SERVER_VERSION = "0.1.0"

INSTRUCTIONS = (
    "Tools for the Screeps Web API. Responses are cached per endpoint and "
    "repeated identical calls within five minutes are rejected; reuse data "
    "you already have instead of calling again."
)


@dataclass
class MCPServerConfig:
    """
    Configuration for the MCP server.

    Attributes:
        name: Server name advertised during ``initialize``.
        version: Server version string.
        host: Bind host for the HTTP transport.
        port: Bind port for the HTTP transport.
        instructions: Instructions advertised during ``initialize``.
        cors_origins: List of allowed CORS origins.
        mcp_path: JSON-RPC endpoint path.
        health_path: Health endpoint path.
        allow_batch_requests: Whether JSON-RPC batch requests are accepted.
    """

    name: str = SERVER_NAME
    version: str = SERVER_VERSION
    host: str = "127.0.0.1"
    port: int = 8000
    instructions: str | None = INSTRUCTIONS
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    mcp_path: str = "/mcp"
    health_path: str = "/health"
    allow_batch_requests: bool = True


class ScreepsMcpServer:
    """
    Owns one config manager, API client, tool registry and resource registry.

    Usage::

        server = ScreepsMcpServer(ScreepsSettings.from_env())
        server.start(transport="stdio")
    """

    def __init__(
        self,
        settings: ScreepsSettings | None = None,
        *,
        config: MCPServerConfig | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config_manager = ConfigManager(settings)
        self._server_config = config or MCPServerConfig()
        self._client = ScreepsApiClient(self._config_manager, transport=transport)
        self._formatter = ResponseFormatter(self._client)
        self._tools = build_tool_registry(
            self._client, self._config_manager, formatter=self._formatter
        )
        self._resources = ResourceRegistry(self._client, formatter=self._formatter)
        self._protocol_handler = MCPProtocolHandler(
            tools=self._tools,
            resources=self._resources,
            server_name=self._server_config.name,
            server_version=self._server_config.version,
            instructions=self._server_config.instructions,
        )
        self._app: FastAPI | None = None

    @property
    def client(self) -> ScreepsApiClient:
        return self._client

    @property
    def tools(self):
        return self._tools

    @property
    def resources(self) -> ResourceRegistry:
        return self._resources

    @property
    def protocol(self) -> MCPProtocolHandler:
        return self._protocol_handler

    @property
    def app(self) -> FastAPI:
        """
        The FastAPI application, built on first access.

        Use this for testing::

            from fastapi.testclient import TestClient
            client = TestClient(server.app)
        """
        if self._app is None:
            self._app = self._create_app()
        return self._app

    def get_config(self) -> ScreepsSettings:
        return self._config_manager.get_config()

    def update_config(self, **changes: Any) -> None:
        self._config_manager.update_config(**changes)

    async def handle_payload(self, payload: Any) -> Any:
        """Handle a decoded single message or batch; ``None`` means no reply."""
        if isinstance(payload, list):
            if not self._server_config.allow_batch_requests:
                return jsonrpc_error(None, INVALID_REQUEST, "Batch requests disabled")
            responses = []
            for item in payload:
                resp = await self._protocol_handler.handle_message(item)
                if resp is not None:
                    responses.append(resp)
            return responses or None
        return await self._protocol_handler.handle_message(payload)

    def _create_router(self) -> APIRouter:
        router = APIRouter()

        @router.get(self._server_config.health_path)
        async def health():
            return {
                "status": "ok",
                "server": self._server_config.name,
                "version": self._server_config.version,
                "tools_count": len(self._tools.names()),
                "resources_count": len(self._resources.list()),
                "authenticated": self._config_manager.has_authentication(),
            }

        @router.post(self._server_config.mcp_path)
        async def mcp_endpoint(request: Request):
            """Main JSON-RPC 2.0 endpoint for MCP."""
            try:
                body = await request.json()
            except ValueError:
                return JSONResponse(
                    jsonrpc_error(None, PARSE_ERROR, "Parse error"),
                    status_code=200,
                )

            result = await self.handle_payload(body)
            if result is None:
                return Response(status_code=204)
            return JSONResponse(result, status_code=200)

        return router

    def _create_app(self) -> FastAPI:
        app = FastAPI(
            title=self._server_config.name,
            version=self._server_config.version,
            description="Screeps MCP Server - Model Context Protocol",
        )
        app.add_middleware(
            CORSMiddleware,
            allow_origins=self._server_config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        app.include_router(self._create_router())
        return app

    async def serve_stdio(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        """Serve newline-delimited JSON-RPC until ``stdin`` reaches EOF."""
        reader = stdin or sys.stdin
        writer = stdout or sys.stdout
        logger.info("Screeps MCP server listening on stdio")

        while True:
            line = await asyncio.to_thread(reader.readline)
            if not line:
                break
            line = line.strip()
            if not line:
                continue

            try:
                payload = json.loads(line)
            except ValueError:
                result: Any = jsonrpc_error(None, PARSE_ERROR, "Parse error")
            else:
                result = await self.handle_payload(payload)

            if result is not None:
                writer.write(json.dumps(result, default=str) + "\n")
                writer.flush()

    def start(
        self,
        *,
        transport: str = "stdio",
        host: str | None = None,
        port: int | None = None,
    ) -> bool:
        """
        Run the server on the chosen transport until it exits.

        Returns ``False`` without serving when no token is configured.
        """
        if not self._config_manager.token:
            logger.error(
                "No token found, set the SCREEPS_TOKEN environment variable and try again"
            )
            return False

        if transport == "http":
            uvicorn.run(
                self.app,
                host=host or self._server_config.host,
                port=port or self._server_config.port,
                log_level=self.get_config().log_level.lower(),
            )
        elif transport == "stdio":
            asyncio.run(self.serve_stdio())
        else:
            raise ValueError(f"Unknown transport: {transport}")
        return True
