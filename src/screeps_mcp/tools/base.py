"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Tool primitives and the registry that exposes them over MCP.

Each tool couples a pydantic argument model with an async handler that
returns an MCP tool result. Argument validation and handler failures are
converted into ``isError`` results by the registry's error boundary, so the
protocol layer only ever sees well-formed results.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import pydantic
from pydantic import BaseModel

from ..errors import ValidationError, describe_error

logger = logging.getLogger("screeps_mcp.tools")

ToolResult = dict[str, Any]
ToolHandler = Callable[[Any], Awaitable[ToolResult]]


class ToolNotFoundError(KeyError):
    """Raised when a tool name is not registered."""


class ToolAlreadyRegisteredError(ValueError):
    """Raised when registering a duplicate tool name without ``overwrite``."""


class NoArgs(BaseModel):
    """Argument model for tools that take no parameters."""


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Public description of one tool as advertised by ``tools/list``."""

    name: str
    title: str
    description: str
    parameters_schema: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Tool:
    """One callable tool: spec, argument model and async handler."""

    spec: ToolSpec
    args_model: type[BaseModel]
    handler: ToolHandler

    async def call(self, raw_args: dict[str, Any]) -> ToolResult:
        args = validate_args(self.args_model, raw_args)
        return await self.handler(args)


def validate_args(model: type[BaseModel], raw_args: dict[str, Any]) -> BaseModel:
    """Validate ``raw_args`` against ``model``; raise ``ValidationError`` on failure."""
    try:
        return model.model_validate(raw_args or {})
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc") or ()
        field_name = ".".join(str(part) for part in loc) or "arguments"
        value: Any = raw_args
        if loc and isinstance(raw_args, dict):
            value = raw_args.get(str(loc[0]))
        raise ValidationError(
            f"Invalid value for '{field_name}': {first.get('msg', 'invalid')}",
            field_name,
            value,
        ) from e


def parameters_schema(model: type[BaseModel]) -> dict[str, Any]:
    """Extract the MCP ``inputSchema`` body from a pydantic model."""
    schema = model.model_json_schema(by_alias=True)
    out: dict[str, Any] = {"properties": schema.get("properties", {})}
    if schema.get("required"):
        out["required"] = list(schema["required"])
    if schema.get("$defs"):
        out["$defs"] = schema["$defs"]
    return out


def tool(
    *,
    name: str,
    title: str,
    description: str,
    args_model: type[BaseModel] = NoArgs,
) -> Callable[[ToolHandler], Tool]:
    """Decorator turning an async handler into a ``Tool``."""

    def _wrap(fn: ToolHandler) -> Tool:
        spec = ToolSpec(
            name=name,
            title=title,
            description=description,
            parameters_schema=parameters_schema(args_model),
        )
        return Tool(spec=spec, args_model=args_model, handler=fn)

    return _wrap


def error_result(error: BaseException) -> ToolResult:
    """Convert a raised error into an MCP ``isError`` tool result."""
    return {
        "content": [{"type": "text", "text": describe_error(error)}],
        "isError": True,
    }


class ToolRegistry:
    """
    Stores tools by name and executes them with:
      - concurrency limiting
      - an error boundary that turns failures into ``isError`` results
    """

    def __init__(self, *, max_concurrency: int = 16) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._tools: dict[str, Tool] = {}
        self._sem = asyncio.Semaphore(max_concurrency)

    def register(self, tool_obj: Tool, *, overwrite: bool = False) -> None:
        name = tool_obj.spec.name
        if not overwrite and name in self._tools:
            raise ToolAlreadyRegisteredError(f"Tool already registered: {name}")
        self._tools[name] = tool_obj

    def register_many(self, tools: Iterable[Tool], *, overwrite: bool = False) -> None:
        for t in tools:
            self.register(t, overwrite=overwrite)

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError as e:
            raise ToolNotFoundError(f"Unknown tool: {name}") from e

    def list(self) -> list[Tool]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def has(self, name: str) -> bool:
        return name in self._tools

    async def call(self, name: str, raw_args: dict[str, Any] | None = None) -> ToolResult:
        """
        Execute a registered tool by name.

        Unknown tool names raise ``ToolNotFoundError``; every other failure is
        returned as an ``isError`` result.
        """
        tool_obj = self.get(name)
        async with self._sem:
            try:
                return await tool_obj.call(raw_args or {})
            except Exception as e:
                logger.warning("Tool %s failed: %s", name, e)
                return error_result(e)
