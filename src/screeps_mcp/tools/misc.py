"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Experimental endpoint tools.
"""

from __future__ import annotations

import json

from pydantic import BaseModel, Field

from ..api import ScreepsApiClient
from ..formatting import ResponseFormatter
from .base import Tool, tool


class _PvpArgs(BaseModel):
    interval: int | None = Field(default=None, description="Interval parameter")
    start: int | None = Field(default=None, description="Start parameter")


def build_misc_tools(client: ScreepsApiClient, formatter: ResponseFormatter) -> list[Tool]:
    @tool(
        name="get_pvp_info",
        title="Get PvP Information",
        description="Get PvP information from experimental endpoint",
        args_model=_PvpArgs,
    )
    async def get_pvp_info(args: _PvpArgs):
        endpoint = client.build_endpoint_with_query(
            "/experimental/pvp", {"interval": args.interval, "start": args.start}
        )
        data = await client.call(endpoint)
        return formatter.create_tool_result(
            f"PvP Information:\n{json.dumps(data, indent=2, default=str)}"
        )

    @tool(
        name="get_nukes_info",
        title="Get Nukes Information",
        description="Get active nukes information by shard",
    )
    async def get_nukes_info(args):
        data = await client.call("/experimental/nukes")
        return formatter.create_tool_result(
            f"Active Nukes Information:\n{json.dumps(data, indent=2, default=str)}"
        )

    return [get_pvp_info, get_nukes_info]
