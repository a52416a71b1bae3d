"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Market and map statistics tools.
"""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field

from ..api import ScreepsApiClient
from ..formatting import ResponseFormatter
from .base import Tool, tool


class _MarketOrdersArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resource_type: str = Field(alias="resourceType", description="Resource type (e.g., Z, H, O)")


class _MoneyHistoryArgs(BaseModel):
    page: int | None = Field(default=None, ge=0, description="Page number (default: 0)")


class _MapStatsArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rooms: list[str] = Field(
        min_length=1, description='Array of room names (e.g., ["W50N50", "E1N8"])'
    )
    stat_name: str = Field(
        alias="statName",
        description="Statistic name (e.g., owner0, creepsLost, energyHarvested)",
    )
    shard: str | None = Field(default=None, description="Shard name (default: shard0)")


def build_market_tools(client: ScreepsApiClient, formatter: ResponseFormatter) -> list[Tool]:
    """Construct the market tools bound to ``client``."""

    @tool(
        name="get_market_orders_index",
        title="Get Market Orders Index",
        description="Get market orders index",
    )
    async def get_market_orders_index(args):
        endpoint = "/game/market/orders-index"
        data = await client.call(endpoint)
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            "Market Orders Index",
            guidance=[
                "Use this index to understand available market resources",
                "Market index provides overview - use get_market_orders for specific resources",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="get_my_market_orders",
        title="Get My Market Orders",
        description="Get user's market orders",
    )
    async def get_my_market_orders(args):
        endpoint = "/game/market/my-orders"
        data = await client.call(endpoint)
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            "My Market Orders",
            guidance=[
                "Review your active orders to understand your market position",
                "Check order status and remaining quantities",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="get_market_orders",
        title="Get Market Orders",
        description="Get market orders for a specific resource",
        args_model=_MarketOrdersArgs,
    )
    async def get_market_orders(args: _MarketOrdersArgs):
        endpoint = client.build_endpoint_with_query(
            "/game/market/orders", {"resourceType": args.resource_type}
        )
        data = await client.call(endpoint)
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            f"Market Orders for {args.resource_type}",
            guidance=[
                f"Market data for {args.resource_type} retrieved successfully",
                "Compare buy/sell orders to identify trading opportunities",
                "Use this data for market analysis - no need to fetch again immediately",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="get_money_history",
        title="Get Money History",
        description="Get user money transaction history",
        args_model=_MoneyHistoryArgs,
    )
    async def get_money_history(args: _MoneyHistoryArgs):
        endpoint = client.build_endpoint_with_query("/user/money-history", {"page": args.page})
        data = await client.call(endpoint)
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            f"Money Transaction History (Page {args.page or 0})",
            guidance=[
                "Track income and expenses over time",
                "Transaction history is complete - analyze the data provided",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="get_map_stats",
        title="Get Map Statistics",
        description="Get map statistics for specified rooms",
        args_model=_MapStatsArgs,
    )
    async def get_map_stats(args: _MapStatsArgs):
        endpoint = client.build_endpoint_with_query("/game/map-stats", {"shard": args.shard})
        data = await client.call(
            endpoint,
            method="POST",
            body=json.dumps({"rooms": args.rooms, "statName": args.stat_name}),
        )
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            f"Map Statistics: {args.stat_name} for {', '.join(args.rooms)}",
            guidance=[
                f"Map statistics for {args.stat_name} retrieved for {len(args.rooms)} rooms",
                "Statistical analysis complete - no additional map stats calls needed",
            ],
            call_info=client.last_call,
        )

    return [
        get_market_orders_index,
        get_my_market_orders,
        get_market_orders,
        get_money_history,
        get_map_stats,
    ]
