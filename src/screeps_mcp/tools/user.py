"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

User tools: identity, statistics, rooms, console, memory and sign-in.
"""

from __future__ import annotations

import json
import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..api import ScreepsApiClient
from ..errors import ScreepsApiError
from ..formatting import ResponseFormatter
from ..settings import ConfigManager
from .base import Tool, tool

USER_ID_RE = re.compile(r"^[a-f0-9]{24}$", re.IGNORECASE)

Interval = Literal["8", "180", "1440"]
StatName = Literal[
    "creepsLost",
    "creepsProduced",
    "energyConstruction",
    "energyControl",
    "energyCreeps",
    "energyHarvested",
]


class _IntervalArgs(BaseModel):
    interval: Interval | None = Field(
        default=None, description="Interval: 8=1hr, 180=24hr, 1440=7days"
    )


class _UserRoomsArgs(BaseModel):
    identifier: str = Field(
        description=(
            "Username or user ID (24-character hex). Accepts username directly - "
            "will auto-lookup user ID."
        )
    )


class _FindUserArgs(BaseModel):
    id: str | None = Field(default=None, description="User ID")
    username: str | None = Field(default=None, description="Username")


class _UserOverviewArgs(_IntervalArgs):
    model_config = ConfigDict(populate_by_name=True)

    stat_name: StatName | None = Field(
        default=None, alias="statName", description="Statistic name"
    )


class _ConsoleArgs(BaseModel):
    expression: str = Field(description="Console expression to execute")


class _MemoryArgs(BaseModel):
    path: str | None = Field(default=None, description="Memory path (e.g., flags.Flag1)")
    shard: str | None = Field(default=None, description="Shard name (default: shard0)")


class _SigninArgs(BaseModel):
    email: str = Field(description="Email or username")
    password: str = Field(description="Password")


def is_user_id(identifier: str) -> bool:
    """True when ``identifier`` looks like a 24-character hex object id."""
    return USER_ID_RE.match(identifier) is not None


def build_user_tools(
    client: ScreepsApiClient,
    formatter: ResponseFormatter,
    config: ConfigManager,
) -> list[Tool]:
    """Construct the user tools bound to ``client`` and ``config``."""

    async def resolve_user_id(username: str) -> str:
        endpoint = client.build_endpoint_with_query("/user/find", {"username": username})
        data = await client.call(endpoint)
        user = data.get("user") if isinstance(data, dict) else None
        if not isinstance(user, dict) or not user.get("_id"):
            raise ScreepsApiError(
                f"User '{username}' not found",
                "USER_NOT_FOUND",
                context={"username": username},
            )
        return str(user["_id"])

    @tool(name="get_user_name", title="Get User Name", description="Get user name")
    async def get_user_name(args):
        endpoint = "/user/name"
        data = await client.call(endpoint)
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            "User Name",
            guidance=[
                "This is your authenticated username - no additional calls needed",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="get_user_stats",
        title="Get User Statistics",
        description="Get user statistics",
        args_model=_IntervalArgs,
    )
    async def get_user_stats(args: _IntervalArgs):
        endpoint = client.build_endpoint_with_query("/user/stats", {"interval": args.interval})
        data = await client.call(endpoint)
        suffix = f" ({args.interval} interval)" if args.interval else ""
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            f"User Statistics{suffix}",
            guidance=[
                f"User statistics retrieved for {args.interval or 'default'} interval",
                "Statistical data is complete - no additional stats calls needed",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="get_user_rooms",
        title="Get User Rooms",
        description=(
            "Get user rooms by user ID or username. Usernames are resolved to "
            "user IDs automatically."
        ),
        args_model=_UserRoomsArgs,
    )
    async def get_user_rooms(args: _UserRoomsArgs):
        if is_user_id(args.identifier):
            user_id = args.identifier
            display = args.identifier
        else:
            user_id = await resolve_user_id(args.identifier)
            display = f"{args.identifier} ({user_id})"

        endpoint = client.build_endpoint_with_query("/user/rooms", {"id": user_id})
        data = await client.call(endpoint)
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            f"User Rooms ({display})",
            guidance=[
                f"User rooms data retrieved for {display}",
                "Room data is complete - analyze the provided information",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="find_user",
        title="Find User",
        description="Find user by ID or username",
        args_model=_FindUserArgs,
    )
    async def find_user(args: _FindUserArgs):
        endpoint = client.build_endpoint_with_query(
            "/user/find", {"id": args.id, "username": args.username}
        )
        data = await client.call(endpoint)
        who = args.username or args.id
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            f"User Lookup: {who}",
            guidance=[
                f"User lookup completed for {who}",
                "Player information is complete - no additional lookups needed",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="get_user_overview",
        title="Get User Overview",
        description="Get user overview statistics",
        args_model=_UserOverviewArgs,
    )
    async def get_user_overview(args: _UserOverviewArgs):
        endpoint = client.build_endpoint_with_query(
            "/user/overview", {"interval": args.interval, "statName": args.stat_name}
        )
        data = await client.call(endpoint)
        title = "User Overview"
        if args.interval:
            title += f" ({args.interval})"
        if args.stat_name:
            title += f" - {args.stat_name}"
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            title,
            guidance=[
                f"User overview retrieved for {args.interval or 'default'} interval",
                "Overview data is complete - use for strategic planning",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="execute_console_command",
        title="Execute Console Command",
        description="Execute console command in Screeps",
        args_model=_ConsoleArgs,
    )
    async def execute_console_command(args: _ConsoleArgs):
        endpoint = "/user/console"
        data = await client.call(
            endpoint,
            method="POST",
            body=json.dumps({"expression": args.expression}),
        )
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            f"Console Command: {args.expression}",
            guidance=[
                f"Console command executed: {args.expression}",
                "Review the command result for any errors or output",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="get_user_memory",
        title="Get User Memory",
        description="Get user memory data",
        args_model=_MemoryArgs,
    )
    async def get_user_memory(args: _MemoryArgs):
        endpoint = client.build_endpoint_with_query(
            "/user/memory", {"path": args.path, "shard": args.shard}
        )
        data = await client.call(endpoint)
        suffix = f" ({args.path})" if args.path else ""
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            f"User Memory{suffix}",
            guidance=["Memory data is complete - no additional memory calls needed"],
            call_info=client.last_call,
        )

    @tool(
        name="auth_signin",
        title="Sign In",
        description="Sign in to get authentication token on private servers",
        args_model=_SigninArgs,
    )
    async def auth_signin(args: _SigninArgs):
        data = await client.call(
            "/auth/signin",
            method="POST",
            body=json.dumps({"email": args.email, "password": args.password}),
        )
        token = data.get("token") if isinstance(data, dict) else None
        if isinstance(token, str) and token:
            config.set_token(token)

        redacted = dict(data) if isinstance(data, dict) else {"response": data}
        if token:
            redacted["token"] = "[REDACTED]"
        return formatter.create_tool_result(
            "Sign in successful!\n"
            f"Token: {'[REDACTED]' if token else 'Not provided'}\n"
            f"Response: {json.dumps(redacted, indent=2, default=str)}"
        )

    return [
        get_user_name,
        get_user_stats,
        get_user_rooms,
        find_user,
        get_user_overview,
        execute_console_command,
        get_user_memory,
        auth_signin,
    ]
