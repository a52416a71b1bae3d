"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Room tools: terrain, objects, overview, status and room distance.
"""

from __future__ import annotations

import math
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..api import ScreepsApiClient
from ..errors import ValidationError
from ..formatting import ResponseFormatter
from .base import Tool, tool

ROOM_NAME_RE = re.compile(r"^([EW])(\d+)([NS])(\d+)$")
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


class _RoomArgs(BaseModel):
    room: str = Field(description="Room name (e.g., E1N8)")
    shard: str | None = Field(default=None, description="Shard name (default: shard0)")


class _RoomTerrainArgs(_RoomArgs):
    encoded: bool | None = Field(default=None, description="Return encoded terrain data")


class _RoomObjectsArgs(_RoomArgs):
    model_config = ConfigDict(populate_by_name=True)

    object_type: str | None = Field(
        default=None,
        alias="objectType",
        description='Filter by object type(s), e.g., "spawn" or "spawn,tower,extension"',
    )
    group_by_type: bool | None = Field(
        default=None,
        alias="groupByType",
        description="Group objects by their type for easier analysis",
    )
    page: int | None = Field(
        default=None, ge=1, description="Page number for pagination (1-based)"
    )
    page_size: int | None = Field(
        default=None,
        ge=1,
        le=MAX_PAGE_SIZE,
        alias="pageSize",
        description="Number of objects per page (default: 50, max: 200)",
    )


class _RoomOverviewArgs(_RoomArgs):
    interval: Literal["8", "180", "1440"] | None = Field(
        default=None, description="Interval: 8=1hr, 180=24hr, 1440=7days"
    )


class _DistanceArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_room: str = Field(alias="from", description="Source room name (e.g., E1N8)")
    to_room: str = Field(alias="to", description="Destination room name (e.g., E2N8)")


def parse_room_name(room: str) -> tuple[int, int]:
    """Map a room name such as ``W7N3`` onto world grid coordinates."""
    match = ROOM_NAME_RE.match(room)
    if match is None:
        raise ValidationError(f"Invalid room name: {room}", "room", room)
    ew, x, ns, y = match.groups()
    x_coord = int(x) if ew == "E" else -(int(x) + 1)
    y_coord = int(y) if ns == "N" else -(int(y) + 1)
    return x_coord, y_coord


def room_distance(from_room: str, to_room: str) -> dict[str, Any]:
    """Chebyshev, Manhattan and Euclidean distances between two rooms."""
    fx, fy = parse_room_name(from_room)
    tx, ty = parse_room_name(to_room)
    dx = abs(tx - fx)
    dy = abs(ty - fy)
    return {
        "from": from_room,
        "to": to_room,
        "fromCoords": {"x": fx, "y": fy},
        "toCoords": {"x": tx, "y": ty},
        "deltaX": dx,
        "deltaY": dy,
        "chebyshevDistance": max(dx, dy),
        "manhattanDistance": dx + dy,
        "euclideanDistance": math.sqrt(dx * dx + dy * dy),
    }


def process_room_objects(
    data: Any,
    *,
    object_type: str | None = None,
    group_by_type: bool | None = None,
    page: int | None = None,
    page_size: int | None = None,
) -> Any:
    """
    Apply local filtering, grouping and pagination to a room-objects payload.

    Grouping takes precedence over pagination when both are requested.
    """
    if not isinstance(data, dict) or not isinstance(data.get("objects"), list):
        return data

    objects: list[Any] = data["objects"]
    total = len(objects)

    if object_type:
        wanted = {part.strip().lower() for part in object_type.split(",")}
        objects = [
            obj
            for obj in objects
            if isinstance(obj, dict)
            and isinstance(obj.get("type"), str)
            and obj["type"].lower() in wanted
        ]

    if group_by_type:
        grouped: dict[str, list[Any]] = {}
        for obj in objects:
            kind = obj.get("type") if isinstance(obj, dict) else None
            grouped.setdefault(kind or "unknown", []).append(obj)
        return {
            **data,
            "objects": grouped,
            "_metadata": {
                "totalObjects": total,
                "filteredObjects": len(objects),
                "groupedByType": True,
                "groupSummary": [
                    {"type": kind, "count": len(items)} for kind, items in grouped.items()
                ],
            },
        }

    if page is not None:
        page = max(1, page)
        size = min(MAX_PAGE_SIZE, max(1, page_size or DEFAULT_PAGE_SIZE))
        start = (page - 1) * size
        end = start + size
        chunk = objects[start:end]
        total_pages = max(1, math.ceil(len(objects) / size))
        return {
            **data,
            "objects": chunk,
            "_metadata": {
                "totalObjects": total,
                "filteredObjects": len(objects),
                "pagination": {
                    "page": page,
                    "pageSize": size,
                    "totalPages": total_pages,
                    "hasNextPage": page < total_pages,
                    "hasPreviousPage": page > 1,
                    "objectsOnPage": len(chunk),
                    "startIndex": start + 1,
                    "endIndex": min(end, len(objects)),
                },
            },
        }

    if object_type:
        return {
            **data,
            "objects": objects,
            "_metadata": {"totalObjects": total, "filteredObjects": len(objects)},
        }
    return data


def room_objects_guidance(data: Any) -> list[str]:
    meta = data.get("_metadata") if isinstance(data, dict) else None
    if isinstance(meta, dict) and meta.get("pagination"):
        p = meta["pagination"]
        rows = [f"PAGE {p['page']} of {p['totalPages']}: Showing {p['objectsOnPage']} objects"]
        if p["hasNextPage"]:
            rows.append(f"NEXT PAGE: Call with page={p['page'] + 1} to see more objects")
        if p["hasPreviousPage"]:
            rows.append(f"PREVIOUS PAGE: Call with page={p['page'] - 1} to see previous objects")
        if not p["hasNextPage"]:
            rows.append("LAST PAGE: All objects have been retrieved")
        if p["objectsOnPage"] == 0:
            rows.append("EMPTY PAGE: No objects found on this page")
        else:
            rows.append("ANALYZE THIS PAGE: Process the structures, creeps, and resources on this page")
        return rows
    if isinstance(meta, dict) and meta.get("groupedByType"):
        return [
            "GROUPED BY TYPE: Objects organized by their type for easier analysis",
            "ANALYZE: Review each group to understand room composition",
        ]
    if isinstance(meta, dict) and "filteredObjects" in meta:
        count = meta["filteredObjects"]
        rows = [f"FILTERED: Showing {count} of {meta['totalObjects']} objects"]
        if count == 0:
            rows.append("NO MATCHES: No objects match the specified filter")
        else:
            rows.append("ANALYZE FILTERED SET: Focus on objects matching your filter criteria")
        return rows
    return [
        "COMPLETE: All room objects retrieved successfully - NO MORE CALLS NEEDED",
        "STOP: This data is complete - do NOT call get_room_objects again for this room",
        "ANALYZE: Process the structures, creeps, and resources from this response",
    ]


def build_room_tools(client: ScreepsApiClient, formatter: ResponseFormatter) -> list[Tool]:
    """Construct the room tools bound to ``client``."""

    @tool(
        name="get_room_terrain",
        title="Get Room Terrain",
        description=(
            "Get terrain information for a specific room. Call this tool ONCE per "
            "room - terrain data is static and complete in a single response."
        ),
        args_model=_RoomTerrainArgs,
    )
    async def get_room_terrain(args: _RoomTerrainArgs):
        endpoint = client.build_endpoint_with_query(
            "/game/room-terrain",
            {"room": args.room, "shard": args.shard, "encoded": args.encoded},
        )
        data = await client.call(endpoint)
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            f"Room Terrain Analysis for {args.room}",
            guidance=[
                "Use terrain data to plan creep paths and identify chokepoints",
                "Consider terrain when planning structure placement",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="get_room_objects",
        title="Get Room Objects",
        description=(
            "Get objects and users in a specific room. Supports pagination "
            "(page/pageSize), filtering by object type, and grouping by type. "
            "groupByType and pagination are mutually exclusive; grouping takes precedence."
        ),
        args_model=_RoomObjectsArgs,
    )
    async def get_room_objects(args: _RoomObjectsArgs):
        endpoint = client.build_endpoint_with_query(
            "/game/room-objects", {"room": args.room, "shard": args.shard}
        )
        data = await client.call(endpoint)
        processed = process_room_objects(
            data,
            object_type=args.object_type,
            group_by_type=args.group_by_type,
            page=args.page,
            page_size=args.page_size,
        )
        return formatter.create_enhanced_tool_result(
            processed,
            endpoint,
            f"Room Objects Analysis for {args.room}",
            guidance=room_objects_guidance(processed),
            call_info=client.last_call,
        )

    @tool(
        name="get_room_overview",
        title="Get Room Overview",
        description=(
            "Get room overview and statistics. Call this tool ONCE per "
            "room/interval combination."
        ),
        args_model=_RoomOverviewArgs,
    )
    async def get_room_overview(args: _RoomOverviewArgs):
        endpoint = client.build_endpoint_with_query(
            "/game/room-overview",
            {"room": args.room, "shard": args.shard, "interval": args.interval},
        )
        data = await client.call(endpoint)
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            f"Room Overview for {args.room}",
            guidance=[
                "Use overview data to track room performance trends",
                "Compare statistics across different time intervals",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="get_room_status",
        title="Get Room Status",
        description=(
            "Get room status information. Call this tool ONCE per room - status "
            "data is complete and rarely changes."
        ),
        args_model=_RoomArgs,
    )
    async def get_room_status(args: _RoomArgs):
        endpoint = client.build_endpoint_with_query(
            "/game/room-status", {"room": args.room, "shard": args.shard}
        )
        data = await client.call(endpoint)
        return formatter.create_enhanced_tool_result(
            data,
            endpoint,
            f"Room Status for {args.room}",
            guidance=[
                "Check room status before planning operations",
                "Verify room accessibility and ownership",
            ],
            call_info=client.last_call,
        )

    @tool(
        name="calculate_distance",
        title="Calculate Distance",
        description="Calculate distance between two rooms",
        args_model=_DistanceArgs,
    )
    async def calculate_distance(args: _DistanceArgs):
        data = room_distance(args.from_room, args.to_room)
        return formatter.create_enhanced_tool_result(
            data,
            f"calculate_distance({args.from_room}, {args.to_room})",
            f"Distance Calculation: {args.from_room} to {args.to_room}",
            guidance=[
                "Distance calculation complete - no additional API calls needed",
                "Use Chebyshev distance for room-to-room movement planning",
            ],
        )

    return [get_room_terrain, get_room_objects, get_room_overview, get_room_status, calculate_distance]
