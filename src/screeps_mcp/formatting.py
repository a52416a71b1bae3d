"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Markdown rendering of API payloads for MCP tool and resource responses.

The renderer pulls cache, rate-limit and loop metadata from the API client
so agents see why they should stop calling an endpoint.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from .api import CallInfo, RateLimitSnapshot, ScreepsApiClient

Completeness = Literal["complete", "partial", "empty"]

LARGE_OBJECT_COUNT = 100


@dataclass(slots=True)
class ResponseMetadata:
    """Metadata block rendered above every formatted payload."""

    endpoint: str
    timestamp: str
    data_completeness: Completeness
    rate_limit: RateLimitSnapshot | None = None
    suggested_next_actions: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def assess_data_completeness(data: Any) -> Completeness:
    """Classify a payload as empty, partial (paginated) or complete."""
    if not data:
        return "empty"
    if isinstance(data, dict) and (
        data.get("hasMore") or data.get("nextPage") or data.get("continuation")
    ):
        return "partial"
    return "complete"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _reset_iso(snapshot: RateLimitSnapshot) -> str:
    return datetime.fromtimestamp(snapshot.reset_at, tz=timezone.utc).isoformat()


def _has(data: Any, key: str) -> bool:
    return isinstance(data, dict) and bool(data.get(key))


def _has_list(data: Any, key: str) -> bool:
    return isinstance(data, dict) and isinstance(data.get(key), list) and bool(data[key])


class ResponseFormatter:
    """Builds MCP tool results and resource contents from API payloads."""

    def __init__(self, client: ScreepsApiClient) -> None:
        self._client = client

    # ''''''''''''''''
    # Plain responses
    # ''''''''''''''''

    def create_tool_result(self, text: str, is_error: bool = False) -> dict[str, Any]:
        return {"content": [{"type": "text", "text": text}], "isError": is_error}

    def create_resource_content(self, uri: str, data: Any) -> dict[str, Any]:
        return {
            "contents": [
                {
                    "uri": uri,
                    "mimeType": "application/json",
                    "text": json.dumps(data, indent=2, default=str),
                }
            ]
        }

    def create_error_resource_content(self, uri: str, error: BaseException | str) -> dict[str, Any]:
        message = error if isinstance(error, str) else str(error)
        return {
            "contents": [
                {
                    "uri": uri,
                    "mimeType": "application/json",
                    "text": json.dumps({"error": message}, indent=2),
                }
            ]
        }

    # ''''''''''''''''''
    # Enhanced responses
    # ''''''''''''''''''

    def create_enhanced_tool_result(
        self,
        data: Any,
        endpoint: str,
        description: str,
        *,
        is_error: bool = False,
        guidance: list[str] | None = None,
        call_info: CallInfo | None = None,
    ) -> dict[str, Any]:
        loop_report = self._client.detect_loops()
        rate_limit = self._client.rate_limit
        metadata = ResponseMetadata(
            endpoint=endpoint,
            timestamp=_now_iso(),
            data_completeness=assess_data_completeness(data),
            rate_limit=rate_limit,
            suggested_next_actions=self._suggested_actions(data, endpoint, rate_limit),
            warnings=[*self._warnings(data, endpoint, rate_limit), *loop_report.warnings],
        )
        if guidance:
            metadata.suggested_next_actions.extend(guidance)
        if loop_report.is_loop:
            metadata.suggested_next_actions[:0] = [
                "CRITICAL: Loop detected - DO NOT make more API calls",
                "ANALYZE: Use the data you already have",
                "FOCUS: Draw conclusions from existing information",
            ]

        text = self._render(
            data,
            metadata,
            call_info,
            title=f"# {description}",
            header_rows=[f"**Endpoint**: {endpoint}"],
            data_heading="Data",
            status_heading="Data Status",
            actions_heading="Suggested Next Actions",
            footer=[
                "## Query Complete",
                "This query has been completed successfully. All requested data has "
                "been retrieved and formatted above.",
            ],
        )
        return self.create_tool_result(text, is_error or loop_report.is_loop)

    def create_enhanced_resource_content(
        self,
        uri: str,
        data: Any,
        endpoint: str,
        description: str,
        *,
        guidance: list[str] | None = None,
        call_info: CallInfo | None = None,
    ) -> dict[str, Any]:
        loop_report = self._client.detect_loops()
        rate_limit = self._client.rate_limit
        metadata = ResponseMetadata(
            endpoint=endpoint,
            timestamp=_now_iso(),
            data_completeness=assess_data_completeness(data),
            rate_limit=rate_limit,
            suggested_next_actions=self._resource_guidance(data, endpoint, rate_limit),
            warnings=[*self._warnings(data, endpoint, rate_limit), *loop_report.warnings],
        )
        if guidance:
            metadata.suggested_next_actions.extend(guidance)
        if loop_report.is_loop:
            metadata.suggested_next_actions[:0] = [
                "CRITICAL: Loop detected - STOP accessing this resource repeatedly",
                "ANALYZE: Use the resource data you already have",
                "FOCUS: This resource data is static/semi-static - no need to refetch",
            ]

        text = self._render(
            data,
            metadata,
            call_info,
            title=f"# {description}",
            header_rows=[f"**Resource URI**: {uri}", f"**API Endpoint**: {endpoint}"],
            data_heading="Resource Data",
            status_heading="Resource Status",
            actions_heading="Resource Guidance",
            footer=[
                "## Resource Complete",
                "This resource has been loaded successfully. Resource data is now "
                "available for use.",
                "**Remember**: Resources provide foundational data - use tools for "
                "dynamic queries.",
            ],
        )
        return {"contents": [{"uri": uri, "mimeType": "text/markdown", "text": text}]}

    # '''''''
    # Helpers
    # '''''''

    def _render(
        self,
        data: Any,
        metadata: ResponseMetadata,
        call_info: CallInfo | None,
        *,
        title: str,
        header_rows: list[str],
        data_heading: str,
        status_heading: str,
        actions_heading: str,
        footer: list[str],
    ) -> str:
        sections = [title, f"**Timestamp**: {metadata.timestamp}", *header_rows]
        cache_hit = call_info is not None and call_info.cache_hit

        sections.append("\n## Cache Status")
        if call_info is None:
            sections.append("- **Status**: Computed locally - no API call made")
        elif cache_hit:
            sections.append("- **Status**: Cache HIT - Data served from cache")
            sections.append(f"- **Cached At**: {call_info.cached_at}")
            sections.append("- **Performance**: This request used cached data, saving API rate limits")
        else:
            sections.append("- **Status**: Cache MISS - Fresh data retrieved from API")
            sections.append("- **Performance**: This request consumed API rate limits")

        if metadata.rate_limit is not None and not cache_hit:
            sections.append("\n## Rate Limit Status")
            sections.append(
                f"- **Remaining**: {metadata.rate_limit.remaining}/{metadata.rate_limit.limit}"
            )
            sections.append(f"- **Resets at**: {_reset_iso(metadata.rate_limit)}")

        sections.append(f"\n## {status_heading}")
        sections.append(f"- **Completeness**: {metadata.data_completeness}")

        if metadata.warnings:
            sections.append("\n## Warnings")
            sections.extend(f"- {row}" for row in metadata.warnings)

        sections.append(f"\n## {data_heading}")
        sections.append("```json")
        sections.append(json.dumps(data, indent=2, default=str))
        sections.append("```")

        if metadata.suggested_next_actions:
            sections.append(f"\n## {actions_heading}")
            sections.extend(f"- {row}" for row in metadata.suggested_next_actions)

        if cache_hit:
            sections.append("\n## Cache Guidance")
            sections.append(
                "- This data was served from cache - no need to call the same endpoint again immediately"
            )
            sections.append(
                "- If you need fresher data, wait for cache to expire or use a different endpoint"
            )

        sections.append("")
        sections.extend(footer)
        return "\n".join(sections)

    def _warnings(
        self,
        data: Any,
        endpoint: str,
        rate_limit: RateLimitSnapshot | None,
    ) -> list[str]:
        warnings: list[str] = []
        if rate_limit is not None:
            if rate_limit.remaining < 5:
                warnings.append(
                    f"CRITICAL: Only {rate_limit.remaining} API calls remaining before rate limit!"
                )
            elif rate_limit.remaining < 20:
                warnings.append(
                    f"WARNING: Low API calls remaining ({rate_limit.remaining}). "
                    "Plan your next calls carefully."
                )
        if "room-objects" in endpoint and isinstance(data, dict):
            objects = data.get("objects")
            if isinstance(objects, list) and len(objects) > LARGE_OBJECT_COUNT:
                warnings.append(
                    "Large dataset returned. Consider filtering or processing in smaller chunks."
                )
        return warnings

    def _suggested_actions(
        self,
        data: Any,
        endpoint: str,
        rate_limit: RateLimitSnapshot | None,
    ) -> list[str]:
        actions: list[str] = []
        if rate_limit is not None and rate_limit.remaining < 10:
            actions.append(
                f"Rate limit warning: Only {rate_limit.remaining} requests remaining. "
                "Consider using other endpoints or waiting."
            )

        if "room-terrain" in endpoint and _has(data, "terrain"):
            actions.append(
                "Room terrain data retrieved successfully. You can now analyze room "
                "layout, find exits, or plan paths."
            )
            actions.append(
                "NEXT STEPS: Use this terrain data for pathfinding analysis - no need "
                "to fetch terrain again"
            )
        if "room-objects" in endpoint and _has(data, "objects"):
            actions.append(
                "Room objects data retrieved successfully. You can now analyze "
                "structures, creeps, and resources in the room."
            )
        if "room-overview" in endpoint and _has(data, "stats"):
            actions.append(
                "Room overview statistics retrieved successfully. You can now analyze "
                "room performance trends."
            )
        if "room-status" in endpoint and _has(data, "status"):
            actions.append(
                "Room status information retrieved successfully. Use it for planning "
                "- no additional status calls needed"
            )
        if "market/orders" in endpoint and _has_list(data, "list"):
            actions.append(
                f"Market orders retrieved ({len(data['list'])} orders). You can now "
                "analyze market trends or find trading opportunities."
            )
        if "user/stats" in endpoint and _has(data, "stats"):
            actions.append(
                "User statistics retrieved successfully. Calculate trends from this "
                "data - no more stats calls needed"
            )
        if "user/memory" in endpoint and _has(data, "data"):
            actions.append(
                "User memory data retrieved successfully. Parse and analyze the "
                "memory data structure - memory data is complete"
            )
        if "calculate_distance" in endpoint:
            actions.append(
                "Distance calculation completed successfully. All distance metrics "
                "have been calculated."
            )

        completeness = assess_data_completeness(data)
        if completeness == "empty":
            actions.append(
                "No data found for this query. Consider checking different parameters "
                "or trying a different endpoint."
            )
            actions.append(
                "NEXT STEPS: Verify your query parameters or try a different approach "
                "- repeated calls won't help"
            )
        elif completeness == "complete":
            actions.append("COMPLETE: All requested data has been successfully retrieved")
            actions.append("STOP: No additional API calls needed - proceed with data analysis")

        if isinstance(data, dict) and data:
            actions.append(
                f"DATA READY: Response contains {len(data)} data fields - sufficient for analysis"
            )
        return actions

    def _resource_guidance(
        self,
        data: Any,
        endpoint: str,
        rate_limit: RateLimitSnapshot | None,
    ) -> list[str]:
        actions: list[str] = []
        if rate_limit is not None and rate_limit.remaining < 10:
            actions.append(
                f"Rate limit warning: Only {rate_limit.remaining} requests remaining. "
                "Resources are cached - use them efficiently."
            )

        if "/auth/me" in endpoint and _has(data, "username"):
            actions.append("User authentication verified successfully")
            actions.append("STATIC DATA: This user info rarely changes - no need to refetch frequently")
        if "/game/time" in endpoint and _has(data, "time"):
            actions.append("Game time retrieved successfully")
            actions.append("DYNAMIC DATA: Game time updates every tick but is cached appropriately")
        if "/game/world-size" in endpoint and _has(data, "width"):
            actions.append("World size information retrieved successfully")
            actions.append("STATIC DATA: World size never changes - cache this data locally")
        if "/game/shards/info" in endpoint and _has_list(data, "shards"):
            actions.append(
                f"Shard information retrieved ({len(data['shards'])} shards available)"
            )
            actions.append("SEMI-STATIC DATA: Shard list changes rarely - safe to cache long-term")
        if "/version" in endpoint and isinstance(data, dict) and data.get("serverData"):
            actions.append("Server version and features retrieved successfully")
        if "/game/market/stats" in endpoint and _has(data, "credits"):
            actions.append("Market statistics retrieved successfully")
        if "/user/world-status" in endpoint and _has(data, "status"):
            actions.append("User world status retrieved successfully")

        actions.append("RESOURCE COMPLETE: All data loaded successfully")
        actions.append("EFFICIENCY TIP: Resources are designed to be accessed once and cached")
        return actions
