from __future__ import annotations

import asyncio
import json
import logging

import pytest

from screeps_mcp.api import HttpResponse, ScreepsApiClient
from screeps_mcp.settings import ConfigManager, ScreepsSettings
from screeps_mcp.tools import ToolAlreadyRegisteredError, ToolNotFoundError, build_tool_registry

USER_ID = "5a1b2c3d4e5f6a7b8c9d0e1f"


def run_async(coro):
    return asyncio.run(coro)


class RoutedTransport:
    """Answers by the first route fragment contained in the URL."""

    def __init__(self, routes) -> None:
        self.routes = routes
        self.requests = []

    async def request(self, url, *, method, headers, body=None):
        self.requests.append((method, url, body))
        for fragment, payload in self.routes.items():
            if fragment in url:
                return HttpResponse(status=200, body=json.dumps(payload).encode("utf-8"))
        return HttpResponse(status=404, reason="Not Found")


def _registry(routes):
    config = ConfigManager(ScreepsSettings(base_url="https://screeps.test/api"))
    transport = RoutedTransport(routes)
    client = ScreepsApiClient(config, transport=transport)
    return build_tool_registry(client, config), transport, config


def _text(result) -> str:
    return result["content"][0]["text"]


def test_registry_exposes_every_tool():
    registry, _, _ = _registry({})

    assert sorted(registry.names()) == sorted(
        [
            "get_room_terrain",
            "get_room_objects",
            "get_room_overview",
            "get_room_status",
            "calculate_distance",
            "get_user_name",
            "get_user_stats",
            "get_user_rooms",
            "find_user",
            "get_user_overview",
            "execute_console_command",
            "get_user_memory",
            "auth_signin",
            "get_market_orders_index",
            "get_my_market_orders",
            "get_market_orders",
            "get_money_history",
            "get_map_stats",
            "get_pvp_info",
            "get_nukes_info",
        ]
    )


def test_schemas_use_wire_names():
    registry, _, _ = _registry({})

    objects = registry.get("get_room_objects").spec.parameters_schema
    assert {"room", "shard", "objectType", "groupByType", "page", "pageSize"} <= set(
        objects["properties"]
    )
    assert objects["required"] == ["room"]

    distance = registry.get("calculate_distance").spec.parameters_schema
    assert set(distance["required"]) == {"from", "to"}


def test_duplicate_registration_is_rejected():
    registry, _, _ = _registry({})
    with pytest.raises(ToolAlreadyRegisteredError):
        registry.register(registry.get("get_user_name"))


def test_unknown_tool_raises():
    registry, _, _ = _registry({})
    with pytest.raises(ToolNotFoundError):
        run_async(registry.call("nope", {}))


def test_invalid_arguments_become_validation_error_results():
    registry, transport, _ = _registry({})

    result = run_async(registry.call("get_room_objects", {"room": "E1N8", "pageSize": 500}))

    assert result["isError"] is True
    assert _text(result).startswith("Validation Error:")
    assert "- Field: pageSize" in _text(result)
    assert transport.requests == []


def test_calculate_distance_runs_locally():
    registry, transport, _ = _registry({})

    result = run_async(registry.call("calculate_distance", {"from": "E1N8", "to": "E2N8"}))

    assert result["isError"] is False
    assert '"chebyshevDistance": 1' in _text(result)
    assert "Computed locally" in _text(result)
    assert transport.requests == []


def test_room_objects_tool_paginates():
    objects = [{"type": "spawn"}] * 3
    registry, transport, _ = _registry({"/game/room-objects": {"objects": objects}})

    result = run_async(
        registry.call("get_room_objects", {"room": "E1N8", "page": 1, "pageSize": 2})
    )

    assert result["isError"] is False
    assert "PAGE 1 of 2: Showing 2 objects" in _text(result)
    assert transport.requests[0][1] == "https://screeps.test/api/game/room-objects?room=E1N8"


def test_repeating_a_tool_call_reports_loop():
    registry, transport, _ = _registry({"/game/room-terrain": {"terrain": []}})

    async def scenario():
        await registry.call("get_room_terrain", {"room": "E1N8"})
        return await registry.call("get_room_terrain", {"room": "E1N8"})

    result = run_async(scenario())

    assert result["isError"] is True
    assert _text(result).startswith("Loop Detected:")
    assert len(transport.requests) == 1


def test_get_user_rooms_resolves_usernames():
    registry, transport, _ = _registry(
        {
            "/user/find": {"ok": 1, "user": {"_id": USER_ID, "username": "alice"}},
            "/user/rooms": {"ok": 1, "shards": {"shard0": ["E1N8"]}},
        }
    )

    result = run_async(registry.call("get_user_rooms", {"identifier": "alice"}))

    assert result["isError"] is False
    assert f"User Rooms (alice ({USER_ID}))" in _text(result)
    assert [url for _, url, _ in transport.requests] == [
        "https://screeps.test/api/user/find?username=alice",
        f"https://screeps.test/api/user/rooms?id={USER_ID}",
    ]


def test_get_user_rooms_accepts_ids_directly():
    registry, transport, _ = _registry({"/user/rooms": {"ok": 1}})

    run_async(registry.call("get_user_rooms", {"identifier": USER_ID}))

    assert len(transport.requests) == 1


def test_get_user_rooms_reports_missing_user():
    registry, _, _ = _registry({"/user/find": {"ok": 1}})

    result = run_async(registry.call("get_user_rooms", {"identifier": "ghost"}))

    assert result["isError"] is True
    assert "USER_NOT_FOUND" in _text(result)


def test_auth_signin_stores_token_and_redacts_it():
    registry, transport, config = _registry({"/auth/signin": {"ok": 1, "token": "secret-token"}})

    result = run_async(
        registry.call("auth_signin", {"email": "alice@example.com", "password": "pw"})
    )

    assert config.token == "secret-token"
    assert "secret-token" not in _text(result)
    assert "[REDACTED]" in _text(result)
    method, _, body = transport.requests[0]
    assert method == "POST"
    assert json.loads(body) == {"email": "alice@example.com", "password": "pw"}


def test_map_stats_posts_rooms_and_stat_name():
    registry, transport, _ = _registry({"/game/map-stats": {"ok": 1, "stats": {}}})

    result = run_async(
        registry.call(
            "get_map_stats",
            {"rooms": ["E1N8", "E2N8"], "statName": "owner0", "shard": "shard1"},
        )
    )

    assert result["isError"] is False
    method, url, body = transport.requests[0]
    assert method == "POST"
    assert url.endswith("/game/map-stats?shard=shard1")
    assert json.loads(body) == {"rooms": ["E1N8", "E2N8"], "statName": "owner0"}


def test_map_stats_requires_rooms():
    registry, _, _ = _registry({})

    result = run_async(registry.call("get_map_stats", {"rooms": [], "statName": "owner0"}))

    assert result["isError"] is True
    assert "- Field: rooms" in _text(result)


def test_http_failures_become_error_results():
    registry, _, _ = _registry({})

    result = run_async(registry.call("get_nukes_info", {}))

    assert result["isError"] is True
    assert _text(result).startswith("API Error: HTTP 404: Not Found")


def test_repeated_signin_never_logs_credentials(caplog):
    registry, transport, _ = _registry({"/auth/signin": {"ok": 1, "token": "secret-token"}})
    args = {"email": "me@example.com", "password": "hunter2-secret"}

    async def scenario():
        await registry.call("auth_signin", args)
        return await registry.call("auth_signin", args)

    with caplog.at_level(logging.DEBUG):
        result = run_async(scenario())

    assert result["isError"] is True
    assert len(transport.requests) == 1
    assert "Loop detected for POST /auth/signin" in caplog.text
    assert "hunter2-secret" not in caplog.text
    assert "hunter2-secret" not in _text(result)
