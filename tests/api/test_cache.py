from __future__ import annotations

import pytest

from screeps_mcp.api import DEFAULT_TTL_S, ResponseCache, cache_ttl_for, make_cache_key


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.parametrize(
    ("endpoint", "ttl_s"),
    [
        ("/auth/me", 900.0),
        ("/version", 3600.0),
        ("/game/world-size", 3600.0),
        ("/game/shards/info", 600.0),
        ("/user/world-status", 120.0),
        ("/game/time", 5.0),
        ("/game/market/stats", 60.0),
        ("/game/room-terrain?room=E1N8", 300.0),
        ("/game/room-status?room=E1N8", 60.0),
        ("/game/room-objects?room=E1N8", 10.0),
        ("/user/stats?interval=8", 30.0),
        ("/user/overview?interval=180", 30.0),
        ("/game/market/orders?resourceType=H", 15.0),
        ("/game/market/my-orders", 15.0),
        ("/user/name", DEFAULT_TTL_S),
    ],
)
def test_cache_ttl_for_matches_first_rule(endpoint, ttl_s):
    assert cache_ttl_for(endpoint) == ttl_s


def test_make_cache_key_includes_method_and_body():
    assert make_cache_key("/user/name") == "GET:/user/name:"
    assert (
        make_cache_key("/user/console", method="post", body='{"expression":"1"}')
        == 'POST:/user/console:{"expression":"1"}'
    )


def test_entry_is_served_until_ttl_elapses():
    clock = FakeClock()
    cache = ResponseCache(clock=clock)
    cache.set("k", {"time": 1}, ttl_s=5.0)

    clock.now = 1_004.9
    assert cache.get("k") == {"time": 1}

    clock.now = 1_005.0
    assert cache.get("k") is None
    assert "k" not in cache


def test_cache_stores_and_returns_copies():
    cache = ResponseCache(clock=FakeClock())
    payload = {"objects": [{"type": "spawn"}]}
    cache.set("k", payload, ttl_s=10.0)

    payload["objects"].append({"type": "tower"})
    first = cache.get("k")
    first["objects"].clear()

    assert cache.get("k") == {"objects": [{"type": "spawn"}]}


def test_get_entry_exposes_storage_time():
    clock = FakeClock(now=42.0)
    cache = ResponseCache(clock=clock)
    cache.set("k", [], ttl_s=1.0)

    entry = cache.get_entry("k")
    assert entry is not None
    assert entry.stored_at_s == 42.0
    assert entry.ttl_s == 1.0


def test_delete_and_clear():
    cache = ResponseCache(clock=FakeClock())
    cache.set("a", 1, ttl_s=10.0)
    cache.set("b", 2, ttl_s=10.0)

    cache.delete("a")
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0
