from __future__ import annotations

import asyncio
import http.client
import json

import pytest

from screeps_mcp.api import HttpResponse, RetryPolicy, ScreepsApiClient
from screeps_mcp.errors import (
    AuthenticationError,
    HttpStatusError,
    LoopDetectedError,
    NetworkError,
    RateLimitError,
    ScreepsApiError,
)
from screeps_mcp.settings import ConfigManager, ScreepsSettings


def run_async(coro):
    return asyncio.run(coro)


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeTransport:
    """Replays queued responses; the last one repeats once the queue drains."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    async def request(self, url, *, method, headers, body=None):
        self.requests.append(
            {"url": url, "method": method, "headers": dict(headers), "body": body}
        )
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, BaseException):
            raise item
        return item


def _json(data, status: int = 200, headers=None, reason: str = "") -> HttpResponse:
    return HttpResponse(
        status=status,
        reason=reason,
        headers=headers or {},
        body=json.dumps(data).encode("utf-8"),
    )


def _rate_headers(remaining: int = 5) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": "120",
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": "1700000000",
    }


def _client(responses, *, policy: RetryPolicy | None = None, token: str | None = "tok"):
    transport = FakeTransport(responses)
    clock = FakeClock()
    delays: list[float] = []

    async def sleep(delay: float) -> None:
        delays.append(delay)

    settings = ScreepsSettings(
        base_url="https://screeps.test/api/",
        token=token,
        retry_policy=policy or RetryPolicy(),
    )
    client = ScreepsApiClient(
        ConfigManager(settings), transport=transport, clock=clock, sleep=sleep
    )
    return client, transport, clock, delays


def test_call_builds_url_and_merges_auth_headers():
    client, transport, _, _ = _client([_json({"ok": 1})])

    run_async(client.call("/user/name", headers={"X-Trace": "abc"}))

    req = transport.requests[0]
    assert req["url"] == "https://screeps.test/api/user/name"
    assert req["method"] == "GET"
    assert req["headers"]["X-Token"] == "tok"
    assert req["headers"]["Content-Type"] == "application/json"
    assert req["headers"]["X-Trace"] == "abc"


def test_identical_call_inside_window_is_rejected_even_when_cached():
    client, transport, _, _ = _client([_json({"version": 1})])

    async def scenario():
        await client.call("/version")
        await client.call("/version")

    with pytest.raises(LoopDetectedError) as exc_info:
        run_async(scenario())

    assert len(transport.requests) == 1
    assert exc_info.value.code == "LOOP_DETECTED"
    assert exc_info.value.count == 2
    assert client.last_call is not None
    assert client.last_call.loop_report.is_loop is True


def test_cache_hit_after_loop_window_skips_network():
    client, transport, clock, _ = _client([_json({"version": 1}, headers=_rate_headers())])

    first = run_async(client.call("/version"))
    assert client.rate_limit is not None
    assert client.last_call.cache_hit is False

    clock.now += 301
    second = run_async(client.call("/version"))

    assert first == second == {"version": 1}
    assert len(transport.requests) == 1
    assert client.last_call.cache_hit is True
    assert client.last_call.cached_at is not None
    assert client.rate_limit is None


def test_expired_entry_is_fetched_again():
    client, transport, clock, _ = _client([_json({"time": 1}), _json({"time": 2})])

    assert run_async(client.call("/game/time")) == {"time": 1}
    clock.now += 301
    assert run_async(client.call("/game/time")) == {"time": 2}
    assert len(transport.requests) == 2


def test_cached_payload_cannot_be_mutated_by_caller():
    client, _, clock, _ = _client([_json({"shards": ["shard0"]})])

    first = run_async(client.call("/game/shards/info"))
    first["shards"].append("mutated")

    clock.now += 301
    second = run_async(client.call("/game/shards/info"))
    assert second == {"shards": ["shard0"]}


def test_rate_limit_snapshot_tracks_headers_and_survives_invalid_ones():
    client, _, _, _ = _client(
        [
            _json({"a": 1}, headers=_rate_headers(remaining=5)),
            _json({"b": 2}, headers={"X-RateLimit-Remaining": "abc"}),
        ]
    )

    run_async(client.call("/user/name"))
    snapshot = client.rate_limit
    assert snapshot is not None
    assert snapshot.remaining == 5
    assert snapshot.limit == 120
    assert snapshot.reset_at == 1700000000

    run_async(client.call("/user/stats"))
    assert client.rate_limit == snapshot
    assert client.last_call.rate_limit == snapshot


def test_429_raises_rate_limit_error_with_retry_after():
    client, transport, _, _ = _client(
        [_json({}, status=429, headers={"Retry-After": "30", **_rate_headers(0)})],
        policy=RetryPolicy(max_retries=0),
    )

    with pytest.raises(RateLimitError) as exc_info:
        run_async(client.call("/game/market/orders-index"))

    assert exc_info.value.retry_after == 30
    assert exc_info.value.status_code == 429
    assert len(transport.requests) == 1
    assert client.rate_limit is not None
    assert client.rate_limit.remaining == 0


def test_401_raises_authentication_error_without_retry():
    client, transport, _, _ = _client([_json({}, status=401, reason="Unauthorized")])

    with pytest.raises(AuthenticationError) as exc_info:
        run_async(client.call("/auth/me"))

    assert exc_info.value.code == "AUTH_FAILED"
    assert len(transport.requests) == 1


def test_other_status_raises_http_status_error_and_is_not_cached():
    client, transport, clock, _ = _client(
        [_json({}, status=404, reason="Not Found"), _json({"ok": 1})]
    )

    with pytest.raises(HttpStatusError) as exc_info:
        run_async(client.call("/user/name"))
    assert exc_info.value.status == 404
    assert str(exc_info.value) == "HTTP 404: Not Found"

    clock.now += 301
    assert run_async(client.call("/user/name")) == {"ok": 1}
    assert len(transport.requests) == 2


def test_exhausted_server_errors_surface_as_http_status_error():
    client, transport, _, delays = _client([_json({}, status=503)])

    with pytest.raises(HttpStatusError) as exc_info:
        run_async(client.call("/game/room-status?room=E1N8"))

    assert exc_info.value.status == 503
    assert len(transport.requests) == 4
    assert delays == [1.0, 2.0, 4.0]


def test_network_failures_raise_network_error_after_retries():
    client, transport, _, delays = _client(
        [NetworkError("connection reset")],
        policy=RetryPolicy(max_retries=2, initial_delay_s=0.5),
    )

    with pytest.raises(NetworkError):
        run_async(client.call("/user/name"))

    assert len(transport.requests) == 3
    assert delays == [0.5, 1.0]


def test_invalid_json_raises_invalid_response():
    client, _, _, _ = _client([HttpResponse(status=200, body=b"<html>")])

    with pytest.raises(ScreepsApiError) as exc_info:
        run_async(client.call("/user/name"))

    assert exc_info.value.code == "INVALID_RESPONSE"


def test_post_bodies_produce_distinct_cache_keys():
    client, transport, _, _ = _client([_json({"ok": 1})])

    async def scenario():
        await client.call("/user/console", method="POST", body='{"expression":"a"}')
        await client.call("/user/console", method="POST", body='{"expression":"b"}')

    run_async(scenario())
    assert len(transport.requests) == 2
    assert transport.requests[0]["body"] == '{"expression":"a"}'
    assert client.last_call.cache_key == 'POST:/user/console:{"expression":"b"}'


def test_reset_clears_history_and_cache():
    client, transport, _, _ = _client([_json({"version": 1}, headers=_rate_headers())])

    run_async(client.call("/version"))
    client.reset()
    assert client.rate_limit is None
    assert client.last_call is None
    assert len(client.history) == 0

    run_async(client.call("/version"))
    assert len(transport.requests) == 2


def test_build_endpoint_with_query_skips_missing_values():
    client, _, _, _ = _client([_json({})])

    endpoint = client.build_endpoint_with_query(
        "/game/room-terrain", {"room": "E1N8", "shard": None, "encoded": True}
    )

    assert endpoint == "/game/room-terrain?room=E1N8&encoded=true"


def test_distinct_endpoints_do_not_trigger_loop_but_repeat_does():
    client, transport, _, _ = _client([_json({"ok": 1})])

    async def scenario():
        await client.call("/user/rooms?id=1")
        await client.call("/user/name")
        await client.call("/user/rooms?id=1")

    with pytest.raises(LoopDetectedError):
        run_async(scenario())
    assert len(transport.requests) == 2


def test_game_time_is_reused_only_within_five_seconds():
    client, transport, clock, _ = _client([_json({"time": 1}), _json({"time": 2})])

    run_async(client.call("/game/time"))

    client.history.clear()
    clock.now = 1_004.9
    assert run_async(client.call("/game/time")) == {"time": 1}
    assert client.last_call.cache_hit is True

    client.history.clear()
    clock.now = 1_005.0
    assert run_async(client.call("/game/time")) == {"time": 2}
    assert len(transport.requests) == 2


def test_truncated_body_is_retried_then_raised_as_network_error():
    client, transport, _, _ = _client(
        [http.client.IncompleteRead(b"hello", 95)],
        policy=RetryPolicy(max_retries=2, initial_delay_s=0.0),
    )

    with pytest.raises(NetworkError):
        run_async(client.call("/user/name"))

    assert len(transport.requests) == 3


def test_last_call_describes_failed_network_call():
    client, _, clock, _ = _client(
        [_json({"version": 1}), NetworkError("connection reset")],
        policy=RetryPolicy(max_retries=0),
    )

    run_async(client.call("/version"))
    clock.now += 301
    run_async(client.call("/version"))
    assert client.last_call.cache_hit is True

    with pytest.raises(NetworkError):
        run_async(client.call("/user/name"))

    assert client.last_call.endpoint == "/user/name"
    assert client.last_call.cache_hit is False
    assert client.last_call.cached_at is None
