from __future__ import annotations

import pytest

from screeps_mcp.errors import (
    AuthenticationError,
    HttpStatusError,
    LoopDetectedError,
    NetworkError,
    RateLimitError,
    ScreepsApiError,
    ValidationError,
    describe_error,
    handle_api_error,
)


def test_error_kinds_carry_codes_and_status():
    assert RateLimitError("slow down", retry_after=5).code == "RATE_LIMITED"
    assert AuthenticationError().status_code == 401
    assert NetworkError("reset").code == "NETWORK_ERROR"
    assert NetworkError("reset").status_code is None

    err = HttpStatusError(502, "Bad Gateway")
    assert err.code == "HTTP_ERROR"
    assert err.status_code == 502
    assert err.message == "HTTP 502: Bad Gateway"
    assert isinstance(err, ScreepsApiError)


def test_handle_api_error_passes_typed_errors_through():
    original = RateLimitError("slow down")
    with pytest.raises(RateLimitError) as exc_info:
        handle_api_error(original)
    assert exc_info.value is original

    invalid = ValidationError("bad room", "room", "X1")
    with pytest.raises(ValidationError) as exc_info:
        handle_api_error(invalid)
    assert exc_info.value is invalid


def test_handle_api_error_wraps_unknown_errors():
    with pytest.raises(ScreepsApiError) as exc_info:
        handle_api_error(ValueError("boom"))

    assert exc_info.value.code == "UNKNOWN_ERROR"
    assert exc_info.value.message == "boom"
    assert exc_info.value.context == {"originalError": "ValueError"}


def test_describe_error_by_kind():
    assert describe_error(RateLimitError("slow", retry_after=30)).startswith(
        "Rate Limit Error: slow"
    )
    assert "Retry after: 30 seconds" in describe_error(RateLimitError("slow", retry_after=30))
    assert describe_error(AuthenticationError("nope")).startswith("Authentication Error: nope")

    text = describe_error(ValidationError("Invalid room name: X", "room", "X"))
    assert text.startswith("Validation Error: Invalid room name: X")
    assert "- Field: room" in text
    assert '- Value: "X"' in text

    api = describe_error(ScreepsApiError("missing", "USER_NOT_FOUND", context={"username": "a"}))
    assert api.startswith("API Error: missing")
    assert "- Error code: USER_NOT_FOUND" in api

    plain = describe_error(KeyError("k"))
    assert plain.startswith("Error: ")
    assert "- Type: KeyError" in plain


def test_describe_loop_error_includes_warnings():
    err = LoopDetectedError(
        "/version", cache_key="GET:/version:", count=2, warnings=["STOP IMMEDIATELY"]
    )

    text = describe_error(err)

    assert text.startswith("Loop Detected: ")
    assert "- Repeated calls: 2" in text
    assert "- STOP IMMEDIATELY" in text
    assert err.context == {"endpoint": "/version", "cacheKey": "GET:/version:", "count": 2}
