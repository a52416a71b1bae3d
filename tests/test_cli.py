from __future__ import annotations

from screeps_mcp import __main__ as cli


def test_parse_args_defaults():
    args = cli.parse_args([])

    assert args.transport == "stdio"
    assert args.host == "127.0.0.1"
    assert args.port == 8000
    assert args.log_level is None


def test_parse_args_normalizes_log_level():
    args = cli.parse_args(["--transport", "http", "--port", "9000", "--log-level", "debug"])

    assert args.transport == "http"
    assert args.port == 9000
    assert args.log_level == "DEBUG"


def test_main_exits_nonzero_without_token(monkeypatch):
    monkeypatch.delenv("SCREEPS_TOKEN", raising=False)

    assert cli.main([]) == 1
