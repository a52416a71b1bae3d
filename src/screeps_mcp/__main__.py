"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Command-line entry point: ``python -m screeps_mcp``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from .mcp import ScreepsMcpServer
from .settings import ScreepsSettings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="screeps-mcp", description="Screeps Web API MCP server"
    )
    parser.add_argument("--transport", choices=("stdio", "http"), default="stdio")
    parser.add_argument("--host", type=str, default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        type=str.upper,
        default=None,
        help="Overrides SCREEPS_LOG_LEVEL",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = ScreepsSettings.from_env()
    if args.log_level:
        settings = replace(settings, log_level=args.log_level)

    # stdout carries the stdio transport
    logging.basicConfig(
        level=settings.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    server = ScreepsMcpServer(settings)
    started = server.start(transport=args.transport, host=args.host, port=args.port)
    return 0 if started else 1


if __name__ == "__main__":
    sys.exit(main())
