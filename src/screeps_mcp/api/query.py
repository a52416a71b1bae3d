"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Query-string helpers shared by tool and resource handlers.
"""

from __future__ import annotations

import urllib.parse
from collections.abc import Mapping
from typing import Any


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(item) for item in value)
    return str(value)


def build_query_params(params: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Drop ``None`` values and stringify the rest, keeping insertion order."""
    return [(key, _stringify(value)) for key, value in params.items() if value is not None]


def build_endpoint_with_query(path: str, params: Mapping[str, Any] | None = None) -> str:
    """
    Append the non-null ``params`` to ``path`` as a query string.

    Returns ``path`` unchanged when no parameters remain.
    """
    pairs = build_query_params(params or {})
    if not pairs:
        return path
    return f"{path}?{urllib.parse.urlencode(pairs)}"
