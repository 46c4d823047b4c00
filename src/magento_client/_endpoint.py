"""
Endpoint resolution.

Turns a logical API path and a base name into the absolute URL to call.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from urllib.parse import urlsplit

from magento_client._types import DEFAULT_BASE, MEDIA_BASE

_MEDIA_PATH = re.compile(r"^/?media")


def has_scheme(path: str) -> bool:
    """Return True if the path is already an absolute URL."""
    return bool(urlsplit(path).scheme)


def resolve_endpoint(
    path: str,
    base: str | None,
    bases: Mapping[str, str],
) -> str:
    """
    Resolve a logical path against one of the configured bases.

    Rules, in order:
    - A path with a URL scheme is returned verbatim.
    - Unknown or missing base names fall back to "rest".
    - Paths starting with "media" or "/media" always use the media base.
    - A single trailing slash is removed.
    - ".json" is appended unless the last dot-separated part of the path
      is already "json".

    Args:
        path: Resource path ("statuses/show", "/statuses/show.json") or URL
        base: Name of the base to resolve against
        bases: Mapping of base name to base URL

    Returns:
        The absolute URL

    Example:
        >>> resolve_endpoint("statuses/show", "rest", {"rest": "https://api.example.com/1.1"})
        'https://api.example.com/1.1/statuses/show.json'
    """
    if has_scheme(path):
        return path

    if base in bases:
        endpoint = bases[base]
    else:
        endpoint = bases[DEFAULT_BASE]

    if _MEDIA_PATH.match(path):
        endpoint = bases[MEDIA_BASE]

    endpoint += path if path.startswith("/") else "/" + path

    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]

    # The media override does not exempt upload paths from the suffix
    if path.split(".")[-1] != "json":
        endpoint += ".json"

    return endpoint


def is_streaming_base(base: str | None) -> bool:
    """Return True if the base name designates a streaming base."""
    return base is not None and "stream" in base


def stream_base_for(method: str) -> str:
    """
    Pick the stream base for a stream method.

    "user" and "site" streams have their own hosts; every other stream
    method is served from the public stream base.
    """
    if method in ("user", "site"):
        return f"{method}_stream"
    return "stream"
