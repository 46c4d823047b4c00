"""
Request dispatching shared by the sync and async clients.

This module turns a logical (method, path, params) call into the keyword
arguments for an httpx request, and classifies the response into an
ApiResult. Neither step performs I/O.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from magento_client._endpoint import is_streaming_base, resolve_endpoint
from magento_client._errors import StatusCodeError
from magento_client._types import (
    BASE_PARAM,
    DEFAULT_BASE,
    MEDIA_PARAM,
    ApiResult,
    ParamsLike,
)

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("get", "post")


@dataclass(frozen=True, slots=True)
class RequestPlan:
    """
    A resolved one-shot request.

    Attributes:
        method: Lower-case HTTP method
        url: The resolved absolute URL
        base: The base name the call asked for
        streaming: Whether the base is a streaming base
        params: Query parameters (GET)
        data: Form fields (POST, url-encoded)
        files: Multipart parts (POST with a media field)
    """

    method: str
    url: str
    base: str
    streaming: bool = False
    params: dict[str, Any] | None = None
    data: dict[str, Any] | None = None
    files: list[tuple[str, Any]] | None = None

    @property
    def is_multipart(self) -> bool:
        return self.files is not None

    def httpx_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for httpx.Client.request()."""
        kwargs: dict[str, Any] = {}
        if self.params is not None:
            kwargs["params"] = self.params
        if self.data is not None:
            kwargs["data"] = self.data
        if self.files is not None:
            kwargs["files"] = self.files
        return kwargs


def _is_binary(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray, tuple)) or hasattr(value, "read")


def _multipart_parts(params: Mapping[str, Any]) -> list[tuple[str, Any]]:
    """
    Build multipart parts from params.

    Binary values and file objects become file parts. Everything else is
    sent as a plain form field ((None, value) means "no filename"). A list
    value is sent as one field per item.
    """
    parts: list[tuple[str, Any]] = []
    for key, value in params.items():
        values = value if isinstance(value, list) else [value]
        for item in values:
            if isinstance(item, (dict, list, set)):
                raise TypeError(f"Unsupported multipart value for {key!r}: {item!r}")
            if _is_binary(item):
                parts.append((key, item))
            else:
                parts.append((key, (None, str(item))))
    return parts


def plan_request(
    method: str,
    path: str,
    params: ParamsLike | None,
    bases: Mapping[str, str],
) -> RequestPlan:
    """
    Resolve a logical call into a RequestPlan.

    The reserved "base" param selects the base and is never sent. The
    caller's params mapping is not modified.

    Args:
        method: "get" or "post" (case-insensitive)
        path: Resource path or absolute URL
        params: Call parameters
        bases: Mapping of base name to base URL

    Returns:
        The resolved plan

    Raises:
        ValueError: If the method is not supported
        TypeError: If a multipart value is a mapping or a set
    """
    method = method.lower()
    if method not in SUPPORTED_METHODS:
        raise ValueError(f"Unsupported method: {method!r}")

    remaining = dict(params or {})
    base = str(remaining.pop(BASE_PARAM, None) or DEFAULT_BASE)

    url = resolve_endpoint(path, base, bases)
    streaming = is_streaming_base(base)

    if method == "get":
        return RequestPlan(method, url, base, streaming, params=remaining)

    if MEDIA_PARAM in remaining:
        return RequestPlan(method, url, base, streaming, files=_multipart_parts(remaining))

    return RequestPlan(method, url, base, streaming, data=remaining)


def classify_response(response: httpx.Response) -> ApiResult:
    """
    Classify a completed response.

    - A body that is not JSON is a StatusCodeError, whatever the status.
    - A decoded object with an "errors" key fails with that value, even
      on HTTP 200.
    - Any status other than 200 is a StatusCodeError.
    - Everything else succeeds.

    Args:
        response: The httpx response, with its body read

    Returns:
        The ApiResult for the call
    """
    status = response.status_code
    raw = response.text

    try:
        data = json.loads(raw)
    except ValueError:
        logger.debug("Response body is not JSON (status %d)", status)
        return ApiResult(StatusCodeError(status, details=raw), raw, response)

    if isinstance(data, dict) and "errors" in data:
        return ApiResult(data["errors"], data, response)

    if status != 200:
        return ApiResult(StatusCodeError(status, details=data), data, response)

    return ApiResult(None, data, response)


def transport_failure(error: httpx.RequestError) -> ApiResult:
    """Build the ApiResult for a request that never produced a response."""
    return ApiResult(error, None, None)
