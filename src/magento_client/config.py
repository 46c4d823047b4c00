"""
Client configuration.

ClientConfig is an immutable record of everything a client needs: the five
API bases, the credentials and the transport defaults. It is built once and
never mutated; use dataclasses.replace() to derive a variant.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

import httpx

from magento_client._types import (
    DEFAULT_MEDIA_BASE,
    DEFAULT_REST_BASE,
    DEFAULT_SITE_STREAM_BASE,
    DEFAULT_STREAM_BASE,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_STREAM_BASE,
)

ENV_PREFIX = "MAGENTO_"


def _default_headers() -> dict[str, str]:
    return {
        "Accept": "*/*",
        "Connection": "close",
    }


def _default_user_agent() -> str:
    from magento_client import __version__

    return f"magento-client/{__version__}"


def _stream_timeout(read: float | None = None) -> httpx.Timeout:
    # Stream reads are unbounded unless a read timeout is given
    return httpx.Timeout(DEFAULT_TIMEOUT, read=read)


@dataclass(frozen=True)
class ClientConfig:
    """
    Configuration for a Magento client.

    Attributes:
        consumer_key: OAuth1 consumer key
        consumer_secret: OAuth1 consumer secret
        access_token_key: OAuth1 access token
        access_token_secret: OAuth1 access token secret
        bearer_token: Application-only bearer token. When set it always
            takes precedence over the OAuth1 fields.
        rest_base: Base URL for REST calls
        stream_base: Base URL for public streams
        user_stream_base: Base URL for user streams
        site_stream_base: Base URL for site streams
        media_base: Base URL for media uploads
        headers: Headers sent with every request
        user_agent: User-Agent header value
        timeout: Request timeout in seconds (or an httpx.Timeout)
        stream_timeout: Timeout for streaming calls. By default reads never
            time out, so a quiet stream stays open.
    """

    consumer_key: str | None = None
    consumer_secret: str | None = None
    access_token_key: str | None = None
    access_token_secret: str | None = None
    bearer_token: str | None = None

    rest_base: str = DEFAULT_REST_BASE
    stream_base: str = DEFAULT_STREAM_BASE
    user_stream_base: str = DEFAULT_USER_STREAM_BASE
    site_stream_base: str = DEFAULT_SITE_STREAM_BASE
    media_base: str = DEFAULT_MEDIA_BASE

    headers: Mapping[str, str] = field(default_factory=_default_headers)
    user_agent: str = field(default_factory=_default_user_agent)
    timeout: Any = DEFAULT_TIMEOUT
    stream_timeout: Any = field(default_factory=_stream_timeout)

    @property
    def bases(self) -> dict[str, str]:
        """Mapping of base name to base URL."""
        return {
            "rest": self.rest_base,
            "stream": self.stream_base,
            "user_stream": self.user_stream_base,
            "site_stream": self.site_stream_base,
            "media": self.media_base,
        }

    def request_headers(self) -> dict[str, str]:
        """Headers to attach to every outbound request."""
        headers = dict(self.headers)
        headers["User-Agent"] = self.user_agent
        return headers

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> ClientConfig:
        """
        Build a config from MAGENTO_* environment variables.

        Every string field can be set as MAGENTO_<FIELD NAME IN UPPER CASE>,
        e.g. MAGENTO_BEARER_TOKEN or MAGENTO_REST_BASE. Keyword overrides
        take precedence over the environment.

        Args:
            environ: Environment mapping (defaults to os.environ)
            **overrides: Explicit field values

        Returns:
            A new ClientConfig
        """
        if environ is None:
            environ = os.environ

        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name in ("headers", "timeout", "stream_timeout"):
                continue
            env_value = environ.get(ENV_PREFIX + f.name.upper())
            if env_value:
                values[f.name] = env_value

        timeout = environ.get(ENV_PREFIX + "TIMEOUT")
        if timeout:
            values["timeout"] = float(timeout)

        stream_read_timeout = environ.get(ENV_PREFIX + "STREAM_READ_TIMEOUT")
        if stream_read_timeout:
            values["stream_timeout"] = _stream_timeout(float(stream_read_timeout))

        values.update(overrides)
        return cls(**values)
