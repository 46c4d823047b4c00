"""
Authentication mode selection.

A client authenticates either as an application (bearer token) or as a user
(OAuth1). The mode is selected once from the configuration and each variant
knows how to build the httpx auth that is attached to every request.
"""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
from authlib.integrations.httpx_client import OAuth1Auth

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

if TYPE_CHECKING:
    from magento_client.config import ClientConfig


class BearerAuth(httpx.Auth):
    """httpx auth that sends an application-only bearer token."""

    def __init__(self, token: str) -> None:
        self._header = f"Bearer {token}"

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = self._header
        yield request


@dataclass(frozen=True, slots=True)
class BearerAuthMode:
    """Application-only authentication with a bearer token."""

    token: str

    def to_httpx_auth(self) -> httpx.Auth:
        return BearerAuth(self.token)

    def __repr__(self) -> str:
        return "BearerAuthMode(token='***')"


class OAuth1SigningAuth(OAuth1Auth):
    """
    OAuth1 auth that never rewrites the request body.

    Form-encoded bodies are signed together with their parameters. Any other
    body (multipart uploads) is left out of the signature and sent as-is;
    only the Authorization header is added.
    """

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        content_type = request.headers.get("Content-Type", "")
        if not request.content or content_type.startswith(FORM_CONTENT_TYPE):
            yield from super().auth_flow(request)
            return

        _, headers, _ = self.sign(request.method, str(request.url), {}, b"")
        request.headers["Authorization"] = headers["Authorization"]
        yield request


@dataclass(frozen=True, slots=True)
class OAuth1AuthMode:
    """
    User authentication with OAuth1 request signing.

    Requests are signed with HMAC-SHA1 over method, URL and parameters
    (RFC 5849). Empty fields are signed as empty strings.
    """

    consumer_key: str = ""
    consumer_secret: str = ""
    access_token: str = ""
    access_token_secret: str = ""

    def to_httpx_auth(self) -> httpx.Auth:
        return OAuth1SigningAuth(
            client_id=self.consumer_key,
            client_secret=self.consumer_secret,
            token=self.access_token,
            token_secret=self.access_token_secret,
        )

    def __repr__(self) -> str:
        return f"OAuth1AuthMode(consumer_key={self.consumer_key!r}, ...)"


AuthMode = BearerAuthMode | OAuth1AuthMode


def select_auth(config: ClientConfig) -> AuthMode:
    """
    Select the authentication mode for a configuration.

    A configured bearer token always wins, even when OAuth1 credentials
    are populated as well.

    Args:
        config: The client configuration

    Returns:
        The AuthMode to use for every request
    """
    if config.bearer_token is not None:
        return BearerAuthMode(config.bearer_token)

    return OAuth1AuthMode(
        consumer_key=config.consumer_key or "",
        consumer_secret=config.consumer_secret or "",
        access_token=config.access_token_key or "",
        access_token_secret=config.access_token_secret or "",
    )
