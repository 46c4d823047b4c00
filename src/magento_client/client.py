"""
MagentoClient - synchronous client for the REST and streaming APIs.

The client resolves logical paths to URLs, authenticates every request with
the mode selected at construction, and classifies responses into ApiResults.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from magento_client._auth import AuthMode, select_auth
from magento_client._dispatch import (
    RequestPlan,
    classify_response,
    plan_request,
    transport_failure,
)
from magento_client._endpoint import resolve_endpoint, stream_base_for
from magento_client._framing import Framing
from magento_client._types import ApiResult, ParamsLike
from magento_client.config import ClientConfig
from magento_client.stream import StreamReceiver

logger = logging.getLogger(__name__)


def _build_config(config: ClientConfig | None, options: dict[str, Any]) -> ClientConfig:
    if config is not None and options:
        raise TypeError("Pass either a ClientConfig or keyword options, not both")
    return config if config is not None else ClientConfig(**options)


class MagentoClient:
    """
    A synchronous client for the Magento API.

    No network IO is performed by the constructor.

    Example:
        >>> with MagentoClient(bearer_token="AAAA") as client:
        ...     result = client.get("statuses/user_timeline", {"screen_name": "alice"})
        ...     if result.ok:
        ...         print(result.data)
        >>>
        >>> with client.stream("statuses/sample") as messages:
        ...     for message in messages:
        ...         print(message)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        client: httpx.Client | None = None,
        **options: Any,
    ) -> None:
        """
        Create a client.

        Args:
            config: The client configuration
            client: Optional httpx.Client to use (will not be closed)
            **options: ClientConfig fields, when no config is given
        """
        self._config = _build_config(config, options)
        self._auth_mode = select_auth(self._config)
        self._auth = self._auth_mode.to_httpx_auth()

        # Client management
        self._own_client = client is None
        self._client = client or httpx.Client(timeout=self._config.timeout)

    @property
    def config(self) -> ClientConfig:
        """The client configuration."""
        return self._config

    @property
    def auth_mode(self) -> AuthMode:
        """The authentication mode used for every request."""
        return self._auth_mode

    def close(self) -> None:
        """Close the client and release resources."""
        if self._own_client:
            self._client.close()

    def __enter__(self) -> MagentoClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # === One-shot requests ===

    def build_endpoint(self, path: str, base: str | None = None) -> str:
        """Resolve a path against the configured bases."""
        return resolve_endpoint(path, base, self._config.bases)

    def plan(self, method: str, path: str, params: ParamsLike | None = None) -> RequestPlan:
        """Resolve a call without sending it."""
        return plan_request(method, path, params, self._config.bases)

    def request(
        self,
        method: str,
        path: str,
        params: ParamsLike | None = None,
    ) -> ApiResult:
        """
        Send a one-shot request.

        Failures never raise: they are reported in the returned ApiResult.
        Call result.raise_for_error() to turn them into exceptions.

        Args:
            method: "get" or "post"
            path: Resource path (or absolute URL)
            params: Query parameters for GET, form fields for POST. The
                reserved "base" key selects the API base; a "media" key
                switches POST bodies to multipart.

        Returns:
            The ApiResult for the call
        """
        plan = self.plan(method, path, params)
        logger.debug("%s %s", plan.method.upper(), plan.url)

        try:
            response = self._client.request(
                plan.method.upper(),
                plan.url,
                headers=self._config.request_headers(),
                auth=self._auth,
                **plan.httpx_kwargs(),
            )
        except httpx.RequestError as e:
            logger.debug("%s %s failed: %r", plan.method.upper(), plan.url, e)
            return transport_failure(e)

        return classify_response(response)

    def get(self, path: str, params: ParamsLike | None = None) -> ApiResult:
        """Send a GET request."""
        return self.request("get", path, params)

    def post(self, path: str, params: ParamsLike | None = None) -> ApiResult:
        """Send a POST request."""
        return self.request("post", path, params)

    # === Streaming ===

    def stream(
        self,
        method: str,
        params: ParamsLike | None = None,
        *,
        framing: Framing | None = None,
    ) -> StreamReceiver:
        """
        Open a streaming call.

        "user" and "site" streams use their own bases; every other method
        (e.g. "statuses/filter") is served from the public stream base.

        Args:
            method: Stream method
            params: Query parameters for the stream
            framing: Message framing (defaults to CRLF-delimited messages)

        Returns:
            An open StreamReceiver

        Raises:
            StreamTransportError: The stream could not be opened
        """
        url = resolve_endpoint(method, stream_base_for(method), self._config.bases)
        logger.debug("Opening stream %s", url)

        receiver = StreamReceiver(
            url,
            client=self._client,
            auth=self._auth,
            params=dict(params or {}),
            headers=self._config.request_headers(),
            framing=framing,
            timeout=self._config.stream_timeout,
        )
        return receiver.open()

    def __repr__(self) -> str:
        return f"MagentoClient(auth_mode={self._auth_mode!r})"
