"""
AsyncMagentoClient - asynchronous client for the REST and streaming APIs.

Mirrors MagentoClient for use with asyncio.
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
from magento_client.astream import AsyncStreamReceiver
from magento_client.client import _build_config
from magento_client.config import ClientConfig

logger = logging.getLogger(__name__)


class AsyncMagentoClient:
    """
    An asynchronous client for the Magento API.

    No network IO is performed by the constructor.

    Example:
        >>> async with AsyncMagentoClient(bearer_token="AAAA") as client:
        ...     result = await client.get("statuses/show", {"id": 20})
        ...
        ...     async with client.stream("user") as messages:
        ...         async for message in messages:
        ...             print(message)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        **options: Any,
    ) -> None:
        """
        Create a client.

        Args:
            config: The client configuration
            client: Optional httpx.AsyncClient to use (will not be closed)
            **options: ClientConfig fields, when no config is given
        """
        self._config = _build_config(config, options)
        self._auth_mode = select_auth(self._config)
        self._auth = self._auth_mode.to_httpx_auth()

        self._own_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._config.timeout)

    @property
    def config(self) -> ClientConfig:
        """The client configuration."""
        return self._config

    @property
    def auth_mode(self) -> AuthMode:
        """The authentication mode used for every request."""
        return self._auth_mode

    async def aclose(self) -> None:
        """Close the client and release resources."""
        if self._own_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncMagentoClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # === One-shot requests ===

    def build_endpoint(self, path: str, base: str | None = None) -> str:
        """Resolve a path against the configured bases."""
        return resolve_endpoint(path, base, self._config.bases)

    def plan(self, method: str, path: str, params: ParamsLike | None = None) -> RequestPlan:
        """Resolve a call without sending it."""
        return plan_request(method, path, params, self._config.bases)

    async def request(
        self,
        method: str,
        path: str,
        params: ParamsLike | None = None,
    ) -> ApiResult:
        """
        Send a one-shot request.

        See MagentoClient.request() for the meaning of the arguments and of
        the result.
        """
        plan = self.plan(method, path, params)
        logger.debug("%s %s", plan.method.upper(), plan.url)

        try:
            response = await self._client.request(
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

    async def get(self, path: str, params: ParamsLike | None = None) -> ApiResult:
        """Send a GET request."""
        return await self.request("get", path, params)

    async def post(self, path: str, params: ParamsLike | None = None) -> ApiResult:
        """Send a POST request."""
        return await self.request("post", path, params)

    # === Streaming ===

    def stream(
        self,
        method: str,
        params: ParamsLike | None = None,
        *,
        framing: Framing | None = None,
    ) -> AsyncStreamReceiver:
        """
        Create a receiver for a streaming call.

        The connection is opened when the receiver is awaited or first
        iterated:

            receiver = await client.stream("statuses/sample")

        Args:
            method: Stream method ("user", "site", "statuses/filter", ...)
            params: Query parameters for the stream
            framing: Message framing (defaults to CRLF-delimited messages)

        Returns:
            An AsyncStreamReceiver in the connecting state
        """
        url = resolve_endpoint(method, stream_base_for(method), self._config.bases)
        logger.debug("Creating stream %s", url)

        return AsyncStreamReceiver(
            url,
            client=self._client,
            auth=self._auth,
            params=dict(params or {}),
            headers=self._config.request_headers(),
            framing=framing,
            timeout=self._config.stream_timeout,
        )

    def __repr__(self) -> str:
        return f"AsyncMagentoClient(auth_mode={self._auth_mode!r})"
