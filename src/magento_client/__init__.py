"""
Magento Python Client

A Python client library for the Magento REST and streaming APIs.

This package provides both synchronous and asynchronous clients. A client
authenticates either with an application-only bearer token or with OAuth1
user credentials, resolves logical API paths against the configured bases,
and decodes long-lived streams into individual JSON messages.

Example usage:
    >>> from magento_client import MagentoClient
    >>>
    >>> # One-shot call
    >>> with MagentoClient(bearer_token="AAAA") as client:
    ...     result = client.get("search/tweets", {"q": "python"})
    ...     data = result.raise_for_error()
    >>>
    >>> # Streaming
    >>> with client.stream("statuses/filter", {"track": "python"}) as messages:
    ...     for message in messages:
    ...         print(message)
"""

from importlib.metadata import PackageNotFoundError, version

from magento_client._auth import (
    AuthMode,
    BearerAuth,
    BearerAuthMode,
    OAuth1AuthMode,
    select_auth,
)
from magento_client._endpoint import is_streaming_base, resolve_endpoint
from magento_client._errors import (
    APIError,
    MagentoError,
    StatusCodeError,
    StreamConsumedError,
    StreamTransportError,
    TransportError,
)
from magento_client._framing import DelimitedFraming, Framing, LengthPrefixedFraming
from magento_client._parser import StreamParser, classify_message
from magento_client._types import ApiResult, ParamsLike, StreamEvent, StreamState
from magento_client.aclient import AsyncMagentoClient
from magento_client.astream import AsyncStreamReceiver
from magento_client.client import MagentoClient
from magento_client.config import ClientConfig
from magento_client.stream import StreamReceiver

__all__ = [
    "__version__",
    # Types
    "ApiResult",
    "ParamsLike",
    "StreamEvent",
    "StreamState",
    "ClientConfig",
    # Auth
    "AuthMode",
    "BearerAuth",
    "BearerAuthMode",
    "OAuth1AuthMode",
    "select_auth",
    # Endpoints
    "resolve_endpoint",
    "is_streaming_base",
    # Streaming
    "Framing",
    "DelimitedFraming",
    "LengthPrefixedFraming",
    "StreamParser",
    "classify_message",
    "StreamReceiver",
    "AsyncStreamReceiver",
    # Errors
    "MagentoError",
    "TransportError",
    "StatusCodeError",
    "APIError",
    "StreamTransportError",
    "StreamConsumedError",
    # Clients
    "MagentoClient",
    "AsyncMagentoClient",
]

# Use importlib.metadata for version (works with installed package)
# Fall back to hard-coded version for editable installs
try:
    __version__ = version("magento-client")
except PackageNotFoundError:
    __version__ = "0.1.0"
