"""
Core types for the Magento client.

This module defines the fundamental types used throughout the library.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from magento_client._errors import as_exception

if TYPE_CHECKING:
    import httpx

# Names of the configured API bases
BaseName = Literal["rest", "stream", "user_stream", "site_stream", "media"]

# Type for request params - values are sent as query string or form fields
ParamsLike = dict[str, Any]


# Default base URLs
DEFAULT_REST_BASE = "https://api.magento.com/1.1"
DEFAULT_STREAM_BASE = "https://stream.magento.com/1.1"
DEFAULT_USER_STREAM_BASE = "https://userstream.magento.com/1.1"
DEFAULT_SITE_STREAM_BASE = "https://sitestream.magento.com/1.1"
DEFAULT_MEDIA_BASE = "https://upload.magento.com/1.1"

DEFAULT_BASE: BaseName = "rest"
MEDIA_BASE: BaseName = "media"

# Reserved params keys
BASE_PARAM = "base"
MEDIA_PARAM = "media"

DEFAULT_TIMEOUT = 30.0


class StreamState(enum.Enum):
    """Lifecycle states of a stream receiver."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    ERRORED = "errored"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamState.CLOSED, StreamState.ERRORED, StreamState.CANCELLED)


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """
    A decoded stream message together with its detected kind.

    Attributes:
        kind: Message kind, e.g. "delete", "limit", "event" or "data"
        data: The decoded JSON message
    """

    kind: str
    data: Any


@dataclass(frozen=True, slots=True)
class ApiResult:
    """
    Result of a one-shot API call.

    The error slot holds whatever the call failed with: the httpx transport
    exception, a StatusCodeError, or the verbatim ``errors`` value of the
    decoded body. It is None on success.

    Attributes:
        error: The failure value, or None
        data: The decoded JSON body, or the raw text if it was not JSON
        response: The httpx response (None on transport errors)
    """

    error: Any
    data: Any
    response: httpx.Response | None

    @property
    def ok(self) -> bool:
        """True when the call succeeded."""
        return self.error is None

    @property
    def status_code(self) -> int | None:
        """HTTP status code of the response, if one was received."""
        if self.response is None:
            return None
        return self.response.status_code

    def raise_for_error(self) -> Any:
        """
        Raise the error as an exception, or return the decoded data.

        Raises:
            TransportError: The request never completed
            APIError: The body carried an ``errors`` field
            StatusCodeError: The body was not JSON or the status was not 200
        """
        if self.error is not None:
            raise as_exception(self.error, self.response)
        return self.data
