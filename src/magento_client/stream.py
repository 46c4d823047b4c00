"""
StreamReceiver - synchronous consumption of a long-lived streaming call.

A receiver wraps one open HTTP response whose body never ends on its own,
and yields decoded JSON messages as their bytes arrive.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any

import httpx

from magento_client._errors import StreamConsumedError, StreamTransportError
from magento_client._framing import Framing
from magento_client._parser import StreamParser, classify_message
from magento_client._types import ParamsLike, StreamEvent, StreamState

logger = logging.getLogger(__name__)


class StreamReceiver:
    """
    Synchronous stream receiver.

    This is a one-shot object - you can consume it in exactly one mode.
    Attempting to consume it again raises StreamConsumedError.

    Usage as a context manager is recommended, so the connection is closed
    when you stop reading:

        with client.stream("statuses/filter", {"track": "python"}) as messages:
            for message in messages:
                process(message)

    Consumption modes (choose ONE):
    - Iteration: `for message in receiver` yields decoded JSON messages
    - `iter_events()`: yields StreamEvent objects (kind + message)
    - `run(on_message, on_end, on_error)`: drives the stream with callbacks

    Call destroy() to cancel. Nothing is delivered after that, not even
    messages that were already received.
    """

    def __init__(
        self,
        url: str,
        *,
        client: httpx.Client,
        auth: httpx.Auth | None = None,
        params: ParamsLike | None = None,
        headers: dict[str, str] | None = None,
        framing: Framing | None = None,
        timeout: float | httpx.Timeout | None = None,
    ) -> None:
        self._url = url
        self._client = client
        self._auth = auth
        self._params = params or {}
        self._headers = headers or {}
        self._timeout = timeout
        self._parser = StreamParser(framing)

        self._state = StreamState.CONNECTING
        self._response: httpx.Response | None = None
        self._error: StreamTransportError | None = None
        self._consumed_by: str | None = None

    @property
    def url(self) -> str:
        """The stream URL."""
        return self._url

    @property
    def state(self) -> StreamState:
        """Current lifecycle state."""
        return self._state

    @property
    def response(self) -> httpx.Response | None:
        """The underlying response, once the stream is open."""
        return self._response

    @property
    def error(self) -> StreamTransportError | None:
        """The error that terminated the stream, if any."""
        return self._error

    @property
    def dropped(self) -> int:
        """Number of malformed messages dropped so far."""
        return self._parser.dropped

    def _transition(self, state: StreamState) -> None:
        logger.debug("Stream %s: %s -> %s", self._url, self._state.value, state.value)
        self._state = state

    def _fail(self, error: StreamTransportError) -> StreamTransportError:
        self._error = error
        self._transition(StreamState.ERRORED)
        if self._response is not None:
            self._response.close()
        return error

    # === Connection ===

    def open(self) -> StreamReceiver:
        """
        Send the request and wait for the response to start.

        Does nothing unless the receiver is still connecting.

        Returns:
            self

        Raises:
            StreamTransportError: The connection failed or the server
                answered with a non-2xx status
        """
        if self._state is not StreamState.CONNECTING:
            return self

        kwargs: dict[str, Any] = {}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        request = self._client.build_request(
            "GET",
            self._url,
            params=self._params,
            headers=self._headers,
            **kwargs,
        )
        try:
            response = self._client.send(request, auth=self._auth, stream=True)
        except httpx.RequestError as e:
            raise self._fail(StreamTransportError(str(e) or e.__class__.__name__)) from e

        # destroy() may have run while the request was in flight
        if self._state is StreamState.CANCELLED:
            response.close()
            return self

        self._response = response
        if not response.is_success:
            body = response.read().decode("utf-8", errors="replace")
            error = StreamTransportError(
                f"Status Code: {response.status_code}", status=response.status_code
            )
            error.details = body
            raise self._fail(error)

        self._transition(StreamState.OPEN)
        return self

    def destroy(self) -> None:
        """
        Cancel the stream and close the connection.

        Safe to call more than once, and after the stream has ended.
        """
        if not self._state.is_terminal:
            self._transition(StreamState.CANCELLED)
        if self._response is not None:
            self._response.close()

    close = destroy

    def __enter__(self) -> StreamReceiver:
        return self

    def __exit__(self, *args: object) -> None:
        self.destroy()

    # === Consumption ===

    def _ensure_not_consumed(self, method: str) -> None:
        if self._consumed_by is not None:
            raise StreamConsumedError(
                attempted_method=method,
                consumed_by=self._consumed_by,
            )
        self._consumed_by = method

    def __iter__(self) -> Iterator[Any]:
        """Iterate over decoded JSON messages."""
        self._ensure_not_consumed("__iter__")
        return self._iter_internal()

    def iter_events(self) -> Iterator[StreamEvent]:
        """Iterate over StreamEvent objects (message kind + message)."""
        self._ensure_not_consumed("iter_events")
        return (StreamEvent(classify_message(m), m) for m in self._iter_internal())

    def _iter_internal(self) -> Iterator[Any]:
        """Internal message iteration over the open response."""
        self.open()
        if self._state is not StreamState.OPEN:
            return
        assert self._response is not None

        try:
            for chunk in self._response.iter_bytes():
                for message in self._parser.feed(chunk):
                    if self._state is not StreamState.OPEN:
                        return
                    yield message
                if self._state is not StreamState.OPEN:
                    return
        except (httpx.HTTPError, httpx.StreamError) as e:
            if self._state is not StreamState.OPEN:
                return
            raise self._fail(StreamTransportError(str(e) or e.__class__.__name__)) from e

        if self._state is StreamState.OPEN:
            self._parser.finish()
            self._transition(StreamState.CLOSED)
            self._response.close()

    def run(
        self,
        on_message: Callable[[Any], Any],
        on_end: Callable[[httpx.Response | None], Any] | None = None,
        on_error: Callable[[StreamTransportError], Any] | None = None,
    ) -> None:
        """
        Drive the stream, delivering every message to on_message.

        Blocks until the stream ends, fails or is destroyed (for example
        from inside on_message).

        Args:
            on_message: Called once per decoded message, in arrival order
            on_end: Called with the response when the server ends the stream
            on_error: Called with the error if the stream fails. Without it
                the error is raised.
        """
        self._ensure_not_consumed("run")
        try:
            for message in self._iter_internal():
                on_message(message)
        except StreamTransportError as e:
            if on_error is None:
                raise
            on_error(e)
            return

        if self._state is StreamState.CLOSED and on_end is not None:
            on_end(self._response)

    def __repr__(self) -> str:
        return f"StreamReceiver(url={self._url!r}, state={self._state.value!r})"
