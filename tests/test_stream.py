"""
Tests for StreamReceiver and MagentoClient.stream().

Streamed bodies are served chunk by chunk from MockTransport handlers.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import httpx
import pytest
from conftest import RecordingHandler, chunks

from magento_client import (
    ClientConfig,
    LengthPrefixedFraming,
    StreamConsumedError,
    StreamEvent,
    StreamReceiver,
    StreamState,
    StreamTransportError,
)


def streaming(*parts: bytes, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=chunks(*parts))


class TestStreamOpening:
    """Tests for opening streams."""

    def test_public_stream_uses_stream_base(self, make_client: Any) -> None:
        handler = RecordingHandler(streaming(b""))
        client = make_client(handler)

        with client.stream("statuses/filter", {"track": "python"}) as receiver:
            assert receiver.state is StreamState.OPEN

        request = handler.last
        assert request.method == "GET"
        assert str(request.url) == (
            "https://stream.magento.com/1.1/statuses/filter.json?track=python"
        )
        assert request.headers["Authorization"] == "Bearer app-token"

    @pytest.mark.parametrize(
        ("method", "url"),
        [
            ("user", "https://userstream.magento.com/1.1/user.json"),
            ("site", "https://sitestream.magento.com/1.1/site.json"),
        ],
    )
    def test_user_and_site_streams_use_their_bases(
        self, make_client: Any, method: str, url: str
    ) -> None:
        handler = RecordingHandler(streaming(b""))
        client = make_client(handler)

        with client.stream(method):
            pass

        assert str(handler.last.url) == url

    def test_stream_reads_do_not_time_out(self, make_client: Any) -> None:
        handler = RecordingHandler(streaming(b""))
        client = make_client(handler)

        with client.stream("statuses/sample"):
            pass

        timeout = handler.last.extensions["timeout"]
        assert timeout["read"] is None
        assert timeout["connect"] == 30.0

    def test_stream_timeout_is_configurable(self, make_client: Any) -> None:
        handler = RecordingHandler(streaming(b""))
        config = ClientConfig(bearer_token="t", stream_timeout=httpx.Timeout(5.0, read=90.0))
        client = make_client(handler, config)

        with client.stream("statuses/sample"):
            pass

        assert handler.last.extensions["timeout"] == {
            "connect": 5.0,
            "read": 90.0,
            "write": 5.0,
            "pool": 5.0,
        }

    def test_non_2xx_status_fails_the_stream(self, make_client: Any) -> None:
        client = make_client(RecordingHandler(streaming(b"Unauthorized", status_code=401)))

        with pytest.raises(StreamTransportError) as exc_info:
            client.stream("statuses/sample")

        assert exc_info.value.status == 401
        assert exc_info.value.details == "Unauthorized"

    def test_connect_error_fails_the_stream(self, make_client: Any) -> None:
        error = httpx.ConnectError("refused")
        client = make_client(RecordingHandler(error))

        with pytest.raises(StreamTransportError) as exc_info:
            client.stream("statuses/sample")

        assert exc_info.value.__cause__ is error


class TestStreamMessages:
    """Tests for message delivery."""

    def test_yields_messages_in_order(self, make_client: Any) -> None:
        client = make_client(
            RecordingHandler(streaming(b'{"id": 1}\r\n{"id": 2}\r\n', b'{"id": 3}\r\n'))
        )

        with client.stream("statuses/sample") as receiver:
            assert list(receiver) == [{"id": 1}, {"id": 2}, {"id": 3}]
            assert receiver.state is StreamState.CLOSED

    def test_message_split_across_chunks(self, make_client: Any) -> None:
        client = make_client(
            RecordingHandler(streaming(b'{"id": 1, "text": "hel', b'lo"}\r\n'))
        )

        with client.stream("statuses/sample") as receiver:
            assert list(receiver) == [{"id": 1, "text": "hello"}]

    def test_keep_alives_and_malformed_messages_are_skipped(self, make_client: Any) -> None:
        client = make_client(
            RecordingHandler(streaming(b"\r\n", b'{"id": 1}\r\n{broken\r\n', b'{"id": 2}\r\n'))
        )

        with client.stream("statuses/sample") as receiver:
            assert list(receiver) == [{"id": 1}, {"id": 2}]
            assert receiver.dropped == 1

    def test_incomplete_tail_is_discarded_at_end(self, make_client: Any) -> None:
        client = make_client(RecordingHandler(streaming(b'{"id": 1}\r\n{"id"')))

        with client.stream("statuses/sample") as receiver:
            assert list(receiver) == [{"id": 1}]

    def test_iter_events(self, make_client: Any) -> None:
        client = make_client(
            RecordingHandler(streaming(b'{"friends": [1]}\r\n{"id": 5, "text": "x"}\r\n'))
        )

        with client.stream("user") as receiver:
            assert list(receiver.iter_events()) == [
                StreamEvent("friends", {"friends": [1]}),
                StreamEvent("data", {"id": 5, "text": "x"}),
            ]

    def test_length_prefixed_framing(self, make_client: Any) -> None:
        client = make_client(
            RecordingHandler(streaming(b'11\r\n{"id": 1}\r\n', b"\r\n", b'11\r\n{"id": 2}\r\n'))
        )

        with client.stream(
            "statuses/sample", {"delimited": "length"}, framing=LengthPrefixedFraming()
        ) as receiver:
            assert list(receiver) == [{"id": 1}, {"id": 2}]

    def test_receiver_is_one_shot(self, make_client: Any) -> None:
        client = make_client(RecordingHandler(streaming(b'{"id": 1}\r\n')))

        with client.stream("statuses/sample") as receiver:
            list(receiver)
            with pytest.raises(StreamConsumedError):
                list(receiver.iter_events())


class TestStreamErrors:
    """Tests for transport errors on an open stream."""

    def test_error_mid_stream(self, make_client: Any) -> None:
        def body() -> Iterator[bytes]:
            yield b'{"id": 1}\r\n'
            raise httpx.ReadError("connection reset")

        client = make_client(RecordingHandler(httpx.Response(200, content=body())))
        received: list[Any] = []

        with client.stream("statuses/sample") as receiver:
            with pytest.raises(StreamTransportError, match="connection reset"):
                for message in receiver:
                    received.append(message)

            assert received == [{"id": 1}]
            assert receiver.state is StreamState.ERRORED
            assert isinstance(receiver.error, StreamTransportError)


class TestStreamCancellation:
    """Tests for destroy()."""

    def test_destroy_stops_delivery_of_buffered_messages(self, make_client: Any) -> None:
        client = make_client(
            RecordingHandler(streaming(b'{"id": 1}\r\n{"id": 2}\r\n{"id": 3}\r\n', b'{"id": 4}\r\n'))
        )
        receiver = client.stream("statuses/sample")
        received: list[Any] = []

        for message in receiver:
            received.append(message)
            receiver.destroy()

        assert received == [{"id": 1}]
        assert receiver.state is StreamState.CANCELLED
        assert receiver.response is not None
        assert receiver.response.is_closed

    def test_destroy_is_idempotent(self, make_client: Any) -> None:
        client = make_client(RecordingHandler(streaming(b'{"id": 1}\r\n')))
        receiver = client.stream("statuses/sample")

        receiver.destroy()
        receiver.destroy()

        assert receiver.state is StreamState.CANCELLED
        assert list(receiver) == []

    def test_destroy_before_open_skips_the_request(self) -> None:
        handler = RecordingHandler(streaming(b'{"id": 1}\r\n'))
        with httpx.Client(transport=httpx.MockTransport(handler)) as http_client:
            receiver = StreamReceiver("https://stream.example.com/x.json", client=http_client)
            assert receiver.state is StreamState.CONNECTING

            receiver.destroy()
            receiver.open()

        assert receiver.state is StreamState.CANCELLED
        assert handler.requests == []

    def test_destroy_after_end_keeps_closed_state(self, make_client: Any) -> None:
        client = make_client(RecordingHandler(streaming(b'{"id": 1}\r\n')))
        receiver = client.stream("statuses/sample")
        list(receiver)

        receiver.destroy()

        assert receiver.state is StreamState.CLOSED


class TestStreamRun:
    """Tests for the callback-driven run() API."""

    def test_run_delivers_messages_then_end(self, make_client: Any) -> None:
        client = make_client(RecordingHandler(streaming(b'{"id": 1}\r\n', b'{"id": 2}\r\n')))
        calls: list[tuple[str, Any]] = []

        with client.stream("statuses/sample") as receiver:
            receiver.run(
                lambda m: calls.append(("message", m)),
                on_end=lambda r: calls.append(("end", r.status_code)),
                on_error=lambda e: calls.append(("error", e)),
            )

        assert calls == [("message", {"id": 1}), ("message", {"id": 2}), ("end", 200)]

    def test_run_reports_errors(self, make_client: Any) -> None:
        def body() -> Iterator[bytes]:
            yield b'{"id": 1}\r\n'
            raise httpx.ReadTimeout("timed out")

        client = make_client(RecordingHandler(httpx.Response(200, content=body())))
        errors: list[StreamTransportError] = []
        ends: list[Any] = []

        with client.stream("statuses/sample") as receiver:
            receiver.run(lambda m: None, on_end=ends.append, on_error=errors.append)

        assert len(errors) == 1
        assert isinstance(errors[0].__cause__, httpx.ReadTimeout)
        assert ends == []

    def test_destroy_inside_run_suppresses_end(self, make_client: Any) -> None:
        client = make_client(RecordingHandler(streaming(b'{"id": 1}\r\n{"id": 2}\r\n')))
        receiver = client.stream("statuses/sample")
        messages: list[Any] = []
        ends: list[Any] = []

        def on_message(message: Any) -> None:
            messages.append(message)
            receiver.destroy()

        receiver.run(on_message, on_end=ends.append, on_error=ends.append)

        assert messages == [{"id": 1}]
        assert ends == []
