"""
Incremental parsing of streaming responses.

The parser owns the stream buffer: chunks are appended as they arrive and
every complete frame is decoded as JSON and returned in arrival order.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from magento_client._framing import DelimitedFraming, Framing
from magento_client._types import StreamEvent

logger = logging.getLogger(__name__)

# Top-level keys that identify non-status messages, checked in order
MESSAGE_KINDS = (
    "delete",
    "scrub_geo",
    "limit",
    "status_withheld",
    "user_withheld",
    "disconnect",
    "warning",
    "event",
    "friends",
    "friends_str",
    "direct_message",
    "control",
    "for_user",
)

DEFAULT_KIND = "data"


def classify_message(message: Any) -> str:
    """
    Detect the kind of a decoded stream message.

    Args:
        message: A decoded JSON message

    Returns:
        The first matching key from MESSAGE_KINDS, or "data"
    """
    if isinstance(message, dict):
        for kind in MESSAGE_KINDS:
            if kind in message:
                return "friends" if kind == "friends_str" else kind
    return DEFAULT_KIND


class StreamParser:
    """
    Incremental stream parser.

    Maintains the buffer for one stream. After every feed() the buffer holds
    at most one incomplete frame.

    Frames that are empty (keep-alives) are skipped. Frames that are not
    valid JSON are logged and dropped; they never stop the stream.
    """

    def __init__(self, framing: Framing | None = None) -> None:
        self._framing = framing or DelimitedFraming()
        self._buffer = bytearray()
        self.dropped = 0

    @property
    def framing(self) -> Framing:
        return self._framing

    @property
    def buffered(self) -> int:
        """Number of bytes waiting for the rest of their frame."""
        return len(self._buffer)

    def feed(self, chunk: bytes) -> list[Any]:
        """
        Feed a chunk of data and return any complete messages.

        Args:
            chunk: Raw bytes received from the connection

        Returns:
            Decoded messages, in arrival order
        """
        self._buffer += chunk
        messages: list[Any] = []

        while True:
            frame = self._framing.try_extract_one(self._buffer)
            if frame is None:
                break
            if not frame.strip():
                continue
            try:
                messages.append(json.loads(frame))
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                self.dropped += 1
                preview = frame[:100] + b"..." if len(frame) > 100 else frame
                logger.warning("Dropping malformed stream message: %s. Data: %r", e, preview)

        return messages

    def feed_events(self, chunk: bytes) -> list[StreamEvent]:
        """Like feed(), but pair every message with its kind."""
        return [StreamEvent(classify_message(m), m) for m in self.feed(chunk)]

    def finish(self) -> None:
        """
        Finish parsing when the stream ends.

        An incomplete trailing frame can never be completed, so it is
        discarded.
        """
        if self._buffer.strip():
            logger.debug("Discarding %d bytes of incomplete stream message", len(self._buffer))
        self._buffer.clear()
