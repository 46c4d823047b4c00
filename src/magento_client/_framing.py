"""
Message framing for streaming responses.

A framing strategy knows where one message ends and the next begins in the
raw byte stream. The stream parser only calls try_extract_one(), so the
byte-level convention can be swapped without touching the receiver.
"""

from __future__ import annotations

from typing import Protocol

DEFAULT_DELIMITER = b"\r\n"


class Framing(Protocol):
    """Byte-level framing strategy."""

    def try_extract_one(self, buffer: bytearray) -> bytes | None:
        """
        Remove one complete frame from the front of the buffer.

        Args:
            buffer: The accumulated stream bytes (modified in place)

        Returns:
            The frame payload, or None if the buffer does not hold a complete
            frame. When None is returned the buffer still holds every byte of
            the incomplete frame.
        """
        ...


class DelimitedFraming:
    """
    Frames terminated by a fixed delimiter.

    The streaming API ends every message with CRLF and sends bare CRLF
    keep-alives, which come out as empty frames.
    """

    def __init__(self, delimiter: bytes = DEFAULT_DELIMITER) -> None:
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self.delimiter = delimiter

    def try_extract_one(self, buffer: bytearray) -> bytes | None:
        index = buffer.find(self.delimiter)
        if index < 0:
            return None
        frame = bytes(buffer[:index])
        del buffer[: index + len(self.delimiter)]
        return frame

    def __repr__(self) -> str:
        return f"DelimitedFraming(delimiter={self.delimiter!r})"


class LengthPrefixedFraming:
    """
    Frames preceded by their byte length.

    Each message is announced by a line holding its length in decimal,
    followed by exactly that many bytes (``delimited=length`` streams).
    Blank lines before a length line are keep-alives and are discarded.
    """

    def __init__(self, line_end: bytes = DEFAULT_DELIMITER) -> None:
        self.line_end = line_end

    def try_extract_one(self, buffer: bytearray) -> bytes | None:
        while True:
            index = buffer.find(self.line_end)
            if index < 0:
                return None
            header = bytes(buffer[:index]).strip()
            if header:
                break
            # Keep-alive
            del buffer[: index + len(self.line_end)]

        start = index + len(self.line_end)
        if not header.isdigit():
            # Not a length line; hand it on as a frame of its own
            del buffer[:start]
            return header

        length = int(header)
        if len(buffer) < start + length:
            return None

        frame = bytes(buffer[start : start + length])
        del buffer[: start + length]
        return frame

    def __repr__(self) -> str:
        return "LengthPrefixedFraming()"
