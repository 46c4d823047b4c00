"""
Exception hierarchy for the Magento client.

This module defines all exceptions that can be raised by the library.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx


class MagentoError(Exception):
    """
    Base exception for all Magento client errors.

    Attributes:
        message: Human-readable error message
        status: HTTP status code (if applicable)
        details: Additional error details
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"status={self.status!r})"
        )


class TransportError(MagentoError):
    """
    Exception for network/transport/timeout errors.

    Raised when the request never produced a response: connection failures,
    DNS failures, timeouts. The original httpx exception is the __cause__.

    Attributes:
        url: The URL that was being requested (if known)
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} at {self.url}"
        return self.message


class StatusCodeError(MagentoError):
    """
    Exception for responses that are not a usable success.

    Reported both when the body is not valid JSON and when the status code
    is anything other than 200. The message is always "Status Code: <n>".
    """

    def __init__(self, status: int, details: Any = None) -> None:
        super().__init__(f"Status Code: {status}", status=status, details=details)


class APIError(MagentoError):
    """
    Exception for API-level errors reported in the response body.

    Raised when the decoded body carries a top-level ``errors`` field,
    regardless of the HTTP status.

    Attributes:
        errors: The ``errors`` value, verbatim
    """

    def __init__(self, errors: Any, status: int | None = None) -> None:
        super().__init__(_describe_errors(errors), status=status, details=errors)
        self.errors = errors


class StreamTransportError(MagentoError):
    """
    Exception raised when an open stream fails.

    Covers transport errors on the underlying connection and non-2xx
    responses to the initial stream request. The stream is terminated.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message, status=status)


class StreamConsumedError(MagentoError):
    """
    Exception raised when attempting to consume a stream receiver twice.

    A receiver is one-shot: it can be consumed in exactly one mode.
    """

    def __init__(self, attempted_method: str, consumed_by: str) -> None:
        super().__init__(
            f"Cannot call {attempted_method}() - stream was already consumed "
            f"via {consumed_by}()"
        )
        self.attempted_method = attempted_method
        self.consumed_by = consumed_by


def _describe_errors(errors: Any) -> str:
    """Build a readable message from an ``errors`` value."""
    if isinstance(errors, list):
        messages = [
            str(item.get("message", item)) if isinstance(item, dict) else str(item)
            for item in errors
        ]
        if messages:
            return "; ".join(messages)
    elif isinstance(errors, dict) and "message" in errors:
        return str(errors["message"])
    elif isinstance(errors, str) and errors:
        return errors
    return "API error"


def as_exception(error: Any, response: httpx.Response | None = None) -> BaseException:
    """
    Convert the error slot of an ApiResult into an exception.

    Args:
        error: The error value (httpx exception, MagentoError, or errors value)
        response: The response the error belongs to (if any)

    Returns:
        An exception instance ready to raise
    """
    import httpx

    if isinstance(error, MagentoError):
        return error
    if isinstance(error, httpx.RequestError):
        url = None
        try:
            url = str(error.request.url)
        except RuntimeError:
            # The error was raised without a request attached
            pass
        wrapped = TransportError(str(error) or error.__class__.__name__, url=url)
        wrapped.__cause__ = error
        return wrapped
    if isinstance(error, BaseException):
        return error
    status = response.status_code if response is not None else None
    return APIError(error, status=status)
