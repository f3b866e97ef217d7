"""
Custom exceptions for netreq.

This module defines the exception hierarchy used throughout
the library. Every error raised by netreq derives from NetError.
"""

from typing import Optional


class NetError(Exception):
    """Base exception for all netreq errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class UsageError(NetError):
    """Raised when the API is misused by the caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class TransportError(NetError):
    """Raised when the underlying connection fails or is aborted."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Transport error: {message}", cause)


class StreamError(NetError):
    """Raised when there's an error with stream operations."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Stream error: {message}", cause)


class HttpError(NetError):
    """
    Raised when a response arrives with a status other than 200.

    Carries the status code and the complete response body so callers
    can inspect what the server said.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self._status_code = status_code
        self._body = body

    @property
    def status_code(self) -> Optional[int]:
        """Status code of the response, None for pure transport failures."""
        return self._status_code

    @property
    def body(self) -> str:
        """Full response body text."""
        return self._body

    def __repr__(self) -> str:
        return (
            f"HttpError(message={self.message!r}, "
            f"status_code={self._status_code!r}, body={self._body!r})"
        )
