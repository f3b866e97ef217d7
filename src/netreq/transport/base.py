"""
Transport interface for netreq.

A Transport sends one PreparedRequest and reports the response through
a ResponseListener. The RequestHandle it returns is the only way to
write a streamed body, apply backpressure or abort the request.
"""

from abc import ABC, abstractmethod
from typing import NamedTuple

from ..exceptions import NetError
from ..http_primitives import PreparedRequest, ResponseHead


class ResponseListener(ABC):
    """
    Receiver of transport events for one request.

    ``on_response`` is called at most once and before any ``on_data``.
    After ``on_end`` or ``on_error`` no further calls are made.
    """

    @abstractmethod
    def on_response(self, head: ResponseHead) -> None:
        """The status line and headers arrived."""
        pass

    @abstractmethod
    def on_data(self, data: bytes) -> None:
        """A chunk of the response body arrived."""
        pass

    @abstractmethod
    def on_end(self) -> None:
        """The response body is complete."""
        pass

    @abstractmethod
    def on_error(self, error: NetError) -> None:
        """The request failed."""
        pass

    @abstractmethod
    def on_drain(self) -> None:
        """Bytes queued by ``RequestHandle.write`` were all flushed."""
        pass


class RequestHandle(ABC):
    """
    One in-flight request owned by exactly one stream.
    """

    @abstractmethod
    def write(self, data: bytes) -> bool:
        """
        Queue body bytes for sending.

        Returns:
            False if the write buffer is now full; ``on_drain`` will be
            called once it has been flushed.
        """
        pass

    @abstractmethod
    def end(self) -> None:
        """Finish the request body."""
        pass

    @abstractmethod
    def abort(self) -> None:
        """
        Abort the request.

        The listener receives a TransportError unless the request had
        already finished.
        """
        pass

    @abstractmethod
    def pause(self) -> None:
        """Stop delivering response data until ``resume``."""
        pass

    @abstractmethod
    def resume(self) -> None:
        """Resume delivering response data."""
        pass

    @property
    @abstractmethod
    def finished(self) -> bool:
        """True once the listener received ``on_end`` or ``on_error``."""
        pass


class Transport(ABC):
    """
    Interface for transport implementations.
    """

    @abstractmethod
    def request(self, request: PreparedRequest, listener: ResponseListener) -> RequestHandle:
        """
        Dispatch a request without blocking.

        Args:
            request: The normalized request to send
            listener: Receiver for response events

        Returns:
            Handle for the in-flight request
        """
        pass


class TransportSet(NamedTuple):
    """The plain and secure transports a stream chooses between."""

    plain: Transport
    secure: Transport

    def select(self, scheme: str) -> Transport:
        """Return the secure transport for ``https``, the plain one otherwise."""
        if scheme.lower().rstrip(":") == "https":
            return self.secure
        return self.plain
