"""
TransportStream: one outbound request as a duplex byte stream.

The request is dispatched as soon as the stream is constructed. Response
body bytes flow into the readable side, caller writes flow into the
request body, and the response head becomes available through a deferred
value that resolves at most once.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from .config import NetConfig
from .exceptions import NetError, StreamError, TransportError, UsageError
from .http_primitives import (
    PENDING,
    Headers,
    PreparedRequest,
    RequestOptions,
    ResponseHead,
    ResponsePending,
    ResponseState,
)
from .options import build_request
from .streams import ReadWriteStream
from .transport import (
    RequestHandle,
    ResponseListener,
    Transport,
    TransportSet,
    default_transports,
)

logger = logging.getLogger(__name__)


class StreamState(Enum):
    """States of a TransportStream."""
    CREATED = "created"                      # Constructed, request not yet dispatched
    AWAITING_RESPONSE = "awaiting_response"  # Request dispatched, no headers yet
    STREAMING = "streaming"                  # Headers received, body flowing
    CLOSED = "closed"                        # Response complete
    ERRORED = "errored"                      # Transport failure or abort


_TERMINAL_STATES = {StreamState.CLOSED, StreamState.ERRORED}


class TransportStream(ReadWriteStream, ResponseListener):
    """
    Duplex stream wrapping one in-flight request/response pair.

    Must be created from a coroutine running on the event loop; the
    transport schedules its I/O there.
    """

    def __init__(
        self,
        uri: str,
        options: Union[RequestOptions, Mapping[str, Any], None] = None,
        *,
        transports: Optional[TransportSet] = None,
        config: Optional[NetConfig] = None,
    ) -> None:
        """
        Initialize TransportStream and dispatch the request.

        Args:
            uri: Target URI; ``https`` selects the secure transport
            options: Request options (method, headers, body, query, timeout, ...)
            transports: Plain/secure transports to choose from
            config: Configuration supplying defaults

        Raises:
            UsageError: If network requests are disabled in the configuration
        """
        config = config or NetConfig()
        if config.no_net_requests:
            raise UsageError("Net requests are disabled.")
        super().__init__(high_water_mark=config.high_water_mark, encoding=config.encoding)
        self._loop = asyncio.get_running_loop()
        self._config = config
        self._state = StreamState.CREATED

        self.options = RequestOptions.coerce(options)
        self.status_code: Optional[int] = None
        self.reason: Optional[str] = None
        self.headers: Optional[Headers] = None

        self._response_state: ResponseState = PENDING
        self._response: asyncio.Future = self._loop.create_future()
        self._failed: asyncio.Future = self._loop.create_future()
        self._drain_waiters: List[asyncio.Future] = []
        self._timer: Optional[asyncio.TimerHandle] = None

        self.request: PreparedRequest = build_request(uri, self.options, config)
        self.uri = self.request.uri
        self._has_body = self.request.body is not None

        transports = transports or default_transports()
        self._transport: Transport = transports.select(self.request.scheme)
        self._handle: RequestHandle = self._transport.request(self.request, self)
        self._state = StreamState.AWAITING_RESPONSE

        if self._has_body:
            self._handle.write(self.request.body)
            self._handle.end()

        timeout = self.options.timeout
        if timeout is None:
            timeout = config.default_timeout
        if timeout:
            self._timer = self._loop.call_later(timeout, self._on_timeout, timeout)

    # Response metadata

    @property
    def response(self) -> asyncio.Future:
        """
        Deferred response head.

        Never resolves if the request fails before the headers arrive;
        use ``wait_response`` to also observe that failure.
        """
        return self._response

    @property
    def response_state(self) -> ResponseState:
        """PENDING until the headers arrive, then the ResponseHead."""
        return self._response_state

    async def wait_response(self) -> ResponseHead:
        """
        Wait for the response head.

        Raises:
            TransportError: If the request fails before the headers arrive
        """
        if not self._response.done():
            await asyncio.wait(
                {self._response, self._failed},
                return_when=asyncio.FIRST_COMPLETED,
            )
        if self._response.done():
            return self._response.result()
        raise self.error

    def get_header(self, name: Union[str, bytes]) -> Optional[bytes]:
        """Get a response header value by name (case-insensitive)."""
        if isinstance(self._response_state, ResponsePending):
            return None
        return self._response_state.get_header(name)

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in _TERMINAL_STATES

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def handle(self) -> RequestHandle:
        return self._handle

    # ResponseListener

    def on_response(self, head: ResponseHead) -> None:
        if self.is_terminal or not isinstance(self._response_state, ResponsePending):
            return
        self._state = StreamState.STREAMING
        self._response_state = head
        self.status_code = head.status_code
        self.reason = head.reason
        self.headers = head.headers
        self._response.set_result(head)

    def on_data(self, data: bytes) -> None:
        if self.is_terminal:
            return
        if isinstance(self._response_state, ResponsePending):
            self.on_error(TransportError("Response data arrived before headers"))
            return
        self.push(data)

    def on_end(self) -> None:
        if self.is_terminal:
            return
        if isinstance(self._response_state, ResponsePending):
            self.on_error(TransportError("Response ended before headers"))
            return
        self._cancel_timer()
        self._state = StreamState.CLOSED
        logger.debug(f"{self.request.method} {self.uri} closed")
        self.push(None)

    def on_error(self, error: NetError) -> None:
        if self.is_terminal:
            return
        self._cancel_timer()
        self._state = StreamState.ERRORED
        self.push_error(error)

        waiters, self._drain_waiters = self._drain_waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_exception(error)
        if not self._failed.done():
            self._failed.set_result(None)

    def on_drain(self) -> None:
        waiters, self._drain_waiters = self._drain_waiters, []
        if waiters:
            logger.debug(f"Drain on {self.uri}, releasing {len(waiters)} writer(s)")
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    # ReadWriteStream hooks

    async def write(self, data: Union[bytes, str]) -> None:
        if self._has_body:
            raise UsageError(
                "`options.body` is what you would have written to a TransportStream "
                "- you must choose one or the other"
            )
        await super().write(data)

    def _write(self, data: bytes) -> Optional[asyncio.Future]:
        if self.is_terminal:
            raise StreamError(f"Cannot write to a finished stream ({self._state.value})")
        if self._handle.write(data):
            return None
        waiter = self._loop.create_future()
        self._drain_waiters.append(waiter)
        return waiter

    def _write_end(self) -> None:
        if self._has_body or self.is_terminal:
            return
        self._handle.end()

    def _read(self) -> None:
        self._handle.resume()

    def _pause(self) -> None:
        self._handle.pause()

    # Timeout

    def _on_timeout(self, timeout: float) -> None:
        self._timer = None
        if self.is_terminal:
            return
        logger.warning(f"{self.request.method} {self.uri} timed out after {timeout}s, aborting")
        self._handle.abort()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def __repr__(self) -> str:
        return (
            f"<TransportStream {self.request.method} {self.uri} "
            f"state={self._state.value} status={self.status_code}>"
        )
