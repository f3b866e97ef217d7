"""
HTTP/1.1 transport implementation for netreq.

Each request gets its own connection and its own asyncio task. The task
connects through a NetworkBackend, frames the request with h11, flushes
body bytes queued by the stream and reports response events to the
ResponseListener.
"""

import asyncio
import logging
import ssl
import time
from collections import deque
from enum import Enum
from typing import Deque, Optional

import h11

from ..exceptions import NetError, StreamError, TransportError
from ..http_primitives import Headers, PreparedRequest, ResponseHead, has_header
from ..network import (
    AsyncioNetworkBackend,
    NetworkBackend,
    NetworkStream,
    create_ssl_context,
    format_host_header,
)
from .base import RequestHandle, ResponseListener, Transport

logger = logging.getLogger(__name__)

# Methods that are sent without body framing when the caller gives none
_BODYLESS_METHODS = {"GET", "HEAD", "OPTIONS", "DELETE", "TRACE"}

# Request extras that build a TLS context when none is given
_TLS_OPTION_KEYS = ("verify", "cert_file", "key_file")


class RequestPhase(Enum):
    """Phases of an HTTP/1.1 request handle."""
    CONNECTING = "connecting"   # Opening the connection
    SENDING = "sending"         # Sending request head and body
    RECEIVING = "receiving"     # Waiting for or reading the response
    DONE = "done"               # Response complete
    FAILED = "failed"           # Error or abort


class HTTP11RequestHandle(RequestHandle):
    """
    One HTTP/1.1 request over a dedicated connection.

    Writes are queued and flushed by the request task; once the queue holds
    ``high_water_mark`` bytes ``write`` returns False and ``on_drain`` fires
    when the queue is empty again.
    """

    DEFAULT_HIGH_WATER_MARK = 16 * 1024
    DEFAULT_READ_SIZE = 65536  # 64KB chunks

    def __init__(
        self,
        request: PreparedRequest,
        listener: ResponseListener,
        backend: NetworkBackend,
        secure: bool,
        high_water_mark: Optional[int] = None,
        read_size: Optional[int] = None,
    ) -> None:
        self._request = request
        self._listener = listener
        self._backend = backend
        self._secure = secure
        self._high_water_mark = high_water_mark or self.DEFAULT_HIGH_WATER_MARK
        self._read_size = read_size or self.DEFAULT_READ_SIZE

        self._h11_connection = h11.Connection(h11.CLIENT)
        self._stream: Optional[NetworkStream] = None
        self._phase = RequestPhase.CONNECTING

        self._outgoing: Deque[bytes] = deque()
        self._queued_bytes = 0
        self._need_drain = False
        self._ended = False
        self._wakeup = asyncio.Event()
        self._reading = asyncio.Event()
        self._reading.set()
        self._finished = False

        # Metrics
        self._bytes_sent = 0
        self._bytes_received = 0
        self._start_time = time.time()

        self._task = asyncio.get_running_loop().create_task(self._run())

    # RequestHandle interface

    def write(self, data: bytes) -> bool:
        if self._ended:
            raise StreamError("Cannot write after the request was ended")
        if self._finished:
            raise StreamError("Cannot write to a finished request")
        if data:
            self._outgoing.append(data)
            self._queued_bytes += len(data)
            self._wakeup.set()
        if self._queued_bytes >= self._high_water_mark:
            self._need_drain = True
            return False
        return True

    def end(self) -> None:
        self._ended = True
        self._wakeup.set()

    def abort(self) -> None:
        if self._finished:
            return
        logger.debug(f"Aborting {self._request.method} {self._request.uri}")
        self._task.cancel()
        self._fail(TransportError("Request aborted"))

    def pause(self) -> None:
        self._reading.clear()

    def resume(self) -> None:
        self._reading.set()

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def phase(self) -> RequestPhase:
        return self._phase

    # Request task

    async def _run(self) -> None:
        request = self._request
        try:
            self._stream = await self._connect()
            self._phase = RequestPhase.SENDING
            await self._send_head()
            await self._send_body()
            self._phase = RequestPhase.RECEIVING
            await self._receive_response()
            self._phase = RequestPhase.DONE
            duration = time.time() - self._start_time
            logger.debug(
                f"{request.method} {request.uri} completed "
                f"(sent={self._bytes_sent}, received={self._bytes_received}, {duration:.3f}s)"
            )
        except NetError as e:
            self._fail(e)
        except Exception as e:
            # Socket and h11 errors, or the idna codec rejecting a hostname
            self._fail(TransportError(str(e) or type(e).__name__, cause=e))
        finally:
            if self._stream is not None:
                await self._stream.aclose()

    async def _connect(self) -> NetworkStream:
        request = self._request
        if self._secure:
            return await self._backend.connect_tls(
                request.host,
                request.port,
                ssl_context=self._ssl_context(),
                server_hostname=request.extra.get("server_hostname"),
            )
        return await self._backend.connect_tcp(request.host, request.port)

    def _ssl_context(self) -> Optional[ssl.SSLContext]:
        extra = self._request.extra
        context = extra.get("ssl_context")
        if context is None and any(key in extra for key in _TLS_OPTION_KEYS):
            context = create_ssl_context(
                alpn_protocols=["http/1.1"],
                verify=extra.get("verify", True),
                cert_file=extra.get("cert_file"),
                key_file=extra.get("key_file"),
            )
        return context

    def _build_headers(self) -> Headers:
        request = self._request
        headers = list(request.headers)
        if not has_header(headers, "Host"):
            host = format_host_header(request.host, request.port, request.scheme)
            headers.insert(0, (b"Host", host.encode("idna")))
        streamed = request.body is None and request.method not in _BODYLESS_METHODS
        if (
            streamed
            and not has_header(headers, "Content-Length")
            and not has_header(headers, "Transfer-Encoding")
        ):
            headers.append((b"Transfer-Encoding", b"chunked"))
        return headers

    async def _send_head(self) -> None:
        h11_request = h11.Request(
            method=self._request.method,
            target=self._request.target,
            headers=self._build_headers(),
        )
        await self._send_event(h11_request)

    async def _send_body(self) -> None:
        while True:
            while self._outgoing:
                chunk = self._outgoing.popleft()
                await self._send_event(h11.Data(data=chunk))
                self._queued_bytes -= len(chunk)
            if self._need_drain:
                self._need_drain = False
                self._listener.on_drain()
            if self._ended and not self._outgoing:
                break
            if not self._outgoing:
                self._wakeup.clear()
                await self._wakeup.wait()

        await self._send_event(h11.EndOfMessage())

    async def _send_event(self, event: h11.Event) -> None:
        data = self._h11_connection.send(event)
        if data:
            await self._stream.write(data)
            self._bytes_sent += len(data)

    async def _receive_response(self) -> None:
        while True:
            event = self._h11_connection.next_event()

            if event is h11.NEED_DATA:
                await self._reading.wait()
                data = await self._stream.read(self._read_size)
                self._bytes_received += len(data)
                # b"" tells h11 the peer closed the connection
                self._h11_connection.receive_data(data)
                continue

            if isinstance(event, h11.InformationalResponse):
                continue

            if isinstance(event, h11.Response):
                head = ResponseHead(
                    status_code=event.status_code,
                    headers=list(event.headers),
                    reason=event.reason.decode("latin-1"),
                    http_version=event.http_version.decode("ascii"),
                )
                logger.debug(
                    f"{self._request.method} {self._request.uri} -> "
                    f"{head.status_code} {head.reason}"
                )
                self._listener.on_response(head)
                continue

            if isinstance(event, h11.Data):
                await self._reading.wait()
                self._listener.on_data(bytes(event.data))
                continue

            if isinstance(event, h11.EndOfMessage):
                self._finished = True
                self._listener.on_end()
                return

            if isinstance(event, h11.ConnectionClosed):
                raise TransportError("Connection closed by server")

    def _fail(self, error: NetError) -> None:
        if self._finished:
            return
        self._finished = True
        self._phase = RequestPhase.FAILED
        logger.error(f"{self._request.method} {self._request.uri} failed: {error}")
        self._listener.on_error(error)


class HTTP11Transport(Transport):
    """
    HTTP/1.1 transport over a NetworkBackend.

    Two instances, one with ``secure=True``, make up the default
    TransportSet.
    """

    def __init__(
        self,
        backend: Optional[NetworkBackend] = None,
        secure: bool = False,
        high_water_mark: Optional[int] = None,
        read_size: Optional[int] = None,
    ) -> None:
        """
        Initialize HTTP/1.1 transport.

        Args:
            backend: Backend used to open connections (asyncio sockets if None)
            secure: Whether connections use TLS
            high_water_mark: Queued write bytes at which writers must wait
            read_size: Maximum bytes per socket read
        """
        self._backend = backend or AsyncioNetworkBackend()
        self._secure = secure
        self._high_water_mark = high_water_mark
        self._read_size = read_size

    def request(self, request: PreparedRequest, listener: ResponseListener) -> HTTP11RequestHandle:
        logger.debug(
            f"Dispatching {request.method} {request.uri} "
            f"({'TLS' if self._secure else 'TCP'})"
        )
        return HTTP11RequestHandle(
            request,
            listener,
            self._backend,
            self._secure,
            high_water_mark=self._high_water_mark,
            read_size=self._read_size,
        )

    @property
    def secure(self) -> bool:
        return self._secure
