"""
Mock transport for testing.

MockTransport records every dispatched request and lets tests drive the
listener by hand: deliver a response head, body chunks, the end of the
response, errors and drain events. A MockReply makes it answer on its own
once the request body is finished.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Union

from ..exceptions import NetError, StreamError, TransportError
from ..http_primitives import HeaderInput, PreparedRequest, ResponseHead, normalize_headers
from .base import RequestHandle, ResponseListener, Transport


@dataclass
class MockReply:
    """A canned response played back by MockTransport."""

    status_code: int = 200
    body: Union[bytes, str] = b""
    reason: str = "OK"
    headers: Optional[HeaderInput] = None
    chunks: List[bytes] = field(default_factory=list)

    def body_chunks(self) -> List[bytes]:
        if self.chunks:
            return list(self.chunks)
        body = self.body.encode("utf-8") if isinstance(self.body, str) else self.body
        return [body] if body else []


class MockRequestHandle(RequestHandle):
    """
    In-memory request handle.

    ``write`` returns False once ``capacity`` bytes are buffered and keeps
    doing so until ``drain`` is called.
    """

    def __init__(
        self,
        request: PreparedRequest,
        listener: ResponseListener,
        capacity: int,
        reply: Optional[MockReply] = None,
    ) -> None:
        self.request = request
        self.listener = listener
        self.capacity = capacity
        self.reply = reply
        self.written: List[bytes] = []
        self.ended = False
        self.aborted = False
        self.paused = False
        self.pause_count = 0
        self.resume_count = 0
        self._buffered = 0
        self._responded = False
        self._finished = False

    @property
    def written_data(self) -> bytes:
        return b"".join(self.written)

    @property
    def buffered(self) -> int:
        return self._buffered

    def write(self, data: bytes) -> bool:
        if self.ended:
            raise StreamError("Cannot write after the request was ended")
        self.written.append(data)
        self._buffered += len(data)
        return self._buffered < self.capacity

    def end(self) -> None:
        if self.ended:
            return
        self.ended = True
        if self.reply is not None:
            asyncio.get_running_loop().call_soon(self._play_reply)

    def abort(self) -> None:
        if self._finished:
            return
        self.aborted = True
        self.fail(TransportError("Request aborted"))

    def pause(self) -> None:
        self.paused = True
        self.pause_count += 1

    def resume(self) -> None:
        if self.paused:
            self.resume_count += 1
        self.paused = False

    @property
    def finished(self) -> bool:
        return self._finished

    # Simulation helpers

    def respond(
        self,
        status_code: int = 200,
        headers: Optional[HeaderInput] = None,
        reason: str = "OK",
    ) -> ResponseHead:
        """Deliver the response head."""
        head = ResponseHead(
            status_code=status_code,
            headers=normalize_headers(headers),
            reason=reason,
        )
        self._responded = True
        self.listener.on_response(head)
        return head

    def send_data(self, data: Union[bytes, str]) -> None:
        """Deliver a body chunk."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.listener.on_data(data)

    def finish(self) -> None:
        """Signal the end of the response body."""
        if self._finished:
            return
        self._finished = True
        self.listener.on_end()

    def fail(self, error: Optional[NetError] = None) -> None:
        """Fail the request, e.g. a refused connection."""
        if self._finished:
            return
        self._finished = True
        self.listener.on_error(error or TransportError("Connection refused"))

    def drain(self) -> None:
        """Simulate the transport flushing its write buffer."""
        self._buffered = 0
        self.listener.on_drain()

    def _play_reply(self) -> None:
        if self._finished or self.reply is None:
            return
        self.respond(self.reply.status_code, self.reply.headers, self.reply.reason)
        for chunk in self.reply.body_chunks():
            self.send_data(chunk)
        self.finish()


class MockTransport(Transport):
    """
    Mock transport for testing.

    Nothing is sent anywhere; the handles are kept for inspection.
    """

    DEFAULT_CAPACITY = 16 * 1024

    def __init__(
        self,
        reply: Optional[MockReply] = None,
        capacity: Optional[int] = None,
        secure: bool = False,
    ) -> None:
        self.reply = reply
        self.capacity = capacity or self.DEFAULT_CAPACITY
        self.secure = secure
        self.handles: List[MockRequestHandle] = []

    def request(self, request: PreparedRequest, listener: ResponseListener) -> MockRequestHandle:
        handle = MockRequestHandle(request, listener, self.capacity, self.reply)
        self.handles.append(handle)
        return handle

    @property
    def requests(self) -> List[PreparedRequest]:
        """All requests dispatched so far."""
        return [handle.request for handle in self.handles]

    @property
    def last_handle(self) -> Optional[MockRequestHandle]:
        return self.handles[-1] if self.handles else None

    def reset(self) -> None:
        self.handles.clear()
