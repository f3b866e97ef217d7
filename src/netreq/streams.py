"""
Streaming framework for netreq.

This module provides the duplex byte stream base that transport streams
extend. The readable side buffers pushed chunks and pauses its source at a
high-water mark, so consumption drives reading from the network. The
writable side hands data to the subclass, which may ask writers to wait.
"""

import asyncio
import logging
from abc import ABC
from collections import deque
from typing import Awaitable, Deque, List, Optional, Union

from .exceptions import StreamError

logger = logging.getLogger(__name__)


class ReadWriteStream(ABC):
    """
    Base class for duplex byte streams.

    Producers call ``push`` / ``push_error``; consumers call ``read``,
    ``aread`` or iterate with ``async for``. Subclasses connect the two
    sides to a real source through the hooks:

    - ``_read()``: the consumer wants more data, resume the source
    - ``_pause()``: the buffer is full, pause the source
    - ``_write(data)``: forward written bytes, optionally returning an
      awaitable the writer must wait on
    - ``_write_end()``: no more data will be written
    """

    DEFAULT_HIGH_WATER_MARK = 64 * 1024

    def __init__(self, high_water_mark: Optional[int] = None, encoding: str = "utf-8") -> None:
        """
        Initialize ReadWriteStream.

        Args:
            high_water_mark: Buffered byte count at which the source is paused
            encoding: Encoding used for str writes and text reads
        """
        self._high_water_mark = high_water_mark or self.DEFAULT_HIGH_WATER_MARK
        self.encoding = encoding
        self._buffer: Deque[bytes] = deque()
        self._buffer_size = 0
        self._eof = False
        self._error: Optional[BaseException] = None
        self._paused = False
        self._write_ended = False
        self._waiter: Optional[asyncio.Future] = None

    # Readable side

    def push(self, data: Optional[bytes]) -> bool:
        """
        Append a chunk to the readable buffer, or signal EOF with None.

        Returns:
            False when the buffer is at or above the high-water mark
        """
        if self._eof or self._error is not None:
            raise StreamError("Cannot push to a finished stream")

        if data is None:
            self._eof = True
            self._wake_waiter()
            return False

        if data:
            self._buffer.append(data)
            self._buffer_size += len(data)
            self._wake_waiter()

        if self._buffer_size >= self._high_water_mark:
            if not self._paused:
                self._paused = True
                self._pause()
            return False
        return True

    def push_error(self, error: BaseException) -> None:
        """Fail the stream; pending and later reads raise ``error``."""
        if self._error is not None:
            return
        self._error = error
        self._wake_waiter()

    async def read(self) -> Optional[bytes]:
        """
        Read the next chunk.

        Returns:
            The next chunk, or None once the stream has ended

        Raises:
            The error pushed with ``push_error``
        """
        while True:
            if self._error is not None:
                raise self._error
            if self._buffer:
                break
            if self._eof:
                return None
            self._resume_source()
            await self._wait_for_data()

        chunk = self._buffer.popleft()
        self._buffer_size -= len(chunk)
        if self._paused and self._buffer_size < self._high_water_mark:
            self._resume_source()
        return chunk

    async def aread(self) -> bytes:
        """Read entire stream and return as bytes."""
        chunks: List[bytes] = []
        async for chunk in self:
            chunks.append(chunk)
        return b"".join(chunks)

    async def aread_text(self, encoding: Optional[str] = None) -> str:
        """Read entire stream and decode it."""
        data = await self.aread()
        return data.decode(encoding or self.encoding, errors="replace")

    def __aiter__(self) -> "ReadWriteStream":
        """Return self as async iterator."""
        return self

    async def __anext__(self) -> bytes:
        """Get next chunk of data."""
        chunk = await self.read()
        if chunk is None:
            raise StopAsyncIteration
        return chunk

    def _resume_source(self) -> None:
        self._paused = False
        self._read()

    async def _wait_for_data(self) -> None:
        if self._waiter is not None:
            raise StreamError("Stream is already being read by another task")
        self._waiter = asyncio.get_running_loop().create_future()
        try:
            await self._waiter
        finally:
            self._waiter = None

    def _wake_waiter(self) -> None:
        waiter = self._waiter
        if waiter is not None and not waiter.done():
            waiter.set_result(None)

    # Writable side

    async def write(self, data: Union[bytes, str]) -> None:
        """
        Write data to the stream.

        Suspends until the subclass reports the data was accepted when
        its buffer is full.
        """
        if isinstance(data, str):
            data = data.encode(self.encoding)
        if self._write_ended:
            raise StreamError("Cannot write after write_end()")
        waiter = self._write(data)
        if waiter is not None:
            await waiter

    async def write_end(self, data: Union[bytes, str, None] = None) -> None:
        """Optionally write a final chunk, then end the writable side."""
        if data:
            await self.write(data)
        if self._write_ended:
            return
        self._write_ended = True
        self._write_end()

    # Subclass hooks

    def _read(self) -> None:
        """Resume the source."""

    def _pause(self) -> None:
        """Pause the source."""

    def _write(self, data: bytes) -> Optional[Awaitable[None]]:
        raise StreamError("Stream is not writable")

    def _write_end(self) -> None:
        """Called once when the writable side ends."""

    # State

    @property
    def buffered_size(self) -> int:
        """Number of bytes waiting in the readable buffer."""
        return self._buffer_size

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def at_eof(self) -> bool:
        """True once EOF was pushed and the buffer has been drained."""
        return self._eof and not self._buffer

    @property
    def error(self) -> Optional[BaseException]:
        return self._error
