"""
Mock network implementations for testing.

This module provides mock implementations of NetworkStream and NetworkBackend
that can be used for unit testing without requiring actual network connections.
"""

import asyncio
import ssl
from typing import Any, Dict, List, Optional, Tuple

from .backend import NetworkBackend
from .stream import NetworkStream


class MockNetworkStream(NetworkStream):
    """
    Mock network stream for testing.

    Serves canned bytes to ``read`` and records everything written.
    When ``eof`` is False and the canned data is used up, reads wait
    for ``add_data`` / ``feed_eof`` instead of returning b"", which
    simulates a server that never answers.
    """

    def __init__(self, data: bytes = b"", eof: bool = True):
        """
        Initialize the mock stream.

        Args:
            data: Initial data to be available for reading.
            eof: Whether the peer closes once ``data`` was read.
        """
        self._data = data
        self._position = 0
        self._eof = eof
        self._closed = False
        self._extra_info: Dict[str, Any] = {}
        self._write_buffer: List[bytes] = []
        self._data_event = asyncio.Event()

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        """
        Read data from the mock stream.

        Raises:
            RuntimeError: If the stream is closed.
        """
        if self._closed:
            raise RuntimeError("Stream is closed")

        while self._position >= len(self._data):
            if self._eof:
                return b""
            self._data_event.clear()
            await self._data_event.wait()
            if self._closed:
                raise RuntimeError("Stream is closed")

        if max_bytes is None:
            end = len(self._data)
        else:
            end = min(self._position + max_bytes, len(self._data))
        result = self._data[self._position:end]
        self._position = end
        return result

    async def write(self, data: bytes) -> None:
        """
        Write data to the mock stream.

        Raises:
            RuntimeError: If the stream is closed.
        """
        if self._closed:
            raise RuntimeError("Stream is closed")

        self._write_buffer.append(data)

    async def aclose(self) -> None:
        """Close the mock stream."""
        self._closed = True
        self._data_event.set()

    def get_extra_info(self, name: str) -> Optional[Any]:
        return self._extra_info.get(name)

    @property
    def is_closed(self) -> bool:
        """Check if the mock stream is closed."""
        return self._closed

    @property
    def written_data(self) -> bytes:
        """Get all data that was written to the stream."""
        return b"".join(self._write_buffer)

    def set_extra_info(self, name: str, value: Any) -> None:
        self._extra_info[name] = value

    def add_data(self, data: bytes) -> None:
        """Add data to be available for reading."""
        self._data += data
        self._data_event.set()

    def feed_eof(self) -> None:
        """Make the peer close once the remaining data was read."""
        self._eof = True
        self._data_event.set()


class MockNetworkBackend(NetworkBackend):
    """
    Mock network backend for testing.

    Responses are queued per (host, port). A connection without a queued
    response never answers. ``fail_connection`` makes the next attempt to
    a host raise, the way a refused connection or DNS failure would.
    """

    def __init__(self):
        """Initialize the mock backend."""
        self._responses: Dict[Tuple[str, int], List[bytes]] = {}
        self._failures: Dict[Tuple[str, int], OSError] = {}
        self._connections: Dict[Tuple[str, int], List[MockNetworkStream]] = {}
        self._connection_count = 0

    def add_response(self, host: str, port: int, data: bytes) -> None:
        """Queue raw response bytes for the next connection to host:port."""
        self._responses.setdefault((host, port), []).append(data)

    def fail_connection(self, host: str, port: int, error: Optional[OSError] = None) -> None:
        """Make connections to host:port fail with ``error``."""
        self._failures[(host, port)] = error or ConnectionRefusedError(
            f"Connection refused: {host}:{port}"
        )

    async def connect_tcp(self, host: str, port: int) -> MockNetworkStream:
        return self._open(host, port)

    async def connect_tls(
        self,
        host: str,
        port: int,
        ssl_context: Optional[ssl.SSLContext] = None,
        server_hostname: Optional[str] = None,
    ) -> MockNetworkStream:
        stream = self._open(host, port)
        stream.set_extra_info("ssl_object", True)
        stream.set_extra_info("ssl_context", ssl_context)
        stream.set_extra_info("server_hostname", server_hostname or host)
        return stream

    def _open(self, host: str, port: int) -> MockNetworkStream:
        key = (host, port)
        if key in self._failures:
            raise self._failures[key]

        queued = self._responses.get(key)
        if queued:
            stream = MockNetworkStream(queued.pop(0))
        else:
            stream = MockNetworkStream(eof=False)
        stream.set_extra_info("socket", self._connection_count)
        stream.set_extra_info("peername", (host, port))
        stream.set_extra_info("sockname", ("127.0.0.1", 12345))
        self._connections.setdefault(key, []).append(stream)
        self._connection_count += 1
        return stream

    def get_connection(self, host: str, port: int) -> Optional[MockNetworkStream]:
        """Get the most recent connection to host:port, if any."""
        connections = self._connections.get((host, port))
        return connections[-1] if connections else None

    @property
    def connection_count(self) -> int:
        return self._connection_count

    def reset(self) -> None:
        """Reset all mock connections."""
        self._responses.clear()
        self._failures.clear()
        self._connections.clear()
        self._connection_count = 0
