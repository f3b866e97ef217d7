"""
asyncio based network backend for netreq.
"""

import asyncio
import logging
import ssl
from typing import Any, Optional

from .backend import NetworkBackend
from .stream import NetworkStream
from .utils import create_ssl_context

logger = logging.getLogger(__name__)


class AsyncioNetworkStream(NetworkStream):
    """NetworkStream over an asyncio StreamReader/StreamWriter pair."""

    DEFAULT_READ_SIZE = 65536  # 64KB chunks

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer
        self._closed = False

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        if self._closed:
            raise RuntimeError("Stream is closed")
        return await self._reader.read(max_bytes or self.DEFAULT_READ_SIZE)

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise RuntimeError("Stream is closed")
        self._writer.write(data)
        await self._writer.drain()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing connection: {e}")

    def get_extra_info(self, name: str) -> Optional[Any]:
        return self._writer.get_extra_info(name)

    @property
    def is_closed(self) -> bool:
        return self._closed or self._writer.is_closing()


class AsyncioNetworkBackend(NetworkBackend):
    """Opens connections with ``asyncio.open_connection``."""

    async def connect_tcp(self, host: str, port: int) -> AsyncioNetworkStream:
        logger.debug(f"Connecting to {host}:{port}")
        reader, writer = await asyncio.open_connection(host, port)
        return AsyncioNetworkStream(reader, writer)

    async def connect_tls(
        self,
        host: str,
        port: int,
        ssl_context: Optional[ssl.SSLContext] = None,
        server_hostname: Optional[str] = None,
    ) -> AsyncioNetworkStream:
        logger.debug(f"Connecting to {host}:{port} over TLS")
        context = ssl_context or create_ssl_context(alpn_protocols=["http/1.1"])
        reader, writer = await asyncio.open_connection(
            host,
            port,
            ssl=context,
            server_hostname=server_hostname or host,
        )
        return AsyncioNetworkStream(reader, writer)
