"""
Network stream interface for netreq.

A NetworkStream is one connected byte pipe (TCP or TLS) used by the
HTTP/1.1 transport to send request bytes and receive response bytes.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class NetworkStream(ABC):
    """
    Interface for connected byte streams with async I/O operations.
    """

    @abstractmethod
    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        """
        Read data from the stream.

        Args:
            max_bytes: Maximum number of bytes to read.

        Returns:
            The data read, or b"" once the peer closed the connection.

        Raises:
            RuntimeError: If the stream is closed.
            OSError: If a network error occurs.
        """
        pass

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write data and wait until the OS accepted it.

        Raises:
            RuntimeError: If the stream is closed.
            OSError: If a network error occurs.
        """
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """Close the stream and cleanup resources."""
        pass

    @abstractmethod
    def get_extra_info(self, name: str) -> Optional[Any]:
        """
        Get extra information about the stream, such as "peername"
        or "ssl_object". Returns None if not available.
        """
        pass

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """True once ``aclose`` was called or the connection dropped."""
        pass
