"""
Network backend interface for netreq.

This module defines the NetworkBackend interface the HTTP/1.1 transport
uses to open plain and TLS connections.
"""

import ssl
from abc import ABC, abstractmethod
from typing import Optional
from .stream import NetworkStream


class NetworkBackend(ABC):
    """
    Interface for network backend implementations.

    Connection attempts must not block the event loop.
    """

    @abstractmethod
    async def connect_tcp(self, host: str, port: int) -> NetworkStream:
        """
        Connect to a TCP endpoint.

        Args:
            host: The hostname or IP address to connect to.
            port: The port number to connect to.

        Returns:
            A NetworkStream representing the TCP connection.

        Raises:
            OSError: If the connection fails (refused, DNS failure, ...).
        """
        pass

    @abstractmethod
    async def connect_tls(
        self,
        host: str,
        port: int,
        ssl_context: Optional[ssl.SSLContext] = None,
        server_hostname: Optional[str] = None,
    ) -> NetworkStream:
        """
        Connect to a TLS endpoint.

        Args:
            host: The hostname or IP address to connect to.
            port: The port number to connect to.
            ssl_context: Context to use, a default client context if None.
            server_hostname: Name for certificate verification, ``host`` if None.

        Returns:
            A NetworkStream representing the TLS connection.

        Raises:
            OSError: If the connection or the TLS handshake fails.
        """
        pass
