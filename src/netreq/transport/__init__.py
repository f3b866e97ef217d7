"""
Transports for netreq.

A transport performs the socket I/O for one request at a time and talks
to the owning stream through the ResponseListener callbacks.
"""

from typing import Optional

from ..network import NetworkBackend
from .base import RequestHandle, ResponseListener, Transport, TransportSet
from .http11 import HTTP11RequestHandle, HTTP11Transport, RequestPhase
from .mock import MockReply, MockRequestHandle, MockTransport


def default_transports(backend: Optional[NetworkBackend] = None) -> TransportSet:
    """Plain and TLS HTTP/1.1 transports sharing one backend."""
    return TransportSet(
        plain=HTTP11Transport(backend, secure=False),
        secure=HTTP11Transport(backend, secure=True),
    )


__all__ = [
    "RequestHandle",
    "ResponseListener",
    "Transport",
    "TransportSet",
    "HTTP11RequestHandle",
    "HTTP11Transport",
    "RequestPhase",
    "MockReply",
    "MockRequestHandle",
    "MockTransport",
    "default_transports",
]
