"""
netreq - outbound HTTP requests as duplex byte streams

Centralizes request construction (query encoding, body encoding, header
defaults), exposes each request as a stream with backpressure, and offers
a status-checking get/post API on top. A configuration flag disables all
outbound requests.
"""

__version__ = "0.1.0"

from .config import NetConfig
from .exceptions import (
    NetError,
    UsageError,
    TransportError,
    StreamError,
    HttpError,
)
from .http_primitives import (
    PENDING,
    PreparedRequest,
    RequestOptions,
    ResponseHead,
    ResponsePending,
    ResponseState,
)
from .options import build_request, encode_query
from .streams import ReadWriteStream
from .transport_stream import StreamState, TransportStream
from .transport import (
    HTTP11Transport,
    MockReply,
    MockTransport,
    Transport,
    TransportSet,
    default_transports,
)
from .client import Net, NetRequest

__all__ = [
    "NetConfig",
    "NetError",
    "UsageError",
    "TransportError",
    "StreamError",
    "HttpError",
    "PENDING",
    "PreparedRequest",
    "RequestOptions",
    "ResponseHead",
    "ResponsePending",
    "ResponseState",
    "build_request",
    "encode_query",
    "ReadWriteStream",
    "StreamState",
    "TransportStream",
    "HTTP11Transport",
    "MockReply",
    "MockTransport",
    "Transport",
    "TransportSet",
    "default_transports",
    "Net",
    "NetRequest",
]
