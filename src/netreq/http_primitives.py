"""
HTTP primitives for netreq.

This module defines the core data structures shared by the option
builder, the transports and the streams: header lists, request
options, prepared requests and the response state.
"""

from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Tuple,
    Union,
)
from urllib.parse import urlsplit

from typing_extensions import TypeAlias


# Type aliases for better readability
Headers: TypeAlias = List[Tuple[bytes, bytes]]
HeaderInput: TypeAlias = Union[
    Mapping[Union[str, bytes], Any],
    Iterable[Tuple[Union[str, bytes], Any]],
]
QueryData: TypeAlias = Mapping[str, Any]
Body: TypeAlias = Union[str, bytes, QueryData]
StatusCode = int


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode("latin-1")


def normalize_headers(headers: Optional[HeaderInput]) -> Headers:
    """
    Convert caller supplied headers into a list of byte pairs.

    Args:
        headers: Mapping or iterable of (name, value) pairs, names and
                 values may be str or bytes; other values go through str()

    Returns:
        New list of (name, value) byte tuples in the original order
    """
    if headers is None:
        return []
    items = headers.items() if isinstance(headers, Mapping) else headers
    return [(_to_bytes(name), _to_bytes(value)) for name, value in items]


def get_header(headers: Headers, name: Union[str, bytes]) -> Optional[bytes]:
    """Get a header value by name (case-insensitive)."""
    if isinstance(name, str):
        name = name.encode()

    name_lower = name.lower()
    for header_name, header_value in headers:
        if header_name.lower() == name_lower:
            return header_value

    return None


def has_header(headers: Headers, name: Union[str, bytes]) -> bool:
    """Check if a header exists (case-insensitive)."""
    return get_header(headers, name) is not None


class URLComponents(NamedTuple):
    """Immutable representation of the parts of a target URI."""
    scheme: str
    host: str
    port: int
    target: str

    @classmethod
    def from_url(cls, url: str) -> "URLComponents":
        """Create URLComponents from a URL string."""
        parsed = urlsplit(url)
        scheme = parsed.scheme.lower() if parsed.scheme else "http"
        host = parsed.hostname or ""
        port = parsed.port or (443 if scheme == "https" else 80)
        target = parsed.path or "/"
        if parsed.query:
            target += "?" + parsed.query

        return cls(scheme=scheme, host=host, port=port, target=target)

    @property
    def is_secure(self) -> bool:
        return self.scheme == "https"


_OPTION_FIELDS = {"method", "headers", "body", "query", "timeout"}


@dataclass
class RequestOptions:
    """
    Caller supplied options for one request.

    ``body`` and manual writes to the stream are mutually exclusive.
    ``extra`` is handed to the transport untouched.
    """

    method: str = "GET"
    headers: Optional[HeaderInput] = None
    body: Optional[Body] = None
    query: Optional[QueryData] = None
    timeout: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def coerce(
        cls,
        options: Union["RequestOptions", Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> "RequestOptions":
        """
        Build RequestOptions from None, an instance, or a plain mapping.

        Keys a mapping carries that are not option fields are collected
        into ``extra``.
        """
        if options is None:
            values: Dict[str, Any] = {}
        elif isinstance(options, RequestOptions):
            values = {
                "method": options.method,
                "headers": options.headers,
                "body": options.body,
                "query": options.query,
                "timeout": options.timeout,
                "extra": dict(options.extra),
            }
        elif isinstance(options, Mapping):
            values = dict(options)
        else:
            raise TypeError(
                f"options must be RequestOptions or a mapping, got {type(options).__name__}"
            )

        values.update(overrides)
        extra = dict(values.pop("extra", None) or {})
        for key in list(values):
            if key not in _OPTION_FIELDS:
                extra[key] = values.pop(key)

        return cls(extra=extra, **values)


@dataclass(frozen=True)
class PreparedRequest:
    """
    A request after option normalization.

    This is what a transport receives: the final URI, the final
    header list and the encoded body, if any.
    """

    method: str
    uri: str
    headers: Headers = field(default_factory=list)
    body: Optional[bytes] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def url(self) -> URLComponents:
        return URLComponents.from_url(self.uri)

    @property
    def scheme(self) -> str:
        return self.url.scheme

    @property
    def host(self) -> str:
        return self.url.host

    @property
    def port(self) -> int:
        return self.url.port

    @property
    def target(self) -> str:
        return self.url.target

    def get_header(self, name: Union[str, bytes]) -> Optional[bytes]:
        return get_header(self.headers, name)


class ResponsePending:
    """Response state before the status line and headers arrive."""

    _instance: Optional["ResponsePending"] = None

    def __new__(cls) -> "ResponsePending":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PENDING"


PENDING = ResponsePending()


@dataclass(frozen=True)
class ResponseHead:
    """Status line and headers of a received response."""

    status_code: StatusCode
    headers: Headers = field(default_factory=list)
    reason: str = ""
    http_version: str = "1.1"

    def get_header(self, name: Union[str, bytes]) -> Optional[bytes]:
        """Get a header value by name (case-insensitive)."""
        return get_header(self.headers, name)

    def has_header(self, name: Union[str, bytes]) -> bool:
        """Check if a header exists (case-insensitive)."""
        return has_header(self.headers, name)


ResponseState: TypeAlias = Union[ResponsePending, ResponseHead]
