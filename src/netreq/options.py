"""
Request option normalization for netreq.

Turns caller supplied RequestOptions into a PreparedRequest: the query
string is appended to the URI, mapping bodies are form encoded and the
Content-Type / Content-Length defaults are filled in. Nothing here
performs I/O.
"""

import logging
from typing import Any, Mapping, Optional, Union
from urllib.parse import quote

from .config import NetConfig
from .http_primitives import (
    Headers,
    PreparedRequest,
    QueryData,
    RequestOptions,
    has_header,
    normalize_headers,
)

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Characters encodeURIComponent leaves alone besides letters, digits and "-_.~"
_COMPONENT_SAFE = "!*'()"


def encode_component(value: Any) -> str:
    """Percent-encode a single query value."""
    if value is None:
        text = ""
    elif isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, bytes):
        return quote(value, safe=_COMPONENT_SAFE)
    else:
        text = str(value)
    return quote(text, safe=_COMPONENT_SAFE)


def encode_query(data: QueryData) -> str:
    """
    Encode a mapping as ``key1=value1&key2=value2``.

    Keys are emitted as-is in insertion order, values are percent-encoded.

    Args:
        data: Mapping of keys to values

    Returns:
        The encoded string, empty for an empty mapping
    """
    return "&".join(f"{key}={encode_component(value)}" for key, value in data.items())


def append_query(uri: str, query: QueryData) -> str:
    """Append an encoded query to ``uri``, keeping any existing query."""
    encoded = encode_query(query)
    if not encoded:
        return uri
    separator = "&" if "?" in uri else "?"
    return f"{uri}{separator}{encoded}"


def encode_body(body: Union[str, bytes, Mapping[str, Any]], headers: Headers) -> bytes:
    """
    Encode a request body, adding Content-Type for form encoded mappings.

    ``headers`` is updated in place.
    """
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, Mapping):
        if not has_header(headers, "Content-Type"):
            headers.append((b"Content-Type", FORM_CONTENT_TYPE.encode()))
        return encode_query(body).encode("utf-8")
    raise TypeError(f"body must be str, bytes or a mapping, got {type(body).__name__}")


def build_request(
    uri: str,
    options: Union[RequestOptions, Mapping[str, Any], None] = None,
    config: Optional[NetConfig] = None,
) -> PreparedRequest:
    """
    Normalize options into the request a transport will send.

    Args:
        uri: Target URI, may already contain a query component
        options: Request options; the caller's values are not mutated
        config: Optional configuration supplying default headers

    Returns:
        PreparedRequest with final URI, headers and body bytes
    """
    options = RequestOptions.coerce(options)
    headers = normalize_headers(options.headers)

    body: Optional[bytes] = None
    if options.body is not None:
        body = encode_body(options.body, headers)
        if not has_header(headers, "Content-Length"):
            headers.append((b"Content-Length", str(len(body)).encode()))

    if options.query:
        uri = append_query(uri, options.query)

    if config is not None and config.user_agent and not has_header(headers, "User-Agent"):
        headers.append((b"User-Agent", config.user_agent.encode()))

    method = options.method.upper() if options.method else "GET"
    logger.debug(f"Prepared {method} {uri} (body={'none' if body is None else len(body)})")

    return PreparedRequest(
        method=method,
        uri=uri,
        headers=headers,
        body=body,
        extra=dict(options.extra),
    )
