"""
High-level request API for netreq.

``Net(uri).get()`` and ``Net(uri).post(...)`` return the response body as
text and raise HttpError for any status other than 200.
``Net(uri).get_stream()`` hands back the raw TransportStream.
"""

import logging
from typing import Any, Mapping, Optional, Union

from .config import NetConfig
from .exceptions import HttpError
from .http_primitives import Body, RequestOptions
from .transport import TransportSet, default_transports
from .transport_stream import TransportStream

logger = logging.getLogger(__name__)

OptionsInput = Union[RequestOptions, Mapping[str, Any], None]


class NetRequest:
    """
    Requests against a single URI.

    The configuration is injected, so a client built with
    ``NetConfig(no_net_requests=True)`` refuses to open streams.
    """

    SUCCESS_STATUS = 200

    def __init__(
        self,
        uri: str,
        config: Optional[NetConfig] = None,
        transports: Optional[TransportSet] = None,
    ) -> None:
        self.uri = uri
        self.config = config or NetConfig()
        self._transports = transports

    @property
    def transports(self) -> TransportSet:
        if self._transports is None:
            self._transports = default_transports()
        return self._transports

    def get_stream(self, options: OptionsInput = None, **kwargs: Any) -> TransportStream:
        """
        Make a request to the URI and return the stream.

        The body can be read with ``TransportStream.aread()``; the stream also
        exposes ``status_code`` and ``headers`` once the response arrived.

        Raises:
            UsageError: If network requests are disabled in the configuration
        """
        return TransportStream(
            self.uri,
            RequestOptions.coerce(options, **kwargs),
            transports=self.transports,
            config=self.config,
        )

    async def get(self, options: OptionsInput = None, **kwargs: Any) -> str:
        """
        Make a request to the URI and return the response body.

        Raises:
            UsageError: If network requests are disabled
            TransportError: If the connection fails or times out
            HttpError: If the response status isn't 200
        """
        stream = self.get_stream(options, **kwargs)
        # Without a body option the request body is empty
        await stream.write_end()
        head = await stream.wait_response()
        if head.status_code != self.SUCCESS_STATUS:
            body = await stream.aread_text()
            logger.debug(f"{stream.request.method} {stream.uri} returned {head.status_code}")
            raise HttpError(head.reason or "Connection error", head.status_code, body)
        return await stream.aread_text()

    async def post(
        self,
        options: OptionsInput = None,
        body: Optional[Body] = None,
        **kwargs: Any,
    ) -> str:
        """
        Make a POST request to the URI and return the response body.

        Args:
            options: Request options; ``options.body`` is used when ``body`` is empty
            body: POST body, a string, bytes or a mapping to form encode
        """
        options = RequestOptions.coerce(options, **kwargs)
        if not body:
            body = options.body
        return await self.get(RequestOptions.coerce(options, method="POST", body=body))


def Net(
    uri: str,
    config: Optional[NetConfig] = None,
    transports: Optional[TransportSet] = None,
) -> NetRequest:
    """Create a NetRequest for ``uri``."""
    return NetRequest(uri, config=config, transports=transports)
