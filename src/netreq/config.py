"""
Configuration for netreq.

NetConfig is passed explicitly to the client and to every stream,
so the network kill-switch never lives in a module-level global.
"""

import os
import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping, Optional


_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class NetConfig:
    """
    Per-deployment settings for outbound requests.

    Attributes:
        no_net_requests: When True every attempt to open a stream is refused
        default_timeout: Timeout in seconds used when a request sets none
        user_agent: Value for the User-Agent header if the caller sets none
        high_water_mark: Readable buffer size (bytes) at which the source is paused
        encoding: Text encoding used to decode response bodies
    """

    DEFAULT_HIGH_WATER_MARK = 64 * 1024
    DEFAULT_ENCODING = "utf-8"

    no_net_requests: bool = False
    default_timeout: Optional[float] = None
    user_agent: Optional[str] = None
    high_water_mark: int = DEFAULT_HIGH_WATER_MARK
    encoding: str = DEFAULT_ENCODING

    def __post_init__(self) -> None:
        if self.default_timeout is not None and self.default_timeout <= 0:
            raise ValueError("default_timeout must be positive")
        if self.high_water_mark <= 0:
            raise ValueError("high_water_mark must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "NetConfig":
        """
        Build a configuration from NETREQ_* environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ

        Returns:
            New NetConfig instance
        """
        if environ is None:
            environ = os.environ

        kwargs: dict = {}
        flag = environ.get("NETREQ_NO_NET_REQUESTS")
        if flag is not None:
            kwargs["no_net_requests"] = flag.strip().lower() in _TRUE_VALUES

        timeout = environ.get("NETREQ_TIMEOUT")
        if timeout:
            try:
                kwargs["default_timeout"] = float(timeout)
            except ValueError:
                raise ValueError(f"Invalid NETREQ_TIMEOUT: {timeout!r}")

        user_agent = environ.get("NETREQ_USER_AGENT")
        if user_agent:
            kwargs["user_agent"] = user_agent

        encoding = environ.get("NETREQ_ENCODING")
        if encoding:
            kwargs["encoding"] = encoding

        return cls(**kwargs)

    def replace(self, **changes: Any) -> "NetConfig":
        """Create a new configuration with some fields changed."""
        return dataclasses.replace(self, **changes)
