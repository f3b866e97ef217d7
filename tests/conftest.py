"""
Pytest configuration for netreq tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

import pytest

from netreq.config import NetConfig
from netreq.network.mock import MockNetworkBackend
from netreq.transport import MockReply, MockTransport, TransportSet, default_transports


@pytest.fixture
def config():
    """Default configuration."""
    return NetConfig()


@pytest.fixture
def disabled_config():
    """Configuration with outbound requests disabled."""
    return NetConfig(no_net_requests=True)


@pytest.fixture
def plain_transport():
    """Mock transport for http URIs."""
    return MockTransport()


@pytest.fixture
def secure_transport():
    """Mock transport for https URIs."""
    return MockTransport(secure=True)


@pytest.fixture
def transports(plain_transport, secure_transport):
    """TransportSet made of the two mock transports."""
    return TransportSet(plain=plain_transport, secure=secure_transport)


@pytest.fixture
def replying_transports():
    """Build a TransportSet whose transports answer with a canned reply."""
    def _create(status_code=200, body=b"", reason="OK", headers=None, capacity=None):
        reply = MockReply(status_code=status_code, body=body, reason=reason, headers=headers)
        return TransportSet(
            plain=MockTransport(reply=reply, capacity=capacity),
            secure=MockTransport(reply=reply, capacity=capacity, secure=True),
        )
    return _create


@pytest.fixture
def network_backend():
    """Mock network backend for the HTTP/1.1 transport."""
    return MockNetworkBackend()


@pytest.fixture
def http11_transports(network_backend):
    """HTTP/1.1 transports running over the mock backend."""
    return default_transports(network_backend)


@pytest.fixture
def sample_query():
    """Query data with characters that need encoding."""
    return {
        "q": "fish & chips",
        "lang": "en=GB",
        "name": "Pokémon",
        "page": 2,
    }
