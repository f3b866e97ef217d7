"""
Unit tests for TransportStream.

Uses MockTransport to drive the response side by hand.
"""

import asyncio

import pytest

from netreq.config import NetConfig
from netreq.exceptions import StreamError, TransportError, UsageError
from netreq.http_primitives import PENDING, ResponseHead
from netreq.transport import MockTransport, TransportSet
from netreq.transport_stream import StreamState, TransportStream


class TestConstruction:

    @pytest.mark.asyncio
    async def test_request_dispatched_immediately(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/data", transports=transports)
        assert len(plain_transport.handles) == 1
        assert stream.state == StreamState.AWAITING_RESPONSE
        assert stream.response_state is PENDING
        assert stream.status_code is None
        assert stream.headers is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("uri", ["http://example.com/", "https://example.com/"])
    async def test_disabled_config_refuses_construction(
        self, uri, disabled_config, transports, plain_transport, secure_transport
    ) -> None:
        with pytest.raises(UsageError, match="Net requests are disabled"):
            TransportStream(uri, {"body": "x"}, transports=transports, config=disabled_config)
        assert plain_transport.handles == []
        assert secure_transport.handles == []

    @pytest.mark.asyncio
    async def test_https_selects_secure_transport(
        self, transports, plain_transport, secure_transport
    ) -> None:
        stream = TransportStream("https://example.com/", transports=transports)
        assert stream.transport is secure_transport
        assert plain_transport.handles == []
        assert len(secure_transport.handles) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("uri", ["http://example.com/", "ftp://example.com/", "//example.com/"])
    async def test_other_schemes_select_plain_transport(self, uri, transports, plain_transport) -> None:
        stream = TransportStream(uri, transports=transports)
        assert stream.transport is plain_transport

    @pytest.mark.asyncio
    async def test_options_are_applied(self, transports, plain_transport) -> None:
        stream = TransportStream(
            "http://example.com/search",
            {"method": "POST", "query": {"q": "a b"}, "body": {"x": "1"}},
            transports=transports,
        )
        request = plain_transport.last_handle.request
        assert stream.uri == "http://example.com/search?q=a%20b"
        assert request.method == "POST"
        assert request.get_header("Content-Type") == b"application/x-www-form-urlencoded"
        assert request.get_header("Content-Length") == b"3"

    @pytest.mark.asyncio
    async def test_body_option_is_written_and_ended(self, transports, plain_transport) -> None:
        TransportStream("http://example.com/", {"method": "POST", "body": "payload"},
                        transports=transports)
        handle = plain_transport.last_handle
        assert handle.written == [b"payload"]
        assert handle.ended

    @pytest.mark.asyncio
    async def test_without_body_request_stays_open(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        handle = plain_transport.last_handle
        assert not handle.ended
        await stream.write_end()
        assert handle.ended


class TestResponse:

    @pytest.mark.asyncio
    async def test_head_resolves_deferred_value(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        handle = plain_transport.last_handle
        assert not stream.response.done()

        head = handle.respond(200, {"Content-Type": "text/plain"})
        assert stream.response.done()
        assert stream.response.result() is head
        assert stream.response_state == head
        assert stream.state == StreamState.STREAMING
        assert stream.status_code == 200
        assert stream.reason == "OK"
        assert stream.get_header("content-type") == b"text/plain"
        assert await stream.wait_response() is head

    @pytest.mark.asyncio
    async def test_head_resolves_only_once(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        handle = plain_transport.last_handle
        first = handle.respond(200)
        handle.respond(500, reason="Internal Server Error")
        assert stream.response_state is first
        assert stream.status_code == 200

    @pytest.mark.asyncio
    async def test_body_streamed_in_order(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        handle = plain_transport.last_handle
        handle.respond(200)
        for chunk in (b"one ", b"two ", b"three"):
            handle.send_data(chunk)
        handle.finish()

        assert stream.state == StreamState.CLOSED
        chunks = [chunk async for chunk in stream]
        assert chunks == [b"one ", b"two ", b"three"]

    @pytest.mark.asyncio
    async def test_wait_response_suspends_until_head(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        waiter = asyncio.ensure_future(stream.wait_response())
        await asyncio.sleep(0)
        assert not waiter.done()

        plain_transport.last_handle.respond(404, reason="Not Found")
        head = await waiter
        assert head.status_code == 404

    @pytest.mark.asyncio
    async def test_get_header_before_response(self, transports) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        assert stream.get_header("content-type") is None

    @pytest.mark.asyncio
    async def test_data_before_head_is_transport_error(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        plain_transport.last_handle.send_data(b"early")
        assert stream.state == StreamState.ERRORED
        with pytest.raises(TransportError, match="before headers"):
            await stream.read()


class TestErrors:

    @pytest.mark.asyncio
    async def test_error_before_head(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        plain_transport.last_handle.fail(TransportError("getaddrinfo failed"))

        assert stream.state == StreamState.ERRORED
        assert stream.response_state is PENDING
        assert not stream.response.done()
        with pytest.raises(TransportError, match="getaddrinfo failed"):
            await stream.wait_response()
        with pytest.raises(TransportError, match="getaddrinfo failed"):
            await stream.aread()

    @pytest.mark.asyncio
    async def test_error_while_waiting_for_head(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        waiter = asyncio.ensure_future(stream.wait_response())
        await asyncio.sleep(0)
        plain_transport.last_handle.fail()
        with pytest.raises(TransportError):
            await waiter

    @pytest.mark.asyncio
    async def test_error_mid_body(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        handle = plain_transport.last_handle
        handle.respond(200)
        handle.send_data(b"partial")
        handle.fail(TransportError("Connection reset"))

        assert stream.status_code == 200
        with pytest.raises(TransportError, match="Connection reset"):
            await stream.aread()

    @pytest.mark.asyncio
    async def test_events_after_terminal_state_are_ignored(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        handle = plain_transport.last_handle
        handle.respond(200)
        handle.finish()
        stream.on_data(b"late")
        stream.on_error(TransportError("late"))
        assert stream.state == StreamState.CLOSED
        assert await stream.aread() == b""

    @pytest.mark.asyncio
    async def test_write_after_close_fails(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", transports=transports)
        plain_transport.last_handle.fail()
        with pytest.raises(StreamError, match="errored"):
            await stream.write(b"x")


class TestWritableSide:

    @pytest.mark.asyncio
    async def test_writes_forwarded(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/upload", {"method": "PUT"},
                                 transports=transports)
        await stream.write(b"chunk-1")
        await stream.write("chunk-2")
        await stream.write_end()
        handle = plain_transport.last_handle
        assert handle.written == [b"chunk-1", b"chunk-2"]
        assert handle.ended

    @pytest.mark.asyncio
    async def test_write_with_body_option_is_usage_error(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", {"method": "POST", "body": "set"},
                                 transports=transports)
        handle = plain_transport.last_handle
        with pytest.raises(UsageError, match="choose one or the other"):
            await stream.write(b"extra")
        assert handle.written == [b"set"]

    @pytest.mark.asyncio
    async def test_write_end_with_body_option_is_noop(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", {"method": "POST", "body": "set"},
                                 transports=transports)
        await stream.write_end()
        assert plain_transport.last_handle.written == [b"set"]


class TestDrain:

    @pytest.mark.asyncio
    async def test_full_buffer_waits_for_drain(self) -> None:
        transport = MockTransport(capacity=8)
        transports = TransportSet(plain=transport, secure=transport)
        stream = TransportStream("http://example.com/", {"method": "PUT"}, transports=transports)
        handle = transport.last_handle

        await stream.write(b"1234")  # below capacity
        writer = asyncio.ensure_future(stream.write(b"5678"))
        await asyncio.sleep(0)
        assert not writer.done()
        assert handle.written == [b"1234", b"5678"]

        handle.drain()
        await asyncio.wait_for(writer, timeout=1)

    @pytest.mark.asyncio
    async def test_pending_writers_resolve_together_in_order(self) -> None:
        transport = MockTransport(capacity=4)
        transports = TransportSet(plain=transport, secure=transport)
        stream = TransportStream("http://example.com/", {"method": "PUT"}, transports=transports)
        handle = transport.last_handle

        order = []

        async def write(label, data):
            await stream.write(data)
            order.append(label)

        writers = [
            asyncio.ensure_future(write("a", b"aaaa")),
            asyncio.ensure_future(write("b", b"bb")),
            asyncio.ensure_future(write("c", b"c")),
        ]
        await asyncio.sleep(0)
        assert not any(w.done() for w in writers)
        assert len(stream._drain_waiters) == 3

        handle.drain()
        await asyncio.gather(*writers)
        assert order == ["a", "b", "c"]
        assert stream._drain_waiters == []

    @pytest.mark.asyncio
    async def test_drain_releases_each_waiter_once(self) -> None:
        transport = MockTransport(capacity=1)
        transports = TransportSet(plain=transport, secure=transport)
        stream = TransportStream("http://example.com/", {"method": "PUT"}, transports=transports)
        handle = transport.last_handle

        first = asyncio.ensure_future(stream.write(b"x"))
        await asyncio.sleep(0)
        handle.drain()
        await first

        second = asyncio.ensure_future(stream.write(b"y"))
        await asyncio.sleep(0)
        assert not second.done()
        handle.drain()
        await second

    @pytest.mark.asyncio
    async def test_error_fails_pending_writers(self) -> None:
        transport = MockTransport(capacity=1)
        transports = TransportSet(plain=transport, secure=transport)
        stream = TransportStream("http://example.com/", {"method": "PUT"}, transports=transports)

        writer = asyncio.ensure_future(stream.write(b"xx"))
        await asyncio.sleep(0)
        transport.last_handle.fail(TransportError("Connection reset"))
        with pytest.raises(TransportError, match="Connection reset"):
            await writer


class TestReadBackpressure:

    @pytest.mark.asyncio
    async def test_pauses_and_resumes_transport(self, transports, plain_transport) -> None:
        config = NetConfig(high_water_mark=8)
        stream = TransportStream("http://example.com/", transports=transports, config=config)
        handle = plain_transport.last_handle
        handle.respond(200)

        handle.send_data(b"12345678")
        assert handle.paused
        assert handle.pause_count == 1

        assert await stream.read() == b"12345678"
        assert not handle.paused
        assert handle.resume_count == 1


class TestTimeout:

    @pytest.mark.asyncio
    async def test_timeout_aborts_silent_request(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", {"timeout": 0.05}, transports=transports)
        await asyncio.sleep(0.2)

        assert plain_transport.last_handle.aborted
        assert stream.state == StreamState.ERRORED
        assert stream.response_state is PENDING
        assert not stream.response.done()
        with pytest.raises(TransportError, match="Request aborted"):
            await stream.wait_response()

    @pytest.mark.asyncio
    async def test_default_timeout_from_config(self, transports, plain_transport) -> None:
        config = NetConfig(default_timeout=0.05)
        stream = TransportStream("http://example.com/", transports=transports, config=config)
        with pytest.raises(TransportError):
            await asyncio.wait_for(stream.wait_response(), timeout=1)
        assert plain_transport.last_handle.aborted

    @pytest.mark.asyncio
    async def test_timer_cancelled_when_response_completes(self, transports, plain_transport) -> None:
        stream = TransportStream("http://example.com/", {"timeout": 0.05}, transports=transports)
        handle = plain_transport.last_handle
        handle.respond(200)
        handle.send_data(b"done")
        handle.finish()
        await asyncio.sleep(0.1)

        assert not handle.aborted
        assert stream.state == StreamState.CLOSED
        assert await stream.aread() == b"done"
