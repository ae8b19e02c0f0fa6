#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import errno
import io
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils
from amz_core.exceptions import TransportError
from amz_http.aio.aiohttp import AIOHTTPClient, content_length
from amz_http.interfaces import HTTPClientConfiguration, HTTPRequestConfiguration
from amz_http.testing import create_test_request
from amz_signers import URI, HTTPRequest, Payload


@pytest.fixture
def client() -> AIOHTTPClient:
    return AIOHTTPClient()


def test_timeout_is_retryable(client: AIOHTTPClient) -> None:
    error = client.error_from_exception(TimeoutError("Connection timed out"))
    assert error.is_timeout_error
    assert error.is_retry_safe is True


def test_server_timeout_is_retryable(client: AIOHTTPClient) -> None:
    error = client.error_from_exception(aiohttp.ServerTimeoutError("read timed out"))
    assert error.is_timeout_error
    assert error.is_retry_safe is True


@pytest.mark.parametrize(
    "exception",
    [
        aiohttp.ServerDisconnectedError(),
        aiohttp.ClientPayloadError("Response payload is not completed"),
        ConnectionResetError("reset by peer"),
        BrokenPipeError("broken pipe"),
        aiohttp.ClientOSError(errno.ECONNRESET, "reset"),
    ],
)
def test_dropped_connections_are_retryable(
    client: AIOHTTPClient, exception: Exception
) -> None:
    error = client.error_from_exception(exception)
    assert isinstance(error, TransportError)
    assert not error.is_timeout_error
    assert error.is_retry_safe is True


def test_other_errors_are_undecided(client: AIOHTTPClient) -> None:
    error = client.error_from_exception(aiohttp.InvalidURL("not a url"))
    assert error.is_retry_safe is None
    assert not error.is_timeout_error


async def test_send_wraps_transport_errors() -> None:
    session = MagicMock()
    session.closed = False
    session.request = AsyncMock(side_effect=aiohttp.ServerDisconnectedError())
    client = AIOHTTPClient(_session=session)

    with pytest.raises(TransportError) as exc_info:
        await client.send(create_test_request())
    assert exc_info.value.is_retry_safe is True
    assert isinstance(exc_info.value.__cause__, aiohttp.ServerDisconnectedError)


async def test_send_applies_timeouts() -> None:
    response = MagicMock()
    response.status = 204
    response.reason = "No Content"
    response.headers = {"x-amz-request-id": "REQ"}
    session = MagicMock()
    session.closed = False
    session.request = AsyncMock(return_value=response)
    client = AIOHTTPClient(
        client_config=HTTPClientConfiguration(
            connect_timeout=1.0, read_timeout=2.0, request_timeout=30.0
        ),
        _session=session,
    )

    result = await client.send(
        create_test_request(method="PUT", path="/b/k", body=b"data"),
        request_config=HTTPRequestConfiguration(timeout=5.0),
    )

    assert result.status == 204
    assert result.header("X-Amz-Request-Id") == "REQ"
    kwargs = session.request.call_args.kwargs
    assert kwargs["method"] == "PUT"
    assert str(kwargs["url"]) == "https://test.example.com/b/k"
    assert kwargs["timeout"] == aiohttp.ClientTimeout(
        total=5.0, sock_connect=1.0, sock_read=2.0
    )
    assert kwargs["data"] == b"data"
    assert kwargs["allow_redirects"] is False
    await result.close()
    response.release.assert_called_once()


def test_content_length() -> None:
    assert content_length(b"hello") == 5
    assert content_length(bytearray(b"hi")) == 2
    stream = io.BytesIO(b"hello world")
    stream.seek(6)
    assert content_length(stream) == 5
    assert stream.tell() == 6
    assert content_length(iter([b"a", b"b"])) is None


class RecordingServer:
    def __init__(self, response_delay: float = 0) -> None:
        self.response_delay = response_delay
        self.headers: list[dict[str, str]] = []
        self.bodies: list[bytes] = []

    async def handle(self, request: web.Request) -> web.Response:
        self.headers.append({k.lower(): v for k, v in request.headers.items()})
        self.bodies.append(await request.read())
        await asyncio.sleep(self.response_delay)
        return web.Response(status=200, text="ok")

    def request(self, server: test_utils.TestServer, body: Payload) -> HTTPRequest:
        assert server.port is not None
        return HTTPRequest(
            destination=URI(
                scheme="http", host="127.0.0.1", port=server.port, path="/upload"
            ),
            method="PUT",
            body=body,
        )


async def start_server(recorder: RecordingServer) -> test_utils.TestServer:
    app = web.Application()
    app.router.add_route("PUT", "/upload", recorder.handle)
    server = test_utils.TestServer(app, host="127.0.0.1")
    await server.start_server()
    return server


async def slow_chunks(delay: float) -> AsyncIterator[bytes]:
    yield b"first"
    await asyncio.sleep(delay)
    yield b"second"


class TestWriteDeadline:
    async def test_bytes_body_keeps_content_length(self) -> None:
        recorder = RecordingServer()
        server = await start_server(recorder)
        client = AIOHTTPClient(
            client_config=HTTPClientConfiguration(write_timeout=5)
        )
        try:
            response = await client.send(recorder.request(server, b"hello"))
            await response.close()
        finally:
            await client.close()
            await server.close()

        assert response.status == 200
        assert recorder.headers[0]["content-length"] == "5"
        assert "transfer-encoding" not in recorder.headers[0]
        assert recorder.bodies == [b"hello"]

    async def test_seekable_body_sends_remaining_length(self) -> None:
        recorder = RecordingServer()
        server = await start_server(recorder)
        client = AIOHTTPClient(
            client_config=HTTPClientConfiguration(write_timeout=5)
        )
        stream = io.BytesIO(b"hello world")
        stream.seek(6)
        try:
            response = await client.send(recorder.request(server, stream))
            await response.close()
        finally:
            await client.close()
            await server.close()

        assert recorder.headers[0]["content-length"] == "5"
        assert "transfer-encoding" not in recorder.headers[0]
        assert recorder.bodies == [b"world"]

    async def test_unsized_stream_is_chunked(self) -> None:
        recorder = RecordingServer()
        server = await start_server(recorder)
        client = AIOHTTPClient(
            client_config=HTTPClientConfiguration(write_timeout=5)
        )
        try:
            response = await client.send(recorder.request(server, slow_chunks(0)))
            await response.close()
        finally:
            await client.close()
            await server.close()

        assert "content-length" not in recorder.headers[0]
        assert recorder.headers[0]["transfer-encoding"] == "chunked"
        assert recorder.bodies == [b"firstsecond"]

    async def test_stalled_upload_times_out(self) -> None:
        recorder = RecordingServer()
        server = await start_server(recorder)
        client = AIOHTTPClient(
            client_config=HTTPClientConfiguration(write_timeout=0.1)
        )
        try:
            with pytest.raises(TransportError) as exc_info:
                await client.send(recorder.request(server, slow_chunks(1)))
        finally:
            await client.close()
            await server.close()

        assert exc_info.value.is_timeout_error
        assert exc_info.value.is_retry_safe is True

    async def test_deadline_lifted_once_body_is_written(self) -> None:
        recorder = RecordingServer(response_delay=0.5)
        server = await start_server(recorder)
        client = AIOHTTPClient(
            client_config=HTTPClientConfiguration(write_timeout=0.1)
        )
        try:
            response = await client.send(recorder.request(server, b"hello"))
            body = await response.consume_body_async()
        finally:
            await client.close()
            await server.close()

        assert response.status == 200
        assert body == b"ok"
        assert recorder.bodies == [b"hello"]
