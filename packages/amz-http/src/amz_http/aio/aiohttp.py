#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import errno
import logging
import time
from collections.abc import AsyncIterator
from types import TracebackType
from typing import Any, Self

import aiohttp
import yarl

from amz_core.exceptions import TransportError
from amz_signers import ByteStream, HTTPRequest, Payload, Seekable

from .. import tuples_to_fields
from ..interfaces import HTTPClient, HTTPClientConfiguration, HTTPRequestConfiguration
from . import HTTPResponse
from .utils import CHUNK_SIZE, iter_payload

logger = logging.getLogger(__name__)

_RETRYABLE_ERRNOS = frozenset(
    {errno.EPIPE, errno.ECONNRESET, errno.ECONNABORTED, errno.ETIMEDOUT}
)


def content_length(payload: Payload | None) -> int | None:
    """The number of bytes left to send, if it can be known without reading them.

    Seekable streams are measured from their current position.
    """
    match payload:
        case None:
            return 0
        case bytes() | bytearray():
            return len(payload)
        case ByteStream() if isinstance(payload, Seekable):
            position = payload.tell()
            end = payload.seek(0, 2)
            payload.seek(position)
            return end - position
    return None


class _WriteDeadline:
    """Abort the attempt if no body chunk is written within ``timeout`` seconds.

    The deadline is pushed back each time a chunk is handed to the connection and
    is lifted once the body has been written.
    """

    def __init__(self, timeout: float | None):
        self._timeout = timeout
        self._scope: asyncio.Timeout | None = None

    async def __aenter__(self) -> Self:
        self._scope = asyncio.timeout(None)
        await self._scope.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool | None:
        scope, self._scope = self._scope, None
        assert scope is not None
        return await scope.__aexit__(exc_type, exc_value, traceback)

    def wrap(self, payload: Payload | None) -> Any:
        if payload is None:
            return None
        if self._timeout is None:
            if isinstance(payload, bytes | bytearray):
                return payload
            return iter_payload(payload)
        return self._guarded(payload)

    async def _guarded(self, payload: Payload) -> AsyncIterator[bytes]:
        async for chunk in iter_payload(payload):
            self._reschedule(self._timeout)
            yield chunk
        self._reschedule(None)

    def _reschedule(self, timeout: float | None) -> None:
        # The response may arrive before the whole body has been written.
        if self._scope is None or self._scope.expired():
            return
        when = None if timeout is None else asyncio.get_running_loop().time() + timeout
        self._scope.reschedule(when)


class AIOHTTPClient(HTTPClient):
    """Implementation of :py:class:`.interfaces.HTTPClient` using aiohttp."""

    def __init__(
        self,
        *,
        client_config: HTTPClientConfiguration | None = None,
        _session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        :param client_config: Configuration that applies to all requests made with this
        client.
        """
        self._config = client_config or HTTPClientConfiguration()
        self._session = _session

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request using aiohttp client.

        The response headers are read before returning; the body streams as it is
        consumed.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        :raises TransportError: If the exchange fails or a deadline expires.
        """
        request_config = request_config or HTTPRequestConfiguration()
        total = request_config.timeout or self._config.request_timeout
        timeout = aiohttp.ClientTimeout(
            total=total,
            sock_connect=self._config.connect_timeout,
            sock_read=self._config.read_timeout,
        )
        headers = [t for fld in request.fields for t in fld.as_tuples()]
        if request.body is not None and "content-length" not in request.fields:
            # aiohttp sends generator bodies chunked unless a length is given.
            if (length := content_length(request.body)) is not None:
                headers.append(("Content-Length", str(length)))
        write_deadline = _WriteDeadline(self._config.write_timeout)
        session = self._get_session()
        start = time.monotonic()
        try:
            async with write_deadline:
                resp = await session.request(
                    method=request.method,
                    url=yarl.URL(request.destination.build(), encoded=True),
                    headers=headers,
                    data=write_deadline.wrap(request.body),
                    timeout=timeout,
                    allow_redirects=False,
                )
        except (aiohttp.ClientError, OSError, TimeoutError) as e:
            error = self.error_from_exception(e)
            logger.debug(
                "%s %s failed after %.3fs: %r",
                request.method,
                request.destination.host,
                time.monotonic() - start,
                error,
            )
            raise error from e

        logger.debug(
            "%s %s returned %s in %.3fs",
            request.method,
            request.destination.host,
            resp.status,
            time.monotonic() - start,
        )
        return self._marshal_response(resp)

    def error_from_exception(self, exception: BaseException) -> TransportError:
        """Tag a transport exception with its retry decision.

        Deadlines, dropped and refused connections, failed name lookups and cut off
        payloads are safe to retry. Other client errors are left undecided.
        """
        message = str(exception) or type(exception).__name__
        if isinstance(exception, TimeoutError):
            return TransportError(
                message, is_timeout_error=True, is_retry_safe=True, fault="server"
            )
        if isinstance(
            exception,
            aiohttp.ServerDisconnectedError
            | aiohttp.ClientConnectorError
            | aiohttp.ClientPayloadError
            | ConnectionError,
        ):
            return TransportError(message, is_retry_safe=True)
        if isinstance(exception, OSError) and exception.errno in _RETRYABLE_ERRNOS:
            return TransportError(message, is_retry_safe=True)
        return TransportError(message)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(auto_decompress=False)
        return self._session

    def _marshal_response(self, aiohttp_resp: aiohttp.ClientResponse) -> HTTPResponse:
        """Convert a ``aiohttp.ClientResponse`` to a ``amz_http.aio.HTTPResponse``"""

        async def release() -> None:
            aiohttp_resp.release()

        return HTTPResponse(
            status=aiohttp_resp.status,
            fields=tuples_to_fields(list(aiohttp_resp.headers.items())),
            body=self._stream_body(aiohttp_resp),
            reason=aiohttp_resp.reason,
            release=release,
        )

    async def _stream_body(
        self, aiohttp_resp: aiohttp.ClientResponse
    ) -> AsyncIterator[bytes]:
        try:
            async for chunk in aiohttp_resp.content.iter_chunked(CHUNK_SIZE):
                yield chunk
        except (aiohttp.ClientError, OSError, TimeoutError) as e:
            raise self.error_from_exception(e) from e
        finally:
            aiohttp_resp.release()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()
