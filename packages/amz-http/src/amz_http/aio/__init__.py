#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import AsyncIterable, Awaitable, Callable
from dataclasses import dataclass, field

from amz_signers import Fields

from .utils import async_list


@dataclass(kw_only=True)
class HTTPResponse:
    """An HTTP response whose body may still be streaming from the server.

    Read the body with :py:meth:`consume_body_async` or iterate ``body``. A response
    that is not read to the end should be closed.
    """

    status: int
    """The 3 digit response status code (1xx, 2xx, 3xx, 4xx, 5xx)."""

    fields: Fields
    """Response headers."""

    body: AsyncIterable[bytes] = field(repr=False, default_factory=lambda: async_list([]))
    """The response payload as an async iterable of bytes."""

    reason: str | None = None
    """Optional string provided by the server explaining the status."""

    release: Callable[[], Awaitable[None]] | None = field(default=None, repr=False)
    """Returns the connection to the transport, if the body is still open."""

    def header(self, name: str, default: str = "") -> str:
        """Get a response header, or ``default`` if it is absent."""
        value = self.fields.get_value(name)
        return default if value is None else value

    async def consume_body_async(self) -> bytes:
        """Read the rest of the body into memory."""
        try:
            return b"".join([chunk async for chunk in self.body])
        finally:
            await self.close()

    async def close(self) -> None:
        if self.release is not None:
            release, self.release = self.release, None
            await release()
