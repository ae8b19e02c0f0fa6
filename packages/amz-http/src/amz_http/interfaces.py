#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from amz_signers import HTTPRequest

if TYPE_CHECKING:
    from .aio import HTTPResponse


@dataclass(kw_only=True)
class HTTPClientConfiguration:
    """Client-level HTTP configuration.

    Each phase deadline applies to a single attempt. A value of None disables it.
    """

    connect_timeout: float | None = 10.0
    """Seconds allowed to establish a connection."""

    read_timeout: float | None = None
    """Seconds allowed between reads while waiting for or reading the response."""

    write_timeout: float | None = None
    """Seconds allowed between writes of request body chunks."""

    request_timeout: float | None = None
    """Seconds allowed for a whole attempt, from connecting to the response headers."""


@dataclass(kw_only=True)
class HTTPRequestConfiguration:
    """Request-level HTTP configuration."""

    timeout: float | None = None
    """Overrides :py:attr:`HTTPClientConfiguration.request_timeout` for this attempt."""


class HTTPClient(Protocol):
    """An asynchronous HTTP client interface."""

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> "HTTPResponse":
        """Send HTTP request over the wire and return the response.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        :raises TransportError: If no response could be obtained.
        """
        ...
