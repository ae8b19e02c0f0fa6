#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass, field
from typing import Literal


class AmzError(Exception):
    """Base exception type for all exceptions raised by this library."""


type Fault = Literal["client", "server"] | None
"""Whether the client or server is at fault.

If None, then there was not enough information to determine fault.
"""


@dataclass(kw_only=True)
class CallError(AmzError):
    """Base exception for errors raised while making a call.

    Implements :py:class:`.interfaces.retries.ErrorRetryInfo`. Retryability is
    decided once, where the error is created.
    """

    fault: Fault = None
    """Whether the client or server is at fault.

    If None, then there was not enough information to determine fault.
    """

    message: str = field(default="", kw_only=False)
    """The message of the error."""

    is_retry_safe: bool | None = None
    """Whether the exception is safe to retry.

    A value of True does not mean a retry will occur, but rather that a retry is allowed
    to occur.

    A value of None indicates that there is not enough information available to
    determine if a retry is safe. The retry policy then decides.
    """

    retry_after: float | None = None
    """The amount of time that should pass before a retry."""

    is_throttling_error: bool = False
    """Whether the error is a throttling error."""

    def __post_init__(self):
        super().__init__(self.message)


@dataclass(kw_only=True)
class TransportError(CallError):
    """A failure to exchange a request and response with the remote host."""

    is_timeout_error: bool = False
    """Whether one of the connect, read, write or attempt deadlines expired."""


@dataclass(kw_only=True)
class ServiceError(CallError):
    """A non-success response from the remote service."""

    status: int
    """The HTTP status code of the response."""

    code: str = ""
    """The error code reported by the service, if any."""

    request_id: str = ""
    """The service's identifier for the request."""

    host_id: str = ""
    """The service's identifier for the host that handled the request."""

    headers: dict[str, str] = field(default_factory=dict, repr=False)
    """The response headers, keyed by lower-cased name."""

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} (status {self.status}, code {self.code})"
        return f"{self.message} (status {self.status})"


@dataclass(kw_only=True)
class VerificationError(CallError):
    """The service accepted the request but did not honor part of it."""

    fault: Fault = "server"
    is_retry_safe: bool | None = False

    status: int | None = None
    """The HTTP status code of the accepted response."""

    request_id: str = ""
    """The service's identifier for the request."""


class MissingCredentialsError(AmzError):
    """No credentials could be found in any configuration source."""


class ConfigurationError(AmzError, ValueError):
    """A configuration value is invalid."""


class SerializationError(AmzError):
    """A request body could not be built or a response body could not be parsed."""
