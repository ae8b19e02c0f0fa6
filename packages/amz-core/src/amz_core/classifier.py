#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
from enum import Enum

from .interfaces.retries import ErrorRetryInfo

logger = logging.getLogger(__name__)

RETRYABLE_ERROR_CODES: frozenset[str] = frozenset(
    {"InternalError", "NoSuchUpload", "NoSuchBucket", "RequestTimeout"}
)
"""Codes worth retrying whatever the status. ``NoSuchBucket`` covers a bucket that
was just created and is not yet visible everywhere."""

THROTTLING_ERROR_CODES: frozenset[str] = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "SlowDown",
        "TooManyRequestsException",
    }
)


class RetryPolicy(Enum):
    """What to do with errors that carry no retry decision of their own."""

    PERMISSIVE = "permissive"
    """Retry them."""

    CONSERVATIVE = "conservative"
    """Do not retry them."""


def is_conflict_retryable(*, code: str, message: str, server: str) -> bool:
    """Decide whether a 409 response may be retried.

    Conflicts are usually transient. Servers identifying as ``HCP`` also answer 409
    when a PUT finds an existing object; only their conflicting-operation response
    is retried. This matches on a vendor's ``Server`` header and message text, so it
    is a heuristic.
    """
    if not server.startswith("HCP"):
        return True
    return code == "OperationAborted" and "conflicting operation" in message.lower()


def is_service_error_retryable(
    *, status: int, code: str = "", message: str = "", server: str = ""
) -> bool:
    """Decide whether an error response from a service may be retried.

    :param status: The HTTP status code.
    :param code: The error code from the response body, if any.
    :param message: The error message from the response body, if any.
    :param server: The ``Server`` response header, if any.
    """
    if status >= 500:
        return True
    if code in RETRYABLE_ERROR_CODES:
        return True
    if status == 429 or code in THROTTLING_ERROR_CODES:
        return True
    if status == 409:
        return is_conflict_retryable(code=code, message=message, server=server)
    # A 400 without a code did not come from the service itself.
    if status == 400 and not code:
        return True
    return False


class ErrorClassifier:
    """Decide whether a failed attempt may be retried.

    Errors implementing :py:class:`ErrorRetryInfo` carry their own decision, made
    when they were created. Errors without one fall back to the policy.

    :param policy: Decision for errors that carry none.
    """

    def __init__(self, policy: RetryPolicy = RetryPolicy.PERMISSIVE):
        self.policy = policy

    def is_retryable(self, error: BaseException) -> bool:
        if isinstance(error, asyncio.CancelledError) or not isinstance(
            error, Exception
        ):
            return False
        if isinstance(error, ErrorRetryInfo) and error.is_retry_safe is not None:
            return error.is_retry_safe
        if isinstance(error, TimeoutError):
            return True
        retryable = self.policy is RetryPolicy.PERMISSIVE
        logger.debug(
            "Unclassified error %r, %s policy: retryable=%s",
            error,
            self.policy.value,
            retryable,
        )
        return retryable
