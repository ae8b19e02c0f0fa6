#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class ErrorRetryInfo(Protocol):
    """A protocol for errors that have retry information embedded."""

    is_retry_safe: bool | None = None
    """Whether the error is safe to retry.

    A value of True does not mean a retry will occur, but rather that a retry is allowed
    to occur.

    A value of None indicates that there is not enough information available to
    determine if a retry is safe.
    """

    retry_after: float | None = None
    """The amount of time that should pass before a retry."""

    is_throttling_error: bool = False
    """Whether the error is a throttling error."""


@dataclass(frozen=True)
class Continue:
    """The next attempt may start now."""

    count: int
    """The number of attempts started so far, including this one."""

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Exhausted:
    """No further attempts will be made."""

    last_error: Exception | None = None
    """The error of the final attempt, surfaced to the caller as it is."""

    def __bool__(self) -> bool:
        return False


type AttemptDecision = Continue | Exhausted


class Attempt(Protocol):
    """One sequence of attempts at an operation, owned by a single call."""

    def has_next(self) -> bool:
        """Whether another attempt will be allowed.

        If this returns True, the following call to :py:meth:`next` returns
        :py:class:`Continue`.
        """
        ...

    async def next(self, error: Exception | None = None) -> AttemptDecision:
        """Wait until the next attempt may start.

        :param error: The error of the previous attempt, if any.
        """
        ...


class AttemptStrategy(Protocol):
    """Read-only configuration issuing independent :py:class:`Attempt` sequences."""

    def start(self) -> Attempt: ...


class RetryClassifier(Protocol):
    def is_retryable(self, error: BaseException) -> bool:
        """Whether ``error`` may be retried."""
        ...
