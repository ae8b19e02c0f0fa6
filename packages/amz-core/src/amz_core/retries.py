#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from .interfaces.retries import AttemptDecision, Continue, Exhausted

logger = logging.getLogger(__name__)

type Clock = Callable[[], float]
type Sleep = Callable[[float], Awaitable[object]]


class AttemptState(Enum):
    NOT_STARTED = "not-started"
    ACTIVE = "active"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True, kw_only=True)
class FixedAttemptStrategy:
    """Retry with a fixed spacing between attempts, for a bounded time.

    The configuration is immutable and may be shared by any number of concurrent
    calls. Each call gets its own :py:class:`FixedAttempt` from :py:meth:`start`.
    """

    total: float = 0.0
    """Seconds after the start of the sequence in which attempts may begin."""

    delay: float = 0.0
    """Minimum seconds between the starts of two consecutive attempts."""

    min: int = 0
    """Attempts that are always allowed, however long they take."""

    def __post_init__(self):
        if self.total < 0 or self.delay < 0 or self.min < 0:
            raise ValueError(
                f"Attempt strategy values must not be negative: total={self.total}, "
                f"delay={self.delay}, min={self.min}"
            )

    def start(
        self, *, clock: Clock | None = None, sleep: Sleep | None = None
    ) -> "FixedAttempt":
        """Begin a new sequence of attempts.

        :param clock: Monotonic time source in seconds. Defaults to
            :py:func:`time.monotonic`.
        :param sleep: Coroutine used to wait between attempts. Defaults to
            :py:func:`asyncio.sleep`.
        """
        return FixedAttempt(
            self, clock=clock or time.monotonic, sleep=sleep or asyncio.sleep
        )


DEFAULT_ATTEMPT_STRATEGY = FixedAttemptStrategy(total=5.0, delay=0.2, min=5)


class FixedAttempt:
    """A single sequence of attempts.

    The first call to :py:meth:`next` always continues. Later calls wait out the
    remaining delay and continue while the attempt would start before the end of
    the sequence, or while fewer than ``min`` attempts have been made. Once
    :py:meth:`next` returns :py:class:`Exhausted` it always does.

    Not safe for use by more than one call at a time.
    """

    def __init__(
        self,
        strategy: FixedAttemptStrategy,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.strategy = strategy
        self._clock = clock
        self._sleep = sleep
        now = clock()
        self._last = now
        self._end = now + strategy.total
        self._force = True
        self._count = 0
        self._state = AttemptState.NOT_STARTED
        self._last_error: Exception | None = None

    @property
    def count(self) -> int:
        """The number of attempts started so far."""
        return self._count

    @property
    def state(self) -> AttemptState:
        return self._state

    async def next(self, error: Exception | None = None) -> AttemptDecision:
        """Wait until the next attempt may start.

        :param error: The error of the previous attempt. It is carried by
            :py:class:`Exhausted` when the sequence ends.
        """
        if error is not None:
            self._last_error = error
        if self._state is AttemptState.EXHAUSTED:
            return Exhausted(self._last_error)

        now = self._clock()
        sleep = self._next_sleep(now)
        if (
            not self._force
            and now + sleep >= self._end
            and self._count >= self.strategy.min
        ):
            self._state = AttemptState.EXHAUSTED
            logger.debug("Attempts exhausted after %s attempt(s)", self._count)
            return Exhausted(self._last_error)

        self._force = False
        if sleep > 0 and self._count > 0:
            logger.debug("Waiting %.3f seconds before next attempt", sleep)
            await self._sleep(sleep)
            now = self._clock()
        self._count += 1
        self._last = now
        self._state = AttemptState.ACTIVE
        return Continue(self._count)

    def has_next(self) -> bool:
        """Whether the following call to :py:meth:`next` will continue.

        A True result is held until that call, so the answer cannot be overturned
        by time passing in between.
        """
        if self._state is AttemptState.EXHAUSTED:
            return False
        if self._force or self._count < self.strategy.min:
            return True
        now = self._clock()
        if now + self._next_sleep(now) < self._end:
            self._force = True
            return True
        return False

    def _next_sleep(self, now: float) -> float:
        return max(0.0, self.strategy.delay - (now - self._last))
