#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import time

import pytest
from amz_core.interfaces.retries import Continue, Exhausted
from amz_core.retries import (
    DEFAULT_ATTEMPT_STRATEGY,
    AttemptState,
    FixedAttemptStrategy,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


async def test_attempt_timing(clock: FakeClock) -> None:
    strategy = FixedAttemptStrategy(total=0.25, delay=0.1)
    attempt = strategy.start(clock=clock, sleep=clock.sleep)
    start = clock.now

    started: list[float] = []
    while await attempt.next():
        started.append(round(clock.now - start, 6))

    assert started == [0.0, 0.1, 0.2]
    assert clock.sleeps == pytest.approx([0.1, 0.1])
    assert attempt.count == 3
    assert attempt.state is AttemptState.EXHAUSTED


async def test_attempt_timing_real_clock() -> None:
    strategy = FixedAttemptStrategy(total=0.25, delay=0.1)
    attempt = strategy.start()
    start = time.monotonic()
    offsets: list[float] = []
    while await attempt.next():
        offsets.append(time.monotonic() - start)
    finished = time.monotonic() - start

    assert len(offsets) == 3
    for offset, expected in zip(offsets, [0.0, 0.1, 0.2]):
        assert offset == pytest.approx(expected, abs=0.05)
    assert finished == pytest.approx(0.2, abs=0.05)


async def test_elapsed_time_counts_toward_delay(clock: FakeClock) -> None:
    attempt = FixedAttemptStrategy(total=1.0, delay=0.3).start(
        clock=clock, sleep=clock.sleep
    )
    assert await attempt.next()
    clock.advance(0.2)
    assert await attempt.next()
    assert clock.sleeps == pytest.approx([0.1])


async def test_zero_strategy_allows_one_attempt(clock: FakeClock) -> None:
    attempt = FixedAttemptStrategy().start(clock=clock, sleep=clock.sleep)
    assert attempt.state is AttemptState.NOT_STARTED
    assert await attempt.next() == Continue(1)
    assert attempt.state is AttemptState.ACTIVE
    assert not await attempt.next()


async def test_has_next_without_time_left(clock: FakeClock) -> None:
    attempt = FixedAttemptStrategy().start(clock=clock, sleep=clock.sleep)
    assert await attempt.next()
    assert not attempt.has_next()
    assert not await attempt.next()


async def test_has_next_is_honored_after_time_passes(clock: FakeClock) -> None:
    attempt = FixedAttemptStrategy(total=0.2).start(clock=clock, sleep=clock.sleep)
    assert await attempt.next()
    assert attempt.has_next()
    clock.advance(0.2)
    assert attempt.has_next()
    assert await attempt.next()
    assert not await attempt.next()


async def test_min_attempts_survive_timeout(clock: FakeClock) -> None:
    attempt = FixedAttemptStrategy(total=0.1, min=2).start(
        clock=clock, sleep=clock.sleep
    )
    clock.advance(0.1)
    assert await attempt.next()
    assert attempt.has_next()
    assert await attempt.next()
    assert not attempt.has_next()
    assert not await attempt.next()
    assert attempt.count == 2


async def test_exhausted_is_terminal_and_keeps_last_error(clock: FakeClock) -> None:
    attempt = FixedAttemptStrategy(total=1.0).start(clock=clock, sleep=clock.sleep)
    first = ValueError("first")
    second = ValueError("second")
    assert await attempt.next()
    clock.advance(1.0)
    assert await attempt.next(first) == Exhausted(first)

    # Time can no longer revive the sequence.
    clock.now -= 10
    assert not attempt.has_next()
    decision = await attempt.next(second)
    assert isinstance(decision, Exhausted)
    assert decision.last_error is second


@pytest.mark.parametrize(
    "total,delay,minimum",
    [(1.0, 0.5, 3), (0.3, 0.1, 0), (0.0, 0.0, 2), (0.5, 0.2, 5)],
)
async def test_has_next_never_contradicts_next(
    clock: FakeClock, total: float, delay: float, minimum: int
) -> None:
    attempt = FixedAttemptStrategy(total=total, delay=delay, min=minimum).start(
        clock=clock, sleep=clock.sleep
    )
    assert await attempt.next()
    for _ in range(20):
        clock.advance(0.07)
        expected = attempt.has_next()
        clock.advance(0.07)
        decision = await attempt.next()
        if expected:
            assert isinstance(decision, Continue)
        if not decision:
            break
    assert attempt.count >= max(minimum, 1)


async def test_sequences_are_independent(clock: FakeClock) -> None:
    strategy = FixedAttemptStrategy(total=0.0, min=2)
    first = strategy.start(clock=clock, sleep=clock.sleep)
    second = strategy.start(clock=clock, sleep=clock.sleep)
    assert await first.next()
    assert await first.next()
    assert not await first.next()
    assert await second.next()
    assert second.count == 1


async def test_cancellation_during_delay() -> None:
    attempt = FixedAttemptStrategy(total=10.0, delay=10.0).start()
    assert await attempt.next()
    task = asyncio.create_task(attempt.next())
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


def test_negative_values_rejected() -> None:
    with pytest.raises(ValueError):
        FixedAttemptStrategy(total=-1.0)


def test_default_strategy() -> None:
    assert DEFAULT_ATTEMPT_STRATEGY == FixedAttemptStrategy(total=5.0, delay=0.2, min=5)
