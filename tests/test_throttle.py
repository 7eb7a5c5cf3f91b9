"""
Tests for the shared request throttle, using a fake clock and sleep.
"""

from __future__ import annotations

import asyncio

from conftest import RecordingSleep
from utils.throttle import Throttle


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_first_acquire_never_waits():
    sleeper = RecordingSleep()
    throttle = Throttle(min_interval=1.0, sleep=sleeper, clock=FakeClock())
    asyncio.run(throttle.acquire())
    assert sleeper.delays == []


def test_acquire_waits_for_remaining_interval():
    sleeper = RecordingSleep()
    clock = FakeClock()
    throttle = Throttle(min_interval=1.0, sleep=sleeper, clock=clock)

    async def scenario():
        await throttle.acquire()
        clock.now = 0.25
        await throttle.acquire()
        clock.now = 5.0
        await throttle.acquire()

    asyncio.run(scenario())
    assert sleeper.delays == [0.75]


def test_zero_interval_never_waits():
    sleeper = RecordingSleep()
    throttle = Throttle(sleep=sleeper, clock=FakeClock())

    async def scenario():
        for _ in range(3):
            await throttle.acquire()

    asyncio.run(scenario())
    assert sleeper.delays == []


def test_pause_records_only_positive_delays():
    sleeper = RecordingSleep()
    throttle = Throttle(sleep=sleeper)

    async def scenario():
        await throttle.pause(0.2)
        await throttle.pause(0)
        await throttle.pause(5.0)

    asyncio.run(scenario())
    assert sleeper.delays == [0.2, 5.0]
