"""
Request Throttle
================
One object that owns every deliberate wait in the pipeline.

Two kinds of waiting:
- acquire(): called before each RPC request; enforces a minimum spacing
  between requests (min_interval seconds)
- pause(seconds): the fixed delays stages insert themselves, e.g. 1s
  between signature pages or 5s before retrying a failed page

The sleep function and clock are injectable, so tests can record the
delays instead of actually waiting.
"""

import asyncio
import time
from typing import Awaitable, Callable


class Throttle:
    """
    Fixed-interval throttle shared by the RPC client and all stages.

    Usage:
        throttle = Throttle(min_interval=0.1)
        await throttle.acquire()   # before a request
        await throttle.pause(1.0)  # explicit delay
    """

    def __init__(
        self,
        min_interval: float = 0.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_interval = min_interval
        self._sleep = sleep
        self._clock = clock
        self._last_request: float | None = None

    async def acquire(self) -> None:
        """Wait until min_interval has passed since the previous acquire."""
        if self._last_request is not None and self.min_interval > 0:
            elapsed = self._clock() - self._last_request
            remaining = self.min_interval - elapsed
            if remaining > 0:
                await self._sleep(remaining)
        self._last_request = self._clock()

    async def pause(self, seconds: float) -> None:
        if seconds > 0:
            await self._sleep(seconds)
