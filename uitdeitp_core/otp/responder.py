"""
Constant-Time Responder
=======================
Pads an operation to a randomized minimum duration so that success and
every failure branch take indistinguishable time.
"""

import asyncio
import secrets
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable


class ConstantTimeResponder:
    """
    Usage:
        async with responder.padded():
            ...  # any exit path, including exceptions, is padded
    """

    def __init__(
        self,
        min_ms: int = 150,
        jitter_ms: int = 50,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            min_ms: Minimum duration of every call
            jitter_ms: Random extra time added on top of the floor
            sleep: Awaitable sleep (tests substitute a recorder)
            monotonic: Monotonic clock in seconds
        """
        self.min_ms = min_ms
        self.jitter_ms = jitter_ms
        self._sleep = sleep
        self._monotonic = monotonic

    def target_seconds(self) -> float:
        jitter = secrets.randbelow(self.jitter_ms + 1) if self.jitter_ms > 0 else 0
        return (self.min_ms + jitter) / 1000

    @asynccontextmanager
    async def padded(self) -> AsyncIterator[None]:
        target = self.target_seconds()
        start = self._monotonic()
        try:
            yield
        finally:
            remaining = target - (self._monotonic() - start)
            if remaining > 0:
                await self._sleep(remaining)
