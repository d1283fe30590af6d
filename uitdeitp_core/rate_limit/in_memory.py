"""
In-Memory Rate Limit Store
==========================
Fixed-window counters kept in process memory.

Only correct for a single process. Use RedisRateLimitStore when the
service runs on more than one instance.
"""

import threading
import time
from typing import Callable, Dict, Tuple


class InMemoryRateLimitStore:
    """Fixed-window counters guarded by a lock."""

    def __init__(self, clock: Callable[[], float] = time.time, max_keys: int = 10_000):
        """
        Args:
            clock: Returns the current Unix time in seconds
            max_keys: Expired windows are swept once this many keys exist
        """
        self._clock = clock
        self._max_keys = max_keys
        self._windows: Dict[str, Tuple[int, int]] = {}
        self._lock = threading.Lock()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def increment(self, key: str, window_ms: int) -> Tuple[int, int]:
        """
        Count one request against ``key``.

        Returns:
            Tuple of (count in the current window, window reset time in ms)
        """
        now = self._now_ms()
        with self._lock:
            count, reset_at = self._windows.get(key, (0, 0))
            if now > reset_at:
                count, reset_at = 1, now + window_ms
            else:
                count += 1
            self._windows[key] = (count, reset_at)

            if len(self._windows) > self._max_keys:
                self._sweep(now)

        return count, reset_at

    def _sweep(self, now: int) -> None:
        expired = [k for k, (_, reset_at) in self._windows.items() if now > reset_at]
        for k in expired:
            del self._windows[k]

    def cleanup(self) -> int:
        """Drop expired windows. Returns the number of keys removed."""
        now = self._now_ms()
        with self._lock:
            before = len(self._windows)
            self._sweep(now)
            return before - len(self._windows)

    def __len__(self) -> int:
        return len(self._windows)
