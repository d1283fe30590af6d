"""
Redis Rate Limit Store
======================
Fixed-window counters shared by every instance, updated atomically with a
Lua script.
"""

import time
from typing import Callable, Optional, Tuple

import structlog
from redis.exceptions import NoScriptError, RedisError

logger = structlog.get_logger(__name__)

# Increment, start the window on the first hit, report the remaining TTL.
FIXED_WINDOW_SCRIPT = """
local current = redis.call('INCR', KEYS[1])
if current == 1 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
end
local ttl = redis.call('PTTL', KEYS[1])
if ttl < 0 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
    ttl = tonumber(ARGV[1])
end
return {current, ttl}
"""


class RedisRateLimitStore:
    """
    Redis-backed fixed-window counters.

    Fails open: when Redis is unreachable the request is counted as the
    first one of a fresh window.
    """

    def __init__(self, redis_client, clock: Callable[[], float] = time.time):
        """
        Args:
            redis_client: Async Redis client (``redis.asyncio.Redis``)
            clock: Returns the current Unix time in seconds
        """
        self.redis = redis_client
        self._clock = clock
        self._script_sha: Optional[str] = None

    async def _ensure_script(self) -> str:
        """Load the Lua script into Redis if needed."""
        if self._script_sha is None:
            self._script_sha = await self.redis.script_load(FIXED_WINDOW_SCRIPT)
        return self._script_sha

    async def _run(self, key: str, window_ms: int):
        script_sha = await self._ensure_script()
        try:
            return await self.redis.evalsha(script_sha, 1, key, window_ms)
        except NoScriptError:
            # Script cache flushed (restart or SCRIPT FLUSH)
            self._script_sha = None
            script_sha = await self._ensure_script()
            return await self.redis.evalsha(script_sha, 1, key, window_ms)

    async def increment(self, key: str, window_ms: int) -> Tuple[int, int]:
        """
        Count one request against ``key``.

        Returns:
            Tuple of (count in the current window, window reset time in ms)
        """
        now = int(self._clock() * 1000)
        try:
            count, ttl = await self._run(key, window_ms)
            return int(count), now + int(ttl)
        except RedisError as e:
            logger.error("Rate limit store unavailable", key=key, error=str(e))
            return 0, now + window_ms
