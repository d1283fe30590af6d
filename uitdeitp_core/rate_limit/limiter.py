"""
Rate Limiter
============
Fixed-window limiter over a pluggable counter store.
"""

import math
import time
from typing import Callable, Optional, Protocol, Tuple

import structlog

from .models import RateLimitInfo, RateLimitPolicy
from .in_memory import InMemoryRateLimitStore

logger = structlog.get_logger(__name__)


class RateLimitStore(Protocol):
    async def increment(self, key: str, window_ms: int) -> Tuple[int, int]:
        ...


def build_key(prefix: str, identifier: str) -> str:
    """Generate a rate limit key."""
    return f"ratelimit:{prefix}:{identifier}"


def client_identifier(
    user_id: Optional[str] = None,
    station_id: Optional[str] = None,
    ip: Optional[str] = None,
) -> str:
    """Pick the most specific identity of a caller: user, then station, then IP."""
    if user_id:
        return f"user:{user_id}"
    if station_id:
        return f"station:{station_id}"
    return f"ip:{ip or 'unknown'}"


class RateLimiter:
    """
    Fixed-window rate limiter.

    Every call counts, denied ones included, so hammering a closed window
    keeps it closed until it resets.
    """

    def __init__(
        self,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store if store is not None else InMemoryRateLimitStore(clock=clock)
        self._clock = clock

    async def check(self, key: str, max_requests: int, window_ms: int) -> RateLimitInfo:
        """
        Count a request and decide whether it is allowed.

        Args:
            key: Rate limit key
            max_requests: Requests allowed per window
            window_ms: Window length in milliseconds

        Returns:
            RateLimitInfo with decision and quota
        """
        count, reset_at = await self.store.increment(key, window_ms)
        allowed = count <= max_requests
        retry_after = None
        if not allowed:
            now = int(self._clock() * 1000)
            retry_after = max(1, math.ceil((reset_at - now) / 1000))
            logger.warning("Rate limit exceeded", key=key, count=count, limit=max_requests)

        return RateLimitInfo(
            allowed=allowed,
            remaining=max(0, max_requests - count),
            limit=max_requests,
            reset_at=reset_at,
            retry_after=retry_after,
        )

    async def check_policy(self, policy: RateLimitPolicy, identifier: str) -> RateLimitInfo:
        """Check ``identifier`` against a named policy."""
        return await self.check(
            build_key(policy.name, identifier),
            policy.max_requests,
            policy.window_ms,
        )
