"""
Rate Limit Models
=================
Data models for rate limiting decisions and policies.
"""

from dataclasses import dataclass
from typing import Optional

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS


@dataclass
class RateLimitInfo:
    """Rate limit check result with quota information."""
    allowed: bool
    remaining: int
    limit: int
    reset_at: int  # Unix timestamp, milliseconds
    retry_after: Optional[int] = None  # Seconds until retry allowed

    @property
    def reset_at_seconds(self) -> int:
        return self.reset_at // 1000


@dataclass(frozen=True)
class RateLimitPolicy:
    """A named budget: ``max_requests`` per ``window_ms``."""
    name: str
    max_requests: int
    window_ms: int


DEFAULT_POLICY = RateLimitPolicy("default", 100, 15 * MINUTE_MS)
KIOSK_POLICY = RateLimitPolicy("kiosk", 50, 15 * MINUTE_MS)
SEND_POLICY = RateLimitPolicy("send", 10, HOUR_MS)
RESEND_POLICY = RateLimitPolicy("resend", 5, HOUR_MS)
VERIFY_POLICY = RateLimitPolicy("verify", 20, HOUR_MS)
