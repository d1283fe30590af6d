"""
Rate Limiting Module
====================
Fixed-window rate limiting with in-memory and Redis counter stores.
"""

# Re-export all public APIs
from .models import (
    RateLimitInfo,
    RateLimitPolicy,
    DEFAULT_POLICY,
    KIOSK_POLICY,
    SEND_POLICY,
    RESEND_POLICY,
    VERIFY_POLICY,
    MINUTE_MS,
    HOUR_MS,
)
from .in_memory import InMemoryRateLimitStore
from .redis_store import RedisRateLimitStore, FIXED_WINDOW_SCRIPT
from .limiter import RateLimiter, RateLimitStore, build_key, client_identifier

__all__ = [
    # Models
    "RateLimitInfo",
    "RateLimitPolicy",
    # Policies
    "DEFAULT_POLICY",
    "KIOSK_POLICY",
    "SEND_POLICY",
    "RESEND_POLICY",
    "VERIFY_POLICY",
    "MINUTE_MS",
    "HOUR_MS",
    # Stores
    "RateLimitStore",
    "InMemoryRateLimitStore",
    "RedisRateLimitStore",
    "FIXED_WINDOW_SCRIPT",
    # Limiter
    "RateLimiter",
    "build_key",
    "client_identifier",
]
