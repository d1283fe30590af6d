"""
API Dependencies
================
Request-scoped helpers shared by the routers.
"""

from typing import Optional

from fastapi import Request, Response

from ..rate_limit.models import RateLimitInfo
from ..services import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def client_ip(request: Request) -> str:
    """
    Caller IP: first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the
    socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


def apply_rate_limit_headers(response: Response, info: Optional[RateLimitInfo]) -> None:
    if info is None:
        return
    response.headers["X-RateLimit-Limit"] = str(info.limit)
    response.headers["X-RateLimit-Remaining"] = str(info.remaining)
    response.headers["X-RateLimit-Reset"] = str(info.reset_at_seconds)
    if info.retry_after is not None:
        response.headers["Retry-After"] = str(info.retry_after)
