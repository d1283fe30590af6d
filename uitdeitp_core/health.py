"""
Health Endpoints
================
Liveness and readiness probes plus a component report for the database,
Redis and the SMS gateway.

Only the database decides readiness. Redis and NotifyHub outages degrade
the report: rate limiting fails open and SMS failures are per-request.
"""

import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text

logger = structlog.get_logger(__name__)


class OverallStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentReport(BaseModel):
    status: str
    latency_ms: Optional[float] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == "error"


class HealthReport(BaseModel):
    status: OverallStatus
    service: str
    version: str
    components: Dict[str, ComponentReport]
    timestamp: float


async def _timed(name: str, probe: Callable[[], Awaitable[Any]]) -> ComponentReport:
    """Run ``probe`` and time it; any exception marks the component as failed."""
    started = time.perf_counter()
    try:
        outcome = await probe()
    except Exception as e:
        logger.error("Health probe failed", component=name, error=str(e))
        return ComponentReport(status="error", error=str(e) or type(e).__name__)
    latency = round((time.perf_counter() - started) * 1000, 2)

    # Gateway probes answer with {"ok": bool, "error": ...} instead of raising
    if isinstance(outcome, dict) and not outcome.get("ok", True):
        return ComponentReport(status="error", latency_ms=latency, error=outcome.get("error"))
    return ComponentReport(status="connected", latency_ms=latency)


async def probe_database(engine) -> ComponentReport:
    async def select_one():
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    return await _timed("database", select_one)


async def collect(services) -> Dict[str, ComponentReport]:
    """Probe every component the running service actually uses."""
    components: Dict[str, ComponentReport] = {}
    if services.db_engine is not None:
        components["database"] = await probe_database(services.db_engine)
    if services.redis_client is not None:
        components["redis"] = await _timed("redis", services.redis_client.ping)
    gateway_probe = getattr(services.sms_provider, "health_check", None)
    if gateway_probe is not None:
        components["sms_gateway"] = await _timed("sms_gateway", gateway_probe)
    return components


def overall(components: Dict[str, ComponentReport]) -> OverallStatus:
    database = components.get("database")
    if database is not None and database.failed:
        return OverallStatus.UNHEALTHY
    if any(report.failed for report in components.values()):
        return OverallStatus.DEGRADED
    return OverallStatus.HEALTHY


def create_health_router(service_name: str, version: str) -> APIRouter:
    """
    Router with ``/health``, ``/health/live`` and ``/health/ready``.

    Components are read from ``request.app.state.services`` on every call.
    """
    router = APIRouter(tags=["Health"])

    @router.get("/health", response_model=HealthReport)
    async def health(request: Request) -> HealthReport:
        components = await collect(request.app.state.services)
        return HealthReport(
            status=overall(components),
            service=service_name,
            version=version,
            components=components,
            timestamp=time.time(),
        )

    @router.get("/health/live")
    async def live():
        return {"status": "alive"}

    @router.get("/health/ready")
    async def ready(request: Request):
        """503 while the database does not answer."""
        engine = request.app.state.services.db_engine
        if engine is not None and (await probe_database(engine)).failed:
            return JSONResponse(
                status_code=503,
                content={"status": "not_ready", "reason": "database_unavailable"},
            )
        return {"status": "ready"}

    return router
