"""
Cron Routes
===========
Entry point for the external daily scheduler.
"""

import hmac

import structlog
from fastapi import APIRouter, Depends, Request

from ...errors import AuthenticationError
from ...services import Services
from ..dependencies import get_services
from ..schemas import BatchResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/cron", tags=["Cron"])


def _authorize(request: Request, services: Services) -> None:
    """Bearer ``CRON_SECRET``. Without a configured secret nothing gets in."""
    secret = services.settings.cron_secret
    header = request.headers.get("authorization", "")
    if not secret or not hmac.compare_digest(header.encode(), f"Bearer {secret}".encode()):
        logger.warning("Rejected cron call", path=request.url.path)
        raise AuthenticationError(reason="bad_cron_secret")


async def _run(request: Request, services: Services) -> BatchResponse:
    _authorize(request, services)
    report = await services.reminder_processor().run()
    return BatchResponse(stats=report.to_dict())


@router.post("/process-reminders", response_model=BatchResponse)
async def process_reminders(request: Request, services: Services = Depends(get_services)):
    """Run the reminder batch for today (Bucharest time)."""
    return await _run(request, services)


@router.get("/process-reminders", response_model=BatchResponse)
async def process_reminders_get(request: Request, services: Services = Depends(get_services)):
    return await _run(request, services)
