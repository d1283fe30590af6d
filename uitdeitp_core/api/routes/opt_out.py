"""
Opt-Out Routes
==============
Short-link lookups and global unsubscribe.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request, Response

from ...errors import RateLimited, ValidationError
from ...messaging.opt_out import decode_opt_out_token
from ...messaging.phone_utils import display_phone, mask_phone
from ...rate_limit.limiter import client_identifier
from ...rate_limit.models import DEFAULT_POLICY
from ...services import Services
from ..dependencies import apply_rate_limit_headers, client_ip, get_services
from ..schemas import OptOutRequest, OptOutResponse, OptOutStatusResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Opt-out"])

INVALID_TOKEN_MESSAGE = "Token invalid"
OPTED_OUT_MESSAGE = "Ai fost dezabonat cu succes de la notificări"


async def _limit(request: Request, response: Response, services: Services) -> None:
    info = await services.rate_limiter.check_policy(
        DEFAULT_POLICY, client_identifier(ip=client_ip(request))
    )
    if not info.allowed:
        raise RateLimited(rate_limit=info, reason="default_ip_budget")
    apply_rate_limit_headers(response, info)


def _phone_from_token(token: Optional[str]) -> str:
    phone = decode_opt_out_token(token)
    if phone is None:
        raise ValidationError(INVALID_TOKEN_MESSAGE, reason="undecodable_token")
    return phone


async def _status(token: Optional[str], services: Services) -> OptOutStatusResponse:
    phone = _phone_from_token(token)
    opted_out_at = await services.opt_outs.get_opted_out_at(phone)
    return OptOutStatusResponse(
        opted_out=opted_out_at is not None,
        phone=display_phone(phone),
        opted_out_at=opted_out_at.isoformat() if opted_out_at else None,
    )


@router.get("/o", response_model=OptOutStatusResponse, response_model_exclude_none=True)
async def short_link(
    request: Request,
    response: Response,
    t: Optional[str] = Query(default=None, max_length=32),
    services: Services = Depends(get_services),
):
    """Target of the SMS unsubscribe link ``/o?t=<token>``."""
    await _limit(request, response, services)
    return await _status(t, services)


@router.get("/api/opt-out", response_model=OptOutStatusResponse, response_model_exclude_none=True)
async def opt_out_status(
    request: Request,
    response: Response,
    t: Optional[str] = Query(default=None, max_length=32),
    services: Services = Depends(get_services),
):
    await _limit(request, response, services)
    return await _status(t, services)


@router.post("/api/opt-out", response_model=OptOutResponse)
async def opt_out(
    body: OptOutRequest,
    request: Request,
    response: Response,
    services: Services = Depends(get_services),
):
    """Unsubscribe the phone behind ``token`` from every notification."""
    await _limit(request, response, services)
    phone = _phone_from_token(body.token)
    await services.opt_outs.record_opt_out(phone, datetime.now(timezone.utc))
    logger.info("Phone opted out", phone=mask_phone(phone))
    return OptOutResponse(message=OPTED_OUT_MESSAGE)
