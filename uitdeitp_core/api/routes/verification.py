"""
Verification Routes
===================
Send, resend and verify phone codes.

Every response carries the caller's rate-limit headers.
"""

from fastapi import APIRouter, Depends, Request, Response

from ...otp.models import DashboardContext, KioskContext
from ...services import Services
from ..dependencies import apply_rate_limit_headers, client_ip, get_services
from ..schemas import (
    CodeSentResponse,
    ResendCodeRequest,
    SendCodeRequest,
    VerifiedResponse,
    VerifyCodeRequest,
)

router = APIRouter(prefix="/api/verification", tags=["Verification"])


@router.post("/send", response_model=CodeSentResponse, response_model_exclude_none=True)
async def send_code(
    body: SendCodeRequest,
    request: Request,
    response: Response,
    services: Services = Depends(get_services),
):
    """Send a code. Kiosk flows pass ``stationSlug``, the dashboard does not."""
    if body.station_slug:
        context = KioskContext(station_slug=body.station_slug)
    else:
        context = DashboardContext()

    result = await services.verification.request_code(
        body.phone, context, client_ip=client_ip(request)
    )
    apply_rate_limit_headers(response, result.rate_limit)
    return CodeSentResponse(expires_in=result.expires_in, code=result.debug_code)


@router.post("/resend", response_model=CodeSentResponse, response_model_exclude_none=True)
async def resend_code(
    body: ResendCodeRequest,
    request: Request,
    response: Response,
    services: Services = Depends(get_services),
):
    result = await services.verification.resend_code(
        body.phone, body.station_slug, client_ip=client_ip(request)
    )
    apply_rate_limit_headers(response, result.rate_limit)
    return CodeSentResponse(expires_in=result.expires_in, code=result.debug_code)


@router.post("/verify", response_model=VerifiedResponse)
async def verify_code(
    body: VerifyCodeRequest,
    request: Request,
    response: Response,
    services: Services = Depends(get_services),
):
    result = await services.verification.verify_code(
        body.phone, body.code, client_ip=client_ip(request)
    )
    apply_rate_limit_headers(response, result.rate_limit)
    return VerifiedResponse(verified=result.verified)
