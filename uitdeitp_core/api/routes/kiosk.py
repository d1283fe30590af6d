"""
Kiosk Routes
============
Guest reminder submission from station tablets.
"""

from datetime import datetime, timedelta, timezone

import structlog
from fastapi import APIRouter, Depends, Request, Response, status

from ...errors import (
    INVALID_PHONE_MESSAGE,
    STATION_NOT_FOUND_MESSAGE,
    RateLimited,
    ValidationError,
)
from ...messaging.phone_utils import mask_phone, normalize_phone
from ...rate_limit.limiter import client_identifier
from ...rate_limit.models import KIOSK_POLICY
from ...reminders.intervals import (
    as_date,
    initial_notification_date,
    local_today,
    validate_intervals,
)
from ...reminders.plate import county_name, format_plate_number
from ...services import Services
from ..dependencies import apply_rate_limit_headers, client_ip, get_services
from ..schemas import KioskSubmitRequest, KioskSubmitResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/kiosk", tags=["Kiosk"])

@router.post(
    "/submit",
    response_model=KioskSubmitResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def submit(
    body: KioskSubmitRequest,
    request: Request,
    response: Response,
    services: Services = Depends(get_services),
):
    """
    Create a guest ITP reminder.

    The phone must have completed verification at the tablet shortly
    before submitting.
    """
    settings = services.settings
    info = await services.rate_limiter.check_policy(
        KIOSK_POLICY, client_identifier(station_id=body.station_slug)
    )
    if not info.allowed:
        raise RateLimited(rate_limit=info, reason="kiosk_station_budget")
    apply_rate_limit_headers(response, info)

    if not body.consent_given:
        raise ValidationError("Trebuie să accepți termenii și condițiile", rate_limit=info)

    phone = normalize_phone(body.guest_phone)
    if phone is None:
        raise ValidationError(INVALID_PHONE_MESSAGE, rate_limit=info)

    plate = format_plate_number(body.plate_number)
    if plate is None:
        raise ValidationError("Număr de înmatriculare invalid", rate_limit=info)

    now = datetime.now(timezone.utc)
    today = local_today(settings.timezone, now)
    if body.expiry_date <= today:
        raise ValidationError("Data expirării trebuie să fie în viitor", rate_limit=info)

    station = await services.verification.store.find_active_station(body.station_slug)
    if station is None:
        raise ValidationError(STATION_NOT_FOUND_MESSAGE, rate_limit=info)

    window = timedelta(minutes=settings.kiosk_verification_window_minutes)
    if not await services.verification.has_recent_verification(phone, window):
        raise ValidationError(
            "Numărul de telefon nu a fost verificat",
            reason="phone_not_verified",
            rate_limit=info,
        )

    intervals = validate_intervals(settings.default_intervals)
    next_date = initial_notification_date(body.expiry_date, intervals, today)
    reminder = await services.reminders.create_kiosk_reminder(
        station_id=station.id,
        guest_name=body.guest_name.strip(),
        guest_phone=phone,
        plate_number=plate,
        expiry_date=body.expiry_date,
        intervals=intervals,
        next_notification_date=as_date(next_date) if next_date else None,
        consent_ip=client_ip(request),
        now=now,
    )

    logger.info(
        "Kiosk reminder created",
        reminder_id=reminder.id,
        station_id=station.id,
        phone=mask_phone(phone),
        county=county_name(plate),
        next_notification_date=next_date,
    )
    return KioskSubmitResponse(
        id=reminder.id,
        message="Reminder creat cu succes",
        station_name=station.name,
        next_notification_date=next_date,
    )
