"""
API Schemas
===========
Request and response bodies. JSON uses camelCase like the web client.
"""

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SendCodeRequest(_CamelModel):
    phone: str = Field(min_length=1, max_length=32)
    station_slug: Optional[str] = Field(default=None, alias="stationSlug", max_length=100)


class ResendCodeRequest(_CamelModel):
    phone: str = Field(min_length=1, max_length=32)
    station_slug: str = Field(alias="stationSlug", min_length=1, max_length=100)


class VerifyCodeRequest(_CamelModel):
    phone: str = Field(min_length=1, max_length=32)
    code: str = Field(min_length=1, max_length=12)


class CodeSentResponse(_CamelModel):
    success: bool = True
    expires_in: int = Field(alias="expiresIn")
    code: Optional[str] = None


class VerifiedResponse(_CamelModel):
    success: bool = True
    verified: bool = True


class OptOutRequest(_CamelModel):
    token: str = Field(min_length=1, max_length=32)


class OptOutStatusResponse(_CamelModel):
    success: bool = True
    opted_out: bool = Field(alias="optedOut")
    phone: str
    opted_out_at: Optional[str] = Field(default=None, alias="optedOutAt")


class OptOutResponse(_CamelModel):
    success: bool = True
    message: str


class KioskSubmitRequest(_CamelModel):
    station_slug: str = Field(alias="stationSlug", min_length=1, max_length=100)
    guest_name: str = Field(alias="guestName", min_length=3, max_length=200)
    guest_phone: str = Field(alias="guestPhone", min_length=1, max_length=32)
    plate_number: str = Field(alias="plateNumber", min_length=1, max_length=16)
    expiry_date: date = Field(alias="expiryDate")
    consent_given: bool = Field(alias="consentGiven")


class KioskSubmitResponse(_CamelModel):
    success: bool = True
    id: str
    message: str
    station_name: str = Field(alias="stationName")
    next_notification_date: Optional[str] = Field(default=None, alias="nextNotificationDate")


class BatchResponse(_CamelModel):
    success: bool = True
    stats: Dict[str, Any]
