"""
Verification Models
===================
Data models for phone verification codes.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from ..config import Settings
from ..rate_limit.models import RateLimitInfo


class VerificationSource(str, Enum):
    """Where a verification was started."""
    KIOSK = "kiosk"
    DASHBOARD = "dashboard"
    ADMIN = "admin"


@dataclass(frozen=True)
class KioskContext:
    """Verification started on a station tablet; the station is mandatory."""
    station_slug: str

    @property
    def source(self) -> VerificationSource:
        return VerificationSource.KIOSK


@dataclass(frozen=True)
class DashboardContext:
    user_id: Optional[str] = None

    @property
    def source(self) -> VerificationSource:
        return VerificationSource.DASHBOARD


@dataclass(frozen=True)
class AdminContext:
    user_id: Optional[str] = None

    @property
    def source(self) -> VerificationSource:
        return VerificationSource.ADMIN


VerificationContext = Union[KioskContext, DashboardContext, AdminContext]


@dataclass
class KioskStation:
    id: str
    slug: str
    name: str
    is_active: bool = True


@dataclass
class VerificationRecord:
    """One issued code. Never deleted, only aged out."""
    id: str
    phone_number: str
    code: str
    source: VerificationSource
    created_at: datetime
    expires_at: datetime
    station_id: Optional[str] = None
    attempts: int = 0
    verified: bool = False
    verified_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_exhausted(self, max_attempts: int) -> bool:
        return self.attempts >= max_attempts


@dataclass
class OTPConfig:
    """Verification code configuration."""
    code_ttl_seconds: int = 600
    max_attempts: int = 3
    codes_per_phone_per_hour: int = 3
    min_response_ms: int = 150
    jitter_ms: int = 50

    @classmethod
    def from_settings(cls, settings: Settings) -> "OTPConfig":
        return cls(
            code_ttl_seconds=settings.code_ttl_seconds,
            max_attempts=settings.max_attempts,
            codes_per_phone_per_hour=settings.codes_per_phone_per_hour,
            min_response_ms=settings.verify_min_response_ms,
            jitter_ms=settings.verify_jitter_ms,
        )


@dataclass
class CodeSent:
    expires_in: int
    debug_code: Optional[str] = None
    rate_limit: Optional[RateLimitInfo] = None


@dataclass
class CodeVerified:
    phone_number: str
    verified_at: datetime
    verified: bool = True
    rate_limit: Optional[RateLimitInfo] = None
