"""
Phone Verification Module
=========================
Six-digit SMS codes with expiry, attempt limits and constant-time responses.
"""

# Re-export all public APIs
from .models import (
    VerificationSource,
    KioskContext,
    DashboardContext,
    AdminContext,
    VerificationContext,
    KioskStation,
    VerificationRecord,
    OTPConfig,
    CodeSent,
    CodeVerified,
)
from .generator import generate_code, codes_match, is_well_formed, CODE_MIN, CODE_MAX
from .responder import ConstantTimeResponder
from .store import VerificationStore, InMemoryVerificationStore
from .engine import VerificationCodeEngine, utc_now

__all__ = [
    # Models
    "VerificationSource",
    "KioskContext",
    "DashboardContext",
    "AdminContext",
    "VerificationContext",
    "KioskStation",
    "VerificationRecord",
    "OTPConfig",
    "CodeSent",
    "CodeVerified",
    # Generation
    "generate_code",
    "codes_match",
    "is_well_formed",
    "CODE_MIN",
    "CODE_MAX",
    # Engine
    "ConstantTimeResponder",
    "VerificationStore",
    "InMemoryVerificationStore",
    "VerificationCodeEngine",
    "utc_now",
]
