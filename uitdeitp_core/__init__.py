"""
uitdeITP Core
=============
Expiry reminders for ITP, RCA and Rovinieta.

Modules:
- messaging: phone normalization, opt-out tokens, SMS templates
- otp: phone verification codes
- rate_limit: fixed-window rate limiting
- reminders: interval scheduling and the daily reminder batch
- providers: NotifyHub SMS and Resend email adapters
- persistence: SQLAlchemy tables and repositories
- api: FastAPI application
"""

__version__ = "1.0.0"

# Re-export all public APIs
from .config import Settings, get_settings
from .errors import (
    UitdeitpError,
    ValidationError,
    InvalidOrExpiredCode,
    RateLimited,
    ExternalServiceError,
    AuthenticationError,
)
from .messaging import (
    normalize_phone,
    display_phone,
    encode_opt_out_token,
    decode_opt_out_token,
    build_opt_out_link,
)
from .otp import VerificationCodeEngine, KioskContext, DashboardContext, AdminContext
from .rate_limit import RateLimiter, RateLimitInfo
from .reminders import (
    next_notification_date,
    days_until_expiry,
    should_notify_today,
    ReminderBatchProcessor,
)

__all__ = [
    "__version__",
    # Config
    "Settings",
    "get_settings",
    # Errors
    "UitdeitpError",
    "ValidationError",
    "InvalidOrExpiredCode",
    "RateLimited",
    "ExternalServiceError",
    "AuthenticationError",
    # Messaging
    "normalize_phone",
    "display_phone",
    "encode_opt_out_token",
    "decode_opt_out_token",
    "build_opt_out_link",
    # Verification
    "VerificationCodeEngine",
    "KioskContext",
    "DashboardContext",
    "AdminContext",
    # Rate limiting
    "RateLimiter",
    "RateLimitInfo",
    # Reminders
    "next_notification_date",
    "days_until_expiry",
    "should_notify_today",
    "ReminderBatchProcessor",
]
