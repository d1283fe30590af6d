"""
Error Taxonomy
==============
Exceptions raised by the core and mapped to HTTP responses by the API layer.

User-facing messages are Romanian and never reveal internal details. The
``reason`` attribute carries the technical cause for logs only.
"""

from typing import Any, Optional

GENERIC_SEND_ERROR = "Nu am putut trimite codul. Te rugăm să încerci din nou mai târziu."
INVALID_CODE_MESSAGE = "Cod invalid sau expirat"
INVALID_PHONE_MESSAGE = "Număr de telefon invalid"
INVALID_DATA_MESSAGE = "Date invalide"
RATE_LIMIT_MESSAGE = "Prea multe încercări. Te rugăm să aștepți înainte de a încerca din nou."
STATION_NOT_FOUND_MESSAGE = "Stația nu a fost găsită"
INTERNAL_ERROR_MESSAGE = "Eroare internă"
UNAUTHORIZED_MESSAGE = "Neautorizat"


class UitdeitpError(Exception):
    """Base exception for all user-visible failures."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = INTERNAL_ERROR_MESSAGE

    def __init__(
        self,
        message: Optional[str] = None,
        reason: Optional[str] = None,
        rate_limit: Any = None,
    ):
        self.message = message or self.default_message
        self.reason = reason
        # RateLimitInfo of the request, when a limiter was consulted
        self.rate_limit = rate_limit
        super().__init__(f"{self.code}: {reason or self.message}")


class ValidationError(UitdeitpError):
    """Malformed or rejected input (400)."""

    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = INVALID_DATA_MESSAGE


class InvalidOrExpiredCode(ValidationError):
    """
    Any verification failure.

    Wrong code, expired code, exhausted attempts and unknown phone all share
    the same message so callers cannot enumerate numbers.
    """

    code = "INVALID_CODE"
    default_message = INVALID_CODE_MESSAGE

    def __init__(self, reason: Optional[str] = None, rate_limit: Any = None):
        super().__init__(INVALID_CODE_MESSAGE, reason=reason, rate_limit=rate_limit)


class RateLimited(UitdeitpError):
    """Request budget exhausted (429)."""

    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    default_message = RATE_LIMIT_MESSAGE

    @property
    def retry_after(self) -> Optional[int]:
        if self.rate_limit is None:
            return None
        return self.rate_limit.retry_after


class ExternalServiceError(UitdeitpError):
    """An outbound provider or the store failed (503)."""

    status_code = 503
    code = "EXTERNAL_SERVICE_ERROR"
    default_message = GENERIC_SEND_ERROR


class AuthenticationError(UitdeitpError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = UNAUTHORIZED_MESSAGE
