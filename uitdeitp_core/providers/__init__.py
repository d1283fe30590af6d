"""
Providers Module
================
Outbound SMS and email providers.
"""

from typing import Optional

from ..config import Settings

# Re-export all public APIs
from .base import BaseProvider, SMSProvider, EmailProvider, SendResult
from .notifyhub import NotifyHubSMSProvider
from .resend_email import ResendEmailProvider, RESEND_API_URL
from .logging_provider import LoggingSMSProvider, LoggingEmailProvider, OutboxMessage


def build_sms_provider(settings: Settings) -> SMSProvider:
    """NotifyHub when a key is configured, otherwise the logging sink."""
    if settings.notifyhub_api_key:
        return NotifyHubSMSProvider(
            base_url=settings.notifyhub_url,
            api_key=settings.notifyhub_api_key,
            timeout=settings.notifyhub_timeout,
            max_attempts=settings.notifyhub_max_attempts,
        )
    if settings.is_production:
        raise RuntimeError("NOTIFYHUB_API_KEY is required in production")
    return LoggingSMSProvider()


def build_email_provider(settings: Settings) -> Optional[EmailProvider]:
    """Resend when a key is configured, the logging sink in development, else None."""
    if settings.resend_api_key:
        return ResendEmailProvider(
            api_key=settings.resend_api_key,
            from_email=settings.resend_from_email,
        )
    if settings.is_production:
        return None
    return LoggingEmailProvider()


__all__ = [
    # Base
    "BaseProvider",
    "SMSProvider",
    "EmailProvider",
    "SendResult",
    # Adapters
    "NotifyHubSMSProvider",
    "ResendEmailProvider",
    "RESEND_API_URL",
    "LoggingSMSProvider",
    "LoggingEmailProvider",
    "OutboxMessage",
    # Factories
    "build_sms_provider",
    "build_email_provider",
]
