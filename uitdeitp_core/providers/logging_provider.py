"""
Logging Providers
=================
Development sinks that log messages instead of delivering them.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from .base import EmailProvider, SMSProvider, SendResult
from ..messaging.phone_utils import mask_phone
from ..messaging.segmentation import calculate_segments

logger = structlog.get_logger(__name__)


@dataclass
class OutboxMessage:
    to: str
    body: str
    subject: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class LoggingSMSProvider(SMSProvider):
    """Keeps every SMS in ``outbox`` and logs it."""

    name = "logging"

    def __init__(self):
        super().__init__()
        self.outbox: List[OutboxMessage] = []

    async def send_sms(
        self,
        to: str,
        body: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SendResult:
        parts, encoding, _ = calculate_segments(body)
        self.outbox.append(OutboxMessage(to=to, body=body, metadata=metadata or {}))
        logger.info("SMS captured", to=mask_phone(to), parts=parts, encoding=encoding.value)
        return SendResult(
            success=True,
            provider=self.name,
            message_id=f"log_{uuid.uuid4().hex[:12]}",
            parts=parts,
        )


class LoggingEmailProvider(EmailProvider):
    """Keeps every email in ``outbox`` and logs it."""

    name = "logging"

    def __init__(self):
        super().__init__()
        self.outbox: List[OutboxMessage] = []

    async def send_email(self, to: str, subject: str, html: str) -> SendResult:
        self.outbox.append(OutboxMessage(to=to, body=html, subject=subject))
        logger.info("Email captured", subject=subject)
        return SendResult(
            success=True,
            provider=self.name,
            message_id=f"log_{uuid.uuid4().hex[:12]}",
        )
