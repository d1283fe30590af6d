"""
Provider Base
=============
Contracts for outbound SMS and email providers.

Providers report delivery failures through ``SendResult`` and only raise
for programming errors (e.g. an adapter used before ``initialize()``).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class SendResult:
    """Result of sending a message."""
    success: bool
    provider: str
    message_id: Optional[str] = None
    parts: Optional[int] = None
    cost: Optional[float] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    status_code: Optional[int] = None
    raw_response: Dict[str, Any] = field(default_factory=dict)


class BaseProvider(ABC):
    """Lifecycle shared by all providers."""

    name: str = "base"

    def __init__(self):
        self._initialized = False

    async def initialize(self) -> None:
        """Open connections. Call once before sending."""
        self._initialized = True

    async def close(self) -> None:
        """Release connections."""
        self._initialized = False

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class SMSProvider(BaseProvider):

    @abstractmethod
    async def send_sms(
        self,
        to: str,
        body: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SendResult:
        """
        Send an SMS.

        Args:
            to: Canonical recipient phone (+40...)
            body: Message text
            metadata: Template id and data forwarded to the provider

        Returns:
            SendResult
        """
        pass


class EmailProvider(BaseProvider):

    @abstractmethod
    async def send_email(self, to: str, subject: str, html: str) -> SendResult:
        pass
