"""
Resend Email Provider
=====================
Adapter for the Resend transactional email API.
"""

from typing import Optional

import httpx
import structlog

from .base import EmailProvider, SendResult

logger = structlog.get_logger(__name__)

RESEND_API_URL = "https://api.resend.com"


class ResendEmailProvider(EmailProvider):
    """Sends reminder emails through Resend. Single attempt, no retries."""

    name = "resend"

    def __init__(
        self,
        api_key: str,
        from_email: str = "uitdeITP <notificari@uitdeitp.ro>",
        base_url: str = RESEND_API_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.api_key = api_key
        self.from_email = from_email
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
            transport=self._transport,
        )
        await super().initialize()

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
        await super().close()

    async def send_email(self, to: str, subject: str, html: str) -> SendResult:
        if not self._client:
            raise RuntimeError("Provider not initialized")

        try:
            response = await self._client.post(
                "/emails",
                json={
                    "from": self.from_email,
                    "to": [to],
                    "subject": subject,
                    "html": html,
                },
            )
        except httpx.HTTPError as e:
            logger.error("Resend request failed", error=str(e))
            return SendResult(
                success=False,
                provider=self.name,
                error_code="NETWORK_ERROR",
                error_message=str(e) or type(e).__name__,
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success:
            logger.error("Resend rejected email", status=response.status_code, error=data.get("message"))
            return SendResult(
                success=False,
                provider=self.name,
                error_code=data.get("name") or f"HTTP_{response.status_code}",
                error_message=data.get("message") or "Email sending failed",
                status_code=response.status_code,
                raw_response=data,
            )

        logger.info("Email sent", message_id=data.get("id"))
        return SendResult(
            success=True,
            provider=self.name,
            message_id=data.get("id"),
            status_code=response.status_code,
            raw_response=data,
        )
