"""
NotifyHub SMS Provider
======================
Adapter for the NotifyHub SMS gateway (``POST /api/send``).
"""

import logging
from typing import Any, Dict, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .base import SMSProvider, SendResult
from ..messaging.phone_utils import mask_phone
from ..messaging.segmentation import calculate_segments

logger = structlog.get_logger(__name__)
retry_logger = logging.getLogger(__name__)


class _ServerError(Exception):
    """A 5xx answer, retried until attempts run out."""

    def __init__(self, result: SendResult):
        self.result = result
        super().__init__(f"HTTP {result.status_code}")


class NotifyHubSMSProvider(SMSProvider):
    """
    NotifyHub SMS gateway adapter.

    Features:
    - Bearer authentication
    - Per-attempt timeout (5s by default)
    - Exponential backoff (1s, 2s, ...) on network errors and 5xx
    - No retry on 4xx, those are final
    """

    name = "notifyhub"

    def __init__(
        self,
        base_url: str = "https://ntf.uitdeitp.ro",
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        max_attempts: int = 3,
        backoff: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: NotifyHub base URL
            api_key: Bearer token
            timeout: Seconds per attempt
            max_attempts: Total attempts including the first one
            backoff: Multiplier of the exponential wait, 0 disables waiting
            transport: Custom httpx transport (tests)
        """
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or ""
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff = backoff
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        if not self.api_key:
            logger.warning("NotifyHub API key not configured")

    async def initialize(self) -> None:
        """Create HTTP client with auth."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        await super().initialize()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        await super().close()

    async def send_sms(
        self,
        to: str,
        body: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SendResult:
        """Send SMS via NotifyHub."""
        if not self._client:
            raise RuntimeError("Provider not initialized")

        payload: Dict[str, Any] = {"to": to, "message": body}
        if metadata:
            if "template_id" in metadata:
                payload["templateId"] = metadata["template_id"]
            if "data" in metadata:
                payload["data"] = metadata["data"]

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((httpx.TransportError, _ServerError)),
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.backoff, max=8),
                before_sleep=before_sleep_log(retry_logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    result = await self._post(payload)
        except _ServerError as e:
            logger.error(
                "NotifyHub send failed after retries",
                to=mask_phone(to),
                status=e.result.status_code,
                error=e.result.error_message,
            )
            return e.result
        except httpx.TransportError as e:
            logger.error("NotifyHub network error", to=mask_phone(to), error=str(e))
            return SendResult(
                success=False,
                provider=self.name,
                error_code="NETWORK_ERROR",
                error_message=str(e) or type(e).__name__,
            )

        if result.success:
            logger.info(
                "SMS sent",
                to=mask_phone(to),
                message_id=result.message_id,
                parts=result.parts,
            )
        else:
            logger.error(
                "NotifyHub rejected SMS",
                to=mask_phone(to),
                status=result.status_code,
                error_code=result.error_code,
            )
        return result

    async def _post(self, payload: Dict[str, Any]) -> SendResult:
        response = await self._client.post("/api/send", json=payload)

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_success:
            parts = data.get("parts")
            if parts is None:
                parts, _, _ = calculate_segments(payload["message"])
            return SendResult(
                success=bool(data.get("success", True)),
                provider=data.get("provider") or self.name,
                message_id=data.get("messageId"),
                parts=parts,
                cost=data.get("cost"),
                error_code=data.get("code"),
                error_message=data.get("error"),
                status_code=response.status_code,
                raw_response=data,
            )

        result = SendResult(
            success=False,
            provider=self.name,
            error_code=data.get("code") or "UNKNOWN_ERROR",
            error_message=data.get("error") or "SMS sending failed",
            status_code=response.status_code,
            raw_response=data,
        )
        if response.status_code >= 500:
            raise _ServerError(result)
        return result

    async def health_check(self) -> Dict[str, Any]:
        """Ping ``/api/health``."""
        if not self._client:
            raise RuntimeError("Provider not initialized")
        try:
            response = await self._client.get("/api/health")
        except httpx.HTTPError as e:
            return {"ok": False, "error": str(e) or type(e).__name__}
        if not response.is_success:
            return {"ok": False, "error": f"HTTP {response.status_code}"}
        return {"ok": True}
