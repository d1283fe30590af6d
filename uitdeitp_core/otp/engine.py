"""
Verification Code Engine
========================
Issues and checks the 6-digit SMS codes that prove phone ownership.

Every verification failure surfaces as the same ``InvalidOrExpiredCode``
and takes the same padded time; the concrete cause only reaches the logs.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import structlog

from ..config import Settings
from ..errors import (
    GENERIC_SEND_ERROR,
    INVALID_PHONE_MESSAGE,
    STATION_NOT_FOUND_MESSAGE,
    ExternalServiceError,
    InvalidOrExpiredCode,
    RateLimited,
    UitdeitpError,
    ValidationError,
)
from ..messaging.phone_utils import mask_phone, normalize_phone
from ..messaging.templates import verification_message
from ..providers.base import SMSProvider
from ..rate_limit.limiter import RateLimiter
from ..rate_limit.models import HOUR_MS, RateLimitInfo, RateLimitPolicy
from .generator import codes_match, generate_code, is_well_formed
from .models import (
    CodeSent,
    CodeVerified,
    KioskContext,
    OTPConfig,
    VerificationContext,
    VerificationRecord,
)
from .responder import ConstantTimeResponder
from .store import VerificationStore

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VerificationCodeEngine:
    """Send, resend and verify phone verification codes."""

    def __init__(
        self,
        store: VerificationStore,
        sms_provider: SMSProvider,
        rate_limiter: Optional[RateLimiter] = None,
        settings: Optional[Settings] = None,
        responder: Optional[ConstantTimeResponder] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.sms_provider = sms_provider
        self.rate_limiter = rate_limiter
        self.settings = settings or Settings()
        self.config = OTPConfig.from_settings(self.settings)
        self.responder = responder or ConstantTimeResponder(
            min_ms=self.config.min_response_ms,
            jitter_ms=self.config.jitter_ms,
        )
        self._clock = clock

        self.send_policy = RateLimitPolicy("send", self.settings.send_ip_limit, HOUR_MS)
        self.resend_policy = RateLimitPolicy("resend", self.settings.resend_ip_limit, HOUR_MS)
        self.verify_policy = RateLimitPolicy("verify", self.settings.verify_ip_limit, HOUR_MS)
        self._policies = {
            policy.name: policy
            for policy in (self.send_policy, self.resend_policy, self.verify_policy)
        }

    async def request_code(
        self,
        phone: str,
        context: VerificationContext,
        client_ip: Optional[str] = None,
    ) -> CodeSent:
        """
        Issue a new code and send it by SMS.

        Args:
            phone: Raw phone input
            context: Kiosk, dashboard or admin origin
            client_ip: Caller IP for the per-IP budget

        Returns:
            CodeSent with ``expires_in`` seconds

        Raises:
            ValidationError: Bad phone, unknown or inactive kiosk station, or the
                phone's hourly budget is used up
            RateLimited: IP budget exhausted
            ExternalServiceError: SMS delivery failed in production
        """
        return await self._issue(phone, context, client_ip, self.send_policy)

    async def resend_code(
        self,
        phone: str,
        station_slug: str,
        client_ip: Optional[str] = None,
    ) -> CodeSent:
        """Issue another code for a kiosk flow. Earlier codes stay valid until they expire."""
        return await self._issue(
            phone, KioskContext(station_slug=station_slug), client_ip, self.resend_policy
        )

    async def _issue(
        self,
        phone: str,
        context: VerificationContext,
        client_ip: Optional[str],
        policy: RateLimitPolicy,
    ) -> CodeSent:
        info: Optional[RateLimitInfo] = None
        try:
            info = await self._check_ip(policy, client_ip)
            canonical = normalize_phone(phone)
            if canonical is None:
                raise ValidationError(INVALID_PHONE_MESSAGE, reason="invalid_phone")

            now = self._clock()

            recent = await self.store.count_created_since(canonical, now - timedelta(hours=1))
            if recent >= self.config.codes_per_phone_per_hour:
                raise ValidationError(GENERIC_SEND_ERROR, reason="phone_rate_limited")

            station = None
            if isinstance(context, KioskContext):
                station = await self.store.find_active_station(context.station_slug)
                if station is None:
                    raise ValidationError(STATION_NOT_FOUND_MESSAGE, reason="station_not_found")

            code = generate_code()
            record = VerificationRecord(
                id=str(uuid.uuid4()),
                phone_number=canonical,
                code=code,
                source=context.source,
                station_id=station.id if station else None,
                created_at=now,
                expires_at=now + timedelta(seconds=self.config.code_ttl_seconds),
            )
            await self.store.insert(record)

            logger.info(
                "Verification code issued",
                record_id=record.id,
                phone=mask_phone(canonical),
                source=context.source.value,
                station_id=record.station_id,
                policy=policy.name,
            )

            await self._deliver(record, station.name if station else None)

            return CodeSent(
                expires_in=self.config.code_ttl_seconds,
                debug_code=code if self.settings.codes_visible else None,
                rate_limit=info,
            )
        except UitdeitpError as exc:
            if exc.rate_limit is None:
                exc.rate_limit = info
            logger.warning(
                "Verification code not issued",
                code=exc.code,
                reason=exc.reason,
                policy=policy.name,
            )
            raise

    async def _deliver(self, record: VerificationRecord, station_name: Optional[str]) -> None:
        body = verification_message(record.code, station_name)
        result = await self.sms_provider.send_sms(
            record.phone_number,
            body,
            metadata={
                "template_id": "verification_code",
                "data": {"stationName": station_name or "uitdeitp.ro"},
            },
        )
        if result.success:
            return

        if self.settings.is_production:
            raise ExternalServiceError(GENERIC_SEND_ERROR, reason=f"sms_failed:{result.error_code}")

        logger.warning(
            "SMS delivery failed, continuing outside production",
            record_id=record.id,
            error_code=result.error_code,
            error=result.error_message,
            code=record.code,
        )

    async def verify_code(
        self,
        phone: str,
        code: str,
        client_ip: Optional[str] = None,
    ) -> CodeVerified:
        """
        Check a submitted code.

        The call always takes at least the responder's floor time.

        Raises:
            InvalidOrExpiredCode: For every failure cause
            RateLimited: IP budget exhausted
        """
        async with self.responder.padded():
            info: Optional[RateLimitInfo] = None
            try:
                info = await self._check_ip(self.verify_policy, client_ip)
                canonical = normalize_phone(phone)
                if canonical is None or not is_well_formed(code):
                    raise InvalidOrExpiredCode(reason="malformed_input")

                now = self._clock()

                candidates = await self.store.find_active(canonical, now)
                match = None
                for record in candidates:
                    # No early exit: every candidate is compared
                    if codes_match(record.code, code) and match is None:
                        match = record

                if match is None:
                    await self.store.increment_attempts(canonical, now)
                    reason = "code_mismatch" if candidates else "no_active_code"
                    raise InvalidOrExpiredCode(reason=reason)

                if match.is_exhausted(self.config.max_attempts) or match.is_expired(now):
                    raise InvalidOrExpiredCode(reason="exhausted_or_expired")

                if not await self.store.mark_verified(match.id, now, self.config.max_attempts):
                    raise InvalidOrExpiredCode(reason="lost_race")

                logger.info(
                    "Phone verified",
                    record_id=match.id,
                    phone=mask_phone(canonical),
                )
                return CodeVerified(phone_number=canonical, verified_at=now, rate_limit=info)
            except UitdeitpError as exc:
                if exc.rate_limit is None:
                    exc.rate_limit = info
                logger.warning("Verification failed", code=exc.code, reason=exc.reason)
                raise

    async def has_recent_verification(self, phone: str, within: timedelta) -> bool:
        """True if ``phone`` completed a verification within the window."""
        canonical = normalize_phone(phone)
        if canonical is None:
            return False
        verified_at = await self.store.latest_verified_at(canonical)
        if verified_at is None:
            return False
        return self._clock() - verified_at <= within

    async def charge_rejected_request(
        self, action: str, client_ip: Optional[str]
    ) -> Optional[RateLimitInfo]:
        """
        Count a request rejected before reaching the engine (a malformed body)
        against the IP budget of ``action`` ("send", "resend" or "verify").
        """
        policy = self._policies.get(action)
        if policy is None:
            return None
        return await self._check_ip(policy, client_ip)

    async def _check_ip(
        self, policy: RateLimitPolicy, client_ip: Optional[str]
    ) -> Optional[RateLimitInfo]:
        if self.rate_limiter is None or not client_ip:
            return None
        info = await self.rate_limiter.check_policy(policy, f"ip:{client_ip}")
        if not info.allowed:
            raise RateLimited(rate_limit=info, reason=f"{policy.name}_ip_budget")
        return info
