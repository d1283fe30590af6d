"""
Service Container
=================
Wires settings, stores, providers and engines into one object the API
layer and the cron job share.
"""

from dataclasses import dataclass
from typing import Any, Optional

import structlog
from redis import asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from . import database
from .config import Settings
from .otp.engine import VerificationCodeEngine
from .persistence.reminder_repository import SqlOptOutRepository, SqlReminderRepository
from .persistence.verification_store import SqlVerificationStore
from .providers import build_email_provider, build_sms_provider
from .providers.base import EmailProvider, SMSProvider
from .rate_limit.in_memory import InMemoryRateLimitStore
from .rate_limit.limiter import RateLimiter
from .rate_limit.redis_store import RedisRateLimitStore
from .reminders.processor import ReminderBatchProcessor

logger = structlog.get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    verification: VerificationCodeEngine
    rate_limiter: RateLimiter
    reminders: SqlReminderRepository
    opt_outs: SqlOptOutRepository
    sms_provider: SMSProvider
    email_provider: Optional[EmailProvider] = None
    db_engine: Optional[AsyncEngine] = None
    redis_client: Any = None

    def reminder_processor(self) -> ReminderBatchProcessor:
        return ReminderBatchProcessor(
            repository=self.reminders,
            sms_provider=self.sms_provider,
            email_provider=self.email_provider,
            settings=self.settings,
        )

    async def aclose(self) -> None:
        await self.sms_provider.close()
        if self.email_provider is not None:
            await self.email_provider.close()
        if self.redis_client is not None:
            await self.redis_client.aclose()
        await database.close_engine()


def build_rate_limiter(settings: Settings):
    """Redis-backed limiter when REDIS_URL is set, in-memory otherwise."""
    if settings.redis_url:
        client = aioredis.from_url(settings.redis_url)
        logger.info("Rate limiting backed by Redis")
        return RateLimiter(RedisRateLimitStore(client)), client

    if settings.is_production:
        logger.warning("REDIS_URL not set, rate limits are per process")
    return RateLimiter(InMemoryRateLimitStore()), None


def assemble_services(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    sms_provider: SMSProvider,
    email_provider: Optional[EmailProvider] = None,
    rate_limiter: Optional[RateLimiter] = None,
    db_engine: Optional[AsyncEngine] = None,
    redis_client: Any = None,
) -> Services:
    """Build the container from already-created parts."""
    if rate_limiter is None:
        rate_limiter = RateLimiter()
    verification = VerificationCodeEngine(
        store=SqlVerificationStore(session_factory),
        sms_provider=sms_provider,
        rate_limiter=rate_limiter,
        settings=settings,
    )
    return Services(
        settings=settings,
        verification=verification,
        rate_limiter=rate_limiter,
        reminders=SqlReminderRepository(session_factory),
        opt_outs=SqlOptOutRepository(session_factory),
        sms_provider=sms_provider,
        email_provider=email_provider,
        db_engine=db_engine,
        redis_client=redis_client,
    )


async def build_services(settings: Settings) -> Services:
    """Create every runtime dependency from settings."""
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is required")

    engine = database.create_async_engine(settings.database_url)
    if settings.database_url.startswith("sqlite"):
        await database.create_all()

    sms_provider = build_sms_provider(settings)
    await sms_provider.initialize()
    email_provider = build_email_provider(settings)
    if email_provider is not None:
        await email_provider.initialize()

    rate_limiter, redis_client = build_rate_limiter(settings)

    return assemble_services(
        settings,
        database.get_session_factory(),
        sms_provider=sms_provider,
        email_provider=email_provider,
        rate_limiter=rate_limiter,
        db_engine=engine,
        redis_client=redis_client,
    )
