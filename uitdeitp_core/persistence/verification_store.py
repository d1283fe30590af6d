"""
SQL Verification Store
======================
VerificationStore backed by the ``phone_verifications`` table.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import ExternalServiceError
from ..otp.models import KioskStation, VerificationRecord, VerificationSource
from .tables import KioskStationModel, PhoneVerificationModel

logger = structlog.get_logger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; every stored value is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _to_record(row: PhoneVerificationModel) -> VerificationRecord:
    return VerificationRecord(
        id=row.id,
        phone_number=row.phone_number,
        code=row.verification_code,
        source=VerificationSource(row.source),
        station_id=row.station_id,
        created_at=as_utc(row.created_at),
        expires_at=as_utc(row.expires_at),
        attempts=row.attempts,
        verified=row.verified,
        verified_at=as_utc(row.verified_at),
    )


class SqlVerificationStore:
    """Attempt counting and verification are single conditional UPDATEs."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("Verification store error", error=str(e))
            raise ExternalServiceError(reason="verification_store_unavailable") from e

    async def insert(self, record: VerificationRecord) -> None:
        async with self._session() as session:
            session.add(
                PhoneVerificationModel(
                    id=record.id,
                    phone_number=record.phone_number,
                    verification_code=record.code,
                    source=record.source.value,
                    station_id=record.station_id,
                    created_at=record.created_at,
                    expires_at=record.expires_at,
                    attempts=record.attempts,
                    verified=record.verified,
                    verified_at=record.verified_at,
                )
            )
            await session.commit()

    async def count_created_since(self, phone: str, since: datetime) -> int:
        async with self._session() as session:
            result = await session.execute(
                select(func.count())
                .select_from(PhoneVerificationModel)
                .where(
                    PhoneVerificationModel.phone_number == phone,
                    PhoneVerificationModel.created_at >= since,
                )
            )
            return int(result.scalar_one())

    async def find_active(self, phone: str, now: datetime) -> List[VerificationRecord]:
        async with self._session() as session:
            result = await session.execute(
                select(PhoneVerificationModel)
                .where(
                    PhoneVerificationModel.phone_number == phone,
                    PhoneVerificationModel.verified.is_(False),
                    PhoneVerificationModel.expires_at > now,
                )
                .order_by(PhoneVerificationModel.created_at.desc())
            )
            return [_to_record(row) for row in result.scalars()]

    async def increment_attempts(self, phone: str, now: datetime) -> int:
        async with self._session() as session:
            result = await session.execute(
                update(PhoneVerificationModel)
                .where(
                    PhoneVerificationModel.phone_number == phone,
                    PhoneVerificationModel.verified.is_(False),
                    PhoneVerificationModel.expires_at > now,
                )
                .values(attempts=PhoneVerificationModel.attempts + 1)
            )
            await session.commit()
            return result.rowcount or 0

    async def mark_verified(
        self, record_id: str, now: datetime, max_attempts: int
    ) -> bool:
        async with self._session() as session:
            result = await session.execute(
                update(PhoneVerificationModel)
                .where(
                    PhoneVerificationModel.id == record_id,
                    PhoneVerificationModel.verified.is_(False),
                    PhoneVerificationModel.attempts < max_attempts,
                    PhoneVerificationModel.expires_at > now,
                )
                .values(verified=True, verified_at=now)
            )
            await session.commit()
            return result.rowcount == 1

    async def find_active_station(self, slug: str) -> Optional[KioskStation]:
        async with self._session() as session:
            result = await session.execute(
                select(KioskStationModel).where(
                    KioskStationModel.slug == slug,
                    KioskStationModel.is_active.is_(True),
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return KioskStation(id=row.id, slug=row.slug, name=row.name, is_active=row.is_active)

    async def latest_verified_at(self, phone: str) -> Optional[datetime]:
        async with self._session() as session:
            result = await session.execute(
                select(func.max(PhoneVerificationModel.verified_at)).where(
                    PhoneVerificationModel.phone_number == phone,
                    PhoneVerificationModel.verified.is_(True),
                )
            )
            return as_utc(result.scalar_one_or_none())
