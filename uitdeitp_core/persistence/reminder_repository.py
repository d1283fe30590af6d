"""
SQL Reminder Repository
=======================
Reminder, opt-out and notification-log storage.
"""

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, List, Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import ExternalServiceError
from ..reminders.models import (
    Contact,
    NotificationChannels,
    NotificationLogEntry,
    Reminder,
    ReminderSource,
    ReminderType,
)
from .tables import GlobalOptOutModel, NotificationLogModel, ReminderModel, UserProfileModel
from .verification_store import as_utc

logger = structlog.get_logger(__name__)


def _to_reminder(row: ReminderModel) -> Reminder:
    return Reminder(
        id=row.id,
        reminder_type=ReminderType(row.reminder_type),
        plate_number=row.plate_number,
        expiry_date=row.expiry_date,
        notification_intervals=list(row.notification_intervals or []),
        notification_channels=NotificationChannels.from_dict(row.notification_channels),
        next_notification_date=row.next_notification_date,
        user_id=row.user_id,
        guest_name=row.guest_name,
        guest_phone=row.guest_phone,
        guest_email=row.guest_email,
        source=ReminderSource(row.source),
        station_id=row.station_id,
        opt_out=row.opt_out,
    )


class _SqlRepository:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("Reminder store error", repository=type(self).__name__, error=str(e))
            raise ExternalServiceError(reason="reminder_store_unavailable") from e


class SqlReminderRepository(_SqlRepository):
    """ReminderRepository over the ``reminders`` table."""

    async def list_due(self, today: date) -> List[Reminder]:
        async with self._session() as session:
            result = await session.execute(
                select(ReminderModel)
                .where(
                    ReminderModel.next_notification_date.is_not(None),
                    ReminderModel.next_notification_date <= today,
                    ReminderModel.deleted_at.is_(None),
                    ReminderModel.opt_out.is_(False),
                )
                .order_by(ReminderModel.next_notification_date, ReminderModel.created_at)
            )
            return [_to_reminder(row) for row in result.scalars()]

    async def get(self, reminder_id: str) -> Optional[Reminder]:
        async with self._session() as session:
            row = await session.get(ReminderModel, reminder_id)
            return _to_reminder(row) if row else None

    async def get_contact(self, user_id: str) -> Optional[Contact]:
        async with self._session() as session:
            row = await session.get(UserProfileModel, user_id)
            if row is None:
                return None
            return Contact(name=row.full_name, email=row.email, phone=row.phone)

    async def is_opted_out(self, phone: str) -> bool:
        async with self._session() as session:
            result = await session.execute(
                select(GlobalOptOutModel.phone).where(
                    GlobalOptOutModel.phone == phone,
                    GlobalOptOutModel.deleted_at.is_(None),
                )
            )
            return result.scalar_one_or_none() is not None

    async def log_notification(self, entry: NotificationLogEntry) -> None:
        async with self._session() as session:
            session.add(
                NotificationLogModel(
                    reminder_id=entry.reminder_id,
                    channel=entry.channel.value,
                    status=entry.status.value,
                    recipient=entry.recipient,
                    provider_message_id=entry.provider_message_id,
                    error_message=entry.error_message,
                    sent_at=entry.sent_at,
                    details=entry.details,
                )
            )
            await session.commit()

    async def update_next_notification_date(
        self, reminder_id: str, next_date: Optional[date]
    ) -> None:
        async with self._session() as session:
            await session.execute(
                update(ReminderModel)
                .where(ReminderModel.id == reminder_id)
                .values(next_notification_date=next_date)
            )
            await session.commit()

    async def create_kiosk_reminder(
        self,
        station_id: str,
        guest_name: str,
        guest_phone: str,
        plate_number: str,
        expiry_date: date,
        intervals: List[int],
        next_notification_date: Optional[date],
        consent_ip: Optional[str],
        now: datetime,
    ) -> Reminder:
        """
        Create a guest ITP reminder from a station tablet.

        An earlier live reminder for the same phone, plate and station is
        soft-deleted first (returning clients after their next inspection).
        """
        async with self._session() as session:
            previous = await session.execute(
                update(ReminderModel)
                .where(
                    ReminderModel.guest_phone == guest_phone,
                    ReminderModel.plate_number == plate_number,
                    ReminderModel.station_id == station_id,
                    ReminderModel.deleted_at.is_(None),
                )
                .values(deleted_at=now)
            )
            if previous.rowcount:
                logger.info("Replaced earlier kiosk reminder", plate=plate_number, station_id=station_id)

            row = ReminderModel(
                guest_name=guest_name,
                guest_phone=guest_phone,
                reminder_type=ReminderType.ITP.value,
                plate_number=plate_number,
                expiry_date=expiry_date,
                notification_intervals=intervals,
                notification_channels={"sms": True, "email": False},
                next_notification_date=next_notification_date,
                source=ReminderSource.KIOSK.value,
                station_id=station_id,
                consent_given=True,
                consent_timestamp=now,
                consent_ip=consent_ip,
                created_at=now,
            )
            session.add(row)
            await session.commit()
            return _to_reminder(row)


class SqlOptOutRepository(_SqlRepository):
    """The ``global_opt_outs`` table."""

    async def get_opted_out_at(self, phone: str) -> Optional[datetime]:
        async with self._session() as session:
            result = await session.execute(
                select(GlobalOptOutModel.opted_out_at).where(
                    GlobalOptOutModel.phone == phone,
                    GlobalOptOutModel.deleted_at.is_(None),
                )
            )
            return as_utc(result.scalar_one_or_none())

    async def record_opt_out(self, phone: str, now: datetime, source: str = "sms_link") -> datetime:
        """
        Opt a phone out of every notification.

        Restores a soft-deleted opt-out and flags the phone's guest
        reminders. Opting out twice keeps the first timestamp.

        Returns:
            When the phone opted out
        """
        async with self._session() as session:
            row = await session.get(GlobalOptOutModel, phone)
            if row is None:
                row = GlobalOptOutModel(phone=phone, source=source, opted_out_at=now)
                session.add(row)
            elif row.deleted_at is not None:
                row.deleted_at = None
                row.opted_out_at = now
                row.source = source

            await session.execute(
                update(ReminderModel)
                .where(
                    ReminderModel.guest_phone == phone,
                    ReminderModel.opt_out.is_(False),
                )
                .values(opt_out=True, opt_out_timestamp=now)
            )
            await session.commit()
            return as_utc(row.opted_out_at)
