"""
Integration Tests for SQL Storage
=================================
Verification store and reminder repositories on SQLite.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

NOW = datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)


async def add_station(session_factory, slug="euro-auto", active=True):
    from uitdeitp_core.persistence.tables import KioskStationModel

    async with session_factory() as session:
        station = KioskStationModel(slug=slug, name="Euro Auto Service", is_active=active)
        session.add(station)
        await session.commit()
        return station.id


def record(phone="+40712345678", code="123456", created=NOW, **kwargs):
    import uuid

    from uitdeitp_core.otp import VerificationRecord, VerificationSource

    options = dict(
        id=str(uuid.uuid4()),
        phone_number=phone,
        code=code,
        source=VerificationSource.DASHBOARD,
        created_at=created,
        expires_at=created + timedelta(minutes=10),
    )
    options.update(kwargs)
    return VerificationRecord(**options)


async def create_kiosk_reminder(repo, station_id, plate="CJ-12-ABC", next_date=date(2025, 3, 10)):
    return await repo.create_kiosk_reminder(
        station_id=station_id,
        guest_name="Ion Popescu",
        guest_phone="+40712345678",
        plate_number=plate,
        expiry_date=date(2025, 3, 17),
        intervals=[7, 3, 1],
        next_notification_date=next_date,
        consent_ip="10.0.0.1",
        now=NOW,
    )


class TestSqlVerificationStore:
    """Tests for SqlVerificationStore."""

    @pytest.mark.asyncio
    async def test_insert_and_find_active(self, session_factory):
        """Active records come back newest first with UTC datetimes."""
        from uitdeitp_core.persistence import SqlVerificationStore

        store = SqlVerificationStore(session_factory)
        older = record(code="111111")
        newer = record(code="222222", created=NOW + timedelta(minutes=1))
        await store.insert(older)
        await store.insert(newer)

        active = await store.find_active("+40712345678", NOW + timedelta(minutes=2))

        assert [r.code for r in active] == ["222222", "111111"]
        assert active[0].expires_at.tzinfo is not None
        assert active[0].expires_at == newer.expires_at

    @pytest.mark.asyncio
    async def test_expired_records_are_not_active(self, session_factory):
        """A record is inactive from its expiry instant on."""
        from uitdeitp_core.persistence import SqlVerificationStore

        store = SqlVerificationStore(session_factory)
        await store.insert(record())

        assert len(await store.find_active("+40712345678", NOW + timedelta(minutes=9, seconds=59))) == 1
        assert await store.find_active("+40712345678", NOW + timedelta(minutes=10)) == []

    @pytest.mark.asyncio
    async def test_count_created_since(self, session_factory):
        """Counting uses creation time per phone."""
        from uitdeitp_core.persistence import SqlVerificationStore

        store = SqlVerificationStore(session_factory)
        await store.insert(record(created=NOW - timedelta(minutes=90)))
        await store.insert(record(created=NOW - timedelta(minutes=30)))
        await store.insert(record(created=NOW))
        await store.insert(record(phone="+40799999999", created=NOW))

        assert await store.count_created_since("+40712345678", NOW - timedelta(hours=1)) == 2

    @pytest.mark.asyncio
    async def test_increment_and_mark_verified(self, session_factory):
        """Exhausted records can no longer be verified."""
        from uitdeitp_core.persistence import SqlVerificationStore

        store = SqlVerificationStore(session_factory)
        target = record()
        await store.insert(target)

        for _ in range(3):
            assert await store.increment_attempts("+40712345678", NOW) == 1

        assert await store.mark_verified(target.id, NOW, max_attempts=3) is False

    @pytest.mark.asyncio
    async def test_mark_verified_once(self, session_factory):
        """Only the first verification of a record succeeds."""
        from uitdeitp_core.persistence import SqlVerificationStore

        store = SqlVerificationStore(session_factory)
        target = record()
        await store.insert(target)

        assert await store.mark_verified(target.id, NOW, max_attempts=3) is True
        assert await store.mark_verified(target.id, NOW, max_attempts=3) is False
        assert await store.find_active("+40712345678", NOW) == []
        assert await store.latest_verified_at("+40712345678") == NOW

    @pytest.mark.asyncio
    async def test_concurrent_mark_verified(self, session_factory):
        """The conditional update lets exactly one of two racing requests win."""
        import asyncio

        from uitdeitp_core.persistence import SqlVerificationStore

        store = SqlVerificationStore(session_factory)
        target = record()
        await store.insert(target)

        outcomes = await asyncio.gather(
            store.mark_verified(target.id, NOW, max_attempts=3),
            store.mark_verified(target.id, NOW, max_attempts=3),
        )

        assert sorted(outcomes) == [False, True]

    @pytest.mark.asyncio
    async def test_find_active_station(self, session_factory):
        """Inactive stations are invisible."""
        from uitdeitp_core.persistence import SqlVerificationStore

        station_id = await add_station(session_factory)
        await add_station(session_factory, slug="closed", active=False)
        store = SqlVerificationStore(session_factory)

        station = await store.find_active_station("euro-auto")
        assert station.id == station_id
        assert station.name == "Euro Auto Service"
        assert await store.find_active_station("closed") is None
        assert await store.find_active_station("missing") is None

    @pytest.mark.asyncio
    async def test_engine_on_sql_store(self, session_factory, settings, clock):
        """The engine works end to end on the SQL store."""
        from uitdeitp_core.errors import InvalidOrExpiredCode
        from uitdeitp_core.otp import KioskContext, VerificationCodeEngine
        from uitdeitp_core.persistence import SqlVerificationStore
        from uitdeitp_core.providers import LoggingSMSProvider

        await add_station(session_factory)
        engine = VerificationCodeEngine(
            store=SqlVerificationStore(session_factory),
            sms_provider=LoggingSMSProvider(),
            settings=settings,
            clock=clock,
        )

        sent = await engine.request_code("0712345678", KioskContext(station_slug="euro-auto"))
        result = await engine.verify_code("0712345678", sent.debug_code)
        assert result.verified is True

        with pytest.raises(InvalidOrExpiredCode):
            await engine.verify_code("0712345678", sent.debug_code)


class TestSqlReminderRepository:
    """Tests for SqlReminderRepository."""

    @pytest.mark.asyncio
    async def test_create_and_list_due(self, session_factory):
        """Kiosk reminders are guest ITP reminders with SMS only."""
        from uitdeitp_core.persistence import SqlReminderRepository

        station_id = await add_station(session_factory)
        repo = SqlReminderRepository(session_factory)
        created = await create_kiosk_reminder(repo, station_id)
        await create_kiosk_reminder(repo, station_id, plate="CJ-99-ZZZ", next_date=date(2025, 3, 20))

        due = await repo.list_due(date(2025, 3, 10))

        assert [r.id for r in due] == [created.id]
        assert due[0].is_guest is True
        assert due[0].reminder_type.value == "itp"
        assert due[0].source.value == "kiosk"
        assert due[0].notification_channels.to_dict() == {"sms": True, "email": False}
        assert due[0].notification_intervals == [7, 3, 1]

    @pytest.mark.asyncio
    async def test_duplicate_kiosk_reminder_replaces_earlier(self, session_factory):
        """Resubmitting the same plate and phone soft-deletes the earlier row."""
        from uitdeitp_core.persistence import SqlReminderRepository

        station_id = await add_station(session_factory)
        repo = SqlReminderRepository(session_factory)
        first = await create_kiosk_reminder(repo, station_id)
        second = await create_kiosk_reminder(repo, station_id)

        due = await repo.list_due(date(2025, 3, 10))

        assert [r.id for r in due] == [second.id]
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_update_next_date_and_log(self, session_factory):
        """Rescheduling and logging persist."""
        from sqlalchemy import select

        from uitdeitp_core.persistence import SqlReminderRepository
        from uitdeitp_core.persistence.tables import NotificationLogModel
        from uitdeitp_core.reminders import NotificationChannel, NotificationLogEntry, NotificationStatus

        station_id = await add_station(session_factory)
        repo = SqlReminderRepository(session_factory)
        created = await create_kiosk_reminder(repo, station_id)

        await repo.update_next_notification_date(created.id, date(2025, 3, 14))
        await repo.log_notification(
            NotificationLogEntry(
                reminder_id=created.id,
                channel=NotificationChannel.SMS,
                status=NotificationStatus.SENT,
                recipient="+40712345678",
                sent_at=NOW,
                provider_message_id="nh-1",
                details={"parts": 1},
            )
        )

        assert (await repo.get(created.id)).next_notification_date == date(2025, 3, 14)
        assert await repo.list_due(date(2025, 3, 10)) == []

        async with session_factory() as session:
            rows = (await session.execute(select(NotificationLogModel))).scalars().all()
        assert len(rows) == 1
        assert rows[0].provider_message_id == "nh-1"
        assert rows[0].details == {"parts": 1}

    @pytest.mark.asyncio
    async def test_get_contact(self, session_factory):
        """Registered users resolve to their profile contact."""
        from uitdeitp_core.persistence import SqlReminderRepository
        from uitdeitp_core.persistence.tables import UserProfileModel

        async with session_factory() as session:
            session.add(UserProfileModel(id="user-1", full_name="Ana", email="ana@example.com", phone="+40722111222"))
            await session.commit()

        repo = SqlReminderRepository(session_factory)
        contact = await repo.get_contact("user-1")

        assert contact.name == "Ana"
        assert contact.phone == "+40722111222"
        assert await repo.get_contact("nobody") is None


class TestSqlOptOutRepository:
    """Tests for SqlOptOutRepository."""

    @pytest.mark.asyncio
    async def test_record_opt_out(self, session_factory):
        """Opting out is global and flags the phone's guest reminders."""
        from uitdeitp_core.persistence import SqlOptOutRepository, SqlReminderRepository

        station_id = await add_station(session_factory)
        reminders = SqlReminderRepository(session_factory)
        opt_outs = SqlOptOutRepository(session_factory)
        await create_kiosk_reminder(reminders, station_id)

        assert await opt_outs.get_opted_out_at("+40712345678") is None
        opted_at = await opt_outs.record_opt_out("+40712345678", NOW)

        assert opted_at == NOW
        assert await opt_outs.get_opted_out_at("+40712345678") == NOW
        assert await reminders.is_opted_out("+40712345678") is True
        assert await reminders.list_due(date(2025, 3, 10)) == []

    @pytest.mark.asyncio
    async def test_opt_out_twice_keeps_first_timestamp(self, session_factory):
        """A repeated opt-out is a no-op."""
        from uitdeitp_core.persistence import SqlOptOutRepository

        opt_outs = SqlOptOutRepository(session_factory)
        await opt_outs.record_opt_out("+40712345678", NOW)
        again = await opt_outs.record_opt_out("+40712345678", NOW + timedelta(days=1))

        assert again == NOW
