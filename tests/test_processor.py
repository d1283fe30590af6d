"""
Unit Tests for the Reminder Batch
=================================
Tests for ReminderBatchProcessor against an in-memory repository.
"""

from datetime import date

import pytest


class FakeRepository:
    """ReminderRepository backed by plain dicts."""

    def __init__(self, reminders=(), contacts=None, opted_out=()):
        self.reminders = {r.id: r for r in reminders}
        self.contacts = contacts or {}
        self.opted_out = set(opted_out)
        self.log = []
        self.rescheduled = {}
        self.crash_on = set()

    async def list_due(self, today):
        return [
            r for r in self.reminders.values()
            if r.next_notification_date is not None and r.next_notification_date <= today
        ]

    async def get_contact(self, user_id):
        if user_id in self.crash_on:
            raise RuntimeError("profile lookup failed")
        return self.contacts.get(user_id)

    async def is_opted_out(self, phone):
        return phone in self.opted_out

    async def log_notification(self, entry):
        self.log.append(entry)

    async def update_next_notification_date(self, reminder_id, next_date):
        self.rescheduled[reminder_id] = next_date


class RecordingSMS:
    """SMS provider that records sends and fails for chosen numbers."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send_sms(self, to, body, metadata=None):
        from uitdeitp_core.providers import SendResult

        self.sent.append((to, body, metadata))
        if to in self.fail_for:
            return SendResult(success=False, provider="fake", error_code="NETWORK_ERROR", error_message="timeout")
        return SendResult(success=True, provider="fake", message_id=f"m{len(self.sent)}", parts=1)


class RecordingEmail:
    def __init__(self):
        self.sent = []

    async def send_email(self, to, subject, html):
        from uitdeitp_core.providers import SendResult

        self.sent.append((to, subject, html))
        return SendResult(success=True, provider="fake", message_id=f"e{len(self.sent)}")


TODAY = date(2025, 3, 10)


def guest_reminder(reminder_id="r-1", expiry=date(2025, 3, 17), phone="+40712345678", **kwargs):
    from uitdeitp_core.reminders import Reminder, ReminderSource, ReminderType

    options = dict(
        id=reminder_id,
        reminder_type=ReminderType.ITP,
        plate_number="CJ-12-ABC",
        expiry_date=expiry,
        next_notification_date=TODAY,
        guest_name="Ion Popescu",
        guest_phone=phone,
        source=ReminderSource.KIOSK,
    )
    options.update(kwargs)
    return Reminder(**options)


def user_reminder(reminder_id="u-r-1", sms=True, email=True, **kwargs):
    from uitdeitp_core.reminders import NotificationChannels, Reminder, ReminderType

    options = dict(
        id=reminder_id,
        reminder_type=ReminderType.RCA,
        plate_number="B-123-XYZ",
        expiry_date=date(2025, 3, 13),
        next_notification_date=TODAY,
        user_id="user-1",
        notification_channels=NotificationChannels(sms=sms, email=email),
    )
    options.update(kwargs)
    return Reminder(**options)


@pytest.fixture
def make_processor(settings, clock):
    from uitdeitp_core.reminders import ReminderBatchProcessor

    def factory(repository, sms=None, email=None, **kwargs):
        return ReminderBatchProcessor(
            repository=repository,
            sms_provider=sms or RecordingSMS(),
            email_provider=email,
            settings=settings,
            clock=clock,
            **kwargs,
        )

    return factory


class TestGuestReminders:
    """Tests for kiosk guest reminders."""

    @pytest.mark.asyncio
    async def test_sends_sms_and_schedules_next(self, make_processor):
        """Seven days out the guest gets an SMS and the 3-day date is set."""
        repo = FakeRepository([guest_reminder()])
        sms = RecordingSMS()

        report = await make_processor(repo, sms).run(TODAY)

        assert report.total == 1
        assert report.sent == 1
        assert report.sms_only == 1
        to, body, metadata = sms.sent[0]
        assert to == "+40712345678"
        assert "CJ-12-ABC" in body
        assert "https://uitdeitp.ro/o?t=bs41fy" in body
        assert metadata == {"template_id": "itp_7d"}
        assert repo.rescheduled["r-1"] == date(2025, 3, 14)

        entry = repo.log[0]
        assert entry.channel.value == "sms"
        assert entry.status.value == "sent"
        assert entry.provider_message_id == "m1"
        assert entry.details["days_until_expiry"] == 7

    @pytest.mark.asyncio
    async def test_last_interval_clears_schedule(self, make_processor):
        """After the 1-day reminder nothing further is scheduled."""
        repo = FakeRepository([guest_reminder(expiry=date(2025, 3, 11))])

        report = await make_processor(repo).run(TODAY)

        assert report.sent == 1
        assert repo.rescheduled["r-1"] is None

    @pytest.mark.asyncio
    async def test_not_an_interval_day(self, make_processor):
        """A due reminder off its interval days is skipped and rescheduled."""
        repo = FakeRepository([guest_reminder(expiry=date(2025, 3, 15))])
        sms = RecordingSMS()

        report = await make_processor(repo, sms).run(TODAY)

        assert report.skipped == 1
        assert report.results[0].reason == "not_scheduled_day"
        assert sms.sent == []
        assert repo.rescheduled["r-1"] == date(2025, 3, 12)

    @pytest.mark.asyncio
    async def test_opted_out_phone_is_skipped(self, make_processor):
        """Globally opted-out phones get nothing, but the schedule still advances."""
        repo = FakeRepository([guest_reminder()], opted_out={"+40712345678"})
        sms = RecordingSMS()

        report = await make_processor(repo, sms).run(TODAY)

        assert report.skipped == 1
        assert report.results[0].reason == "opted_out"
        assert sms.sent == []
        assert repo.rescheduled["r-1"] == date(2025, 3, 14)

    @pytest.mark.asyncio
    async def test_failed_send_still_advances(self, make_processor):
        """A failed send counts as failed and does not block the schedule."""
        repo = FakeRepository([guest_reminder()])
        sms = RecordingSMS(fail_for={"+40712345678"})

        report = await make_processor(repo, sms).run(TODAY)

        assert report.failed == 1
        assert report.sent == 0
        assert "sms: timeout" in report.results[0].reason
        assert repo.log[0].status.value == "failed"
        assert repo.log[0].error_message == "timeout"
        assert repo.rescheduled["r-1"] == date(2025, 3, 14)


class TestUserReminders:
    """Tests for registered-user reminders."""

    @pytest.mark.asyncio
    async def test_both_channels(self, make_processor):
        """Users with both channels get an email and an SMS."""
        from uitdeitp_core.reminders import Contact

        repo = FakeRepository(
            [user_reminder()],
            contacts={"user-1": Contact(name="Ana", email="ana@example.com", phone="0722111222")},
        )
        sms = RecordingSMS()
        email = RecordingEmail()

        report = await make_processor(repo, sms, email).run(TODAY)

        assert report.email_and_sms == 1
        assert sms.sent[0][0] == "+40722111222"
        assert sms.sent[0][2] == {"template_id": "rca_3d"}
        assert email.sent[0][0] == "ana@example.com"
        assert "RCA" in email.sent[0][1]
        assert sorted(e.channel.value for e in repo.log) == ["email", "sms"]

    @pytest.mark.asyncio
    async def test_email_only(self, make_processor):
        """SMS disabled means email only."""
        from uitdeitp_core.reminders import Contact

        repo = FakeRepository(
            [user_reminder(sms=False)],
            contacts={"user-1": Contact(name="Ana", email="ana@example.com", phone="0722111222")},
        )
        sms = RecordingSMS()

        report = await make_processor(repo, sms, RecordingEmail()).run(TODAY)

        assert report.email_only == 1
        assert sms.sent == []

    @pytest.mark.asyncio
    async def test_email_carries_unsubscribe_link(self, make_processor):
        """Emails link to the phone's opt-out page when the user has a phone."""
        from uitdeitp_core.messaging import build_opt_out_link
        from uitdeitp_core.reminders import Contact

        repo = FakeRepository(
            [user_reminder(sms=False), user_reminder("u-r-2", sms=False, user_id="user-2")],
            contacts={
                "user-1": Contact(name="Ana", email="ana@example.com", phone="0722111222"),
                "user-2": Contact(name="Dan", email="dan@example.com"),
            },
        )
        email = RecordingEmail()

        await make_processor(repo, RecordingSMS(), email).run(TODAY)

        bodies = {to: html for to, _, html in email.sent}
        link = build_opt_out_link("+40722111222", "https://uitdeitp.ro")
        assert link in bodies["ana@example.com"]
        assert "Dezabonare" not in bodies["dan@example.com"]

    @pytest.mark.asyncio
    async def test_opted_out_user_keeps_email(self, make_processor):
        """Opting out blocks SMS while email still goes out."""
        from uitdeitp_core.reminders import Contact

        repo = FakeRepository(
            [user_reminder()],
            contacts={"user-1": Contact(name="Ana", email="ana@example.com", phone="0722111222")},
            opted_out={"+40722111222"},
        )
        sms = RecordingSMS()

        report = await make_processor(repo, sms, RecordingEmail()).run(TODAY)

        assert report.email_only == 1
        assert sms.sent == []

    @pytest.mark.asyncio
    async def test_missing_profile(self, make_processor):
        """A reminder whose user has no contact data is skipped."""
        repo = FakeRepository([user_reminder()])

        report = await make_processor(repo, RecordingSMS(), RecordingEmail()).run(TODAY)

        assert report.skipped == 1
        assert report.results[0].reason == "no_channel"


class TestBatch:
    """Tests for batch-level behavior."""

    @pytest.mark.asyncio
    async def test_one_crash_does_not_abort(self, make_processor):
        """An exception on one reminder is isolated."""
        from uitdeitp_core.reminders import Contact

        repo = FakeRepository(
            [user_reminder(), guest_reminder()],
            contacts={"user-1": Contact(phone="0722111222")},
        )
        repo.crash_on.add("user-1")

        report = await make_processor(repo).run(TODAY)

        assert report.processed == 2
        assert report.failed == 1
        assert report.sent == 1
        assert "RuntimeError" in report.results[0].reason

    @pytest.mark.asyncio
    async def test_time_budget_defers_rest(self, make_processor):
        """Reminders not started within the budget are deferred."""
        ticks = iter([0.0, 0.0, 10.0, 70.0, 70.0])
        repo = FakeRepository([
            guest_reminder("r-1"),
            guest_reminder("r-2", phone="+40722222222"),
            guest_reminder("r-3", phone="+40733333333"),
        ])

        report = await make_processor(repo, monotonic=lambda: next(ticks)).run(TODAY)

        assert report.processed == 2
        assert report.deferred == 1
        assert "r-3" not in repo.rescheduled
        assert report.duration_ms == 70000.0

    @pytest.mark.asyncio
    async def test_nothing_due(self, make_processor):
        """Future reminders are left alone."""
        repo = FakeRepository([guest_reminder(next_notification_date=date(2025, 3, 20))])

        report = await make_processor(repo).run(TODAY)

        assert report.total == 0
        assert report.to_dict()["results"] == []

    @pytest.mark.asyncio
    async def test_today_defaults_to_bucharest_date(self, make_processor, clock):
        """Without an explicit date the Bucharest local date is used."""
        clock.advance(hours=15, minutes=30)  # 23:30 UTC is already the 11th locally
        repo = FakeRepository([guest_reminder(expiry=date(2025, 3, 18), next_notification_date=date(2025, 3, 11))])

        report = await make_processor(repo).run()

        assert report.today == "2025-03-11"
        assert report.sent == 1
