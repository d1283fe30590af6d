"""
Reminder Batch Processor
========================
Daily job that sends every due reminder and schedules the next one.

A failure on one reminder never aborts the batch. The run stops starting
new reminders once its wall-clock budget is spent; those stay due and are
picked up by the next run.
"""

import time
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Tuple

import structlog

from ..config import Settings
from ..messaging.opt_out import build_opt_out_link
from ..messaging.phone_utils import mask_phone, normalize_phone
from ..messaging.templates import (
    reminder_email_html,
    reminder_email_subject,
    reminder_message,
    template_key,
)
from ..providers.base import EmailProvider, SMSProvider, SendResult
from .intervals import (
    as_date,
    days_until_expiry,
    local_today,
    next_notification_date,
    should_notify_today,
)
from .models import (
    BatchReport,
    NotificationChannel,
    NotificationLogEntry,
    NotificationStatus,
    ProcessResult,
    ProcessStatus,
    Reminder,
    ReminderRepository,
)

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReminderBatchProcessor:
    """Processes due reminders one by one."""

    def __init__(
        self,
        repository: ReminderRepository,
        sms_provider: SMSProvider,
        email_provider: Optional[EmailProvider] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = _utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.repository = repository
        self.sms_provider = sms_provider
        self.email_provider = email_provider
        self.settings = settings or Settings()
        self._clock = clock
        self._monotonic = monotonic

    async def run(self, today: Optional[date] = None) -> BatchReport:
        """
        Process every reminder due on or before ``today``.

        Args:
            today: Override for the Bucharest local date

        Returns:
            BatchReport with counts and per-reminder results
        """
        today = today or local_today(self.settings.timezone, self._clock())
        started = self._monotonic()
        deadline = started + self.settings.batch_time_budget_seconds

        due = await self.repository.list_due(today)
        report = BatchReport(today=today.isoformat(), total=len(due))
        logger.info("Reminder batch started", today=report.today, due=len(due))

        for index, reminder in enumerate(due):
            if self._monotonic() >= deadline:
                report.deferred = len(due) - index
                logger.warning(
                    "Batch time budget exhausted",
                    deferred=report.deferred,
                    budget_seconds=self.settings.batch_time_budget_seconds,
                )
                break

            try:
                result = await self.process(reminder, today)
            except Exception as e:
                logger.exception("Reminder processing crashed", reminder_id=reminder.id)
                result = ProcessResult(
                    reminder_id=reminder.id,
                    status=ProcessStatus.FAILED,
                    reason=f"{type(e).__name__}: {e}",
                )
            self._tally(report, result)

        report.duration_ms = round((self._monotonic() - started) * 1000, 2)
        logger.info(
            "Reminder batch finished",
            total=report.total,
            processed=report.processed,
            sent=report.sent,
            failed=report.failed,
            skipped=report.skipped,
            deferred=report.deferred,
            duration_ms=report.duration_ms,
        )
        return report

    @staticmethod
    def _tally(report: BatchReport, result: ProcessResult) -> None:
        report.processed += 1
        report.results.append(result)
        if result.status == ProcessStatus.SENT:
            report.sent += 1
            channels = set(result.channels)
            if channels == {"email", "sms"}:
                report.email_and_sms += 1
            elif channels == {"email"}:
                report.email_only += 1
            elif channels == {"sms"}:
                report.sms_only += 1
        elif result.status == ProcessStatus.FAILED:
            report.failed += 1
        else:
            report.skipped += 1

    async def process(self, reminder: Reminder, today: date) -> ProcessResult:
        """Handle a single due reminder."""
        days = days_until_expiry(reminder.expiry_date, today)
        intervals = reminder.notification_intervals
        next_date = next_notification_date(reminder.expiry_date, days, intervals)

        if not should_notify_today(days, intervals):
            await self._reschedule(reminder, next_date)
            return ProcessResult(
                reminder_id=reminder.id,
                status=ProcessStatus.SKIPPED,
                days_until_expiry=days,
                reason="not_scheduled_day",
                next_notification_date=next_date,
            )

        name, phone, email = await self._recipient(reminder)

        sms_wanted = reminder.is_guest or reminder.notification_channels.sms
        email_wanted = (
            not reminder.is_guest
            and reminder.notification_channels.email
            and self.email_provider is not None
        )

        opted_out = False
        if phone and sms_wanted:
            opted_out = await self.repository.is_opted_out(phone)

        send_sms = bool(phone) and sms_wanted and not opted_out
        send_email = bool(email) and email_wanted

        if not send_sms and not send_email:
            await self._reschedule(reminder, next_date)
            return ProcessResult(
                reminder_id=reminder.id,
                status=ProcessStatus.SKIPPED,
                days_until_expiry=days,
                reason="opted_out" if opted_out else "no_channel",
                next_notification_date=next_date,
            )

        delivered: List[str] = []
        errors: List[str] = []

        if send_email:
            ok, error = await self._send_email(reminder, name, email, phone, days)
            if ok:
                delivered.append(NotificationChannel.EMAIL.value)
            else:
                errors.append(f"email: {error}")

        if send_sms:
            ok, error = await self._send_sms(reminder, name, phone, days)
            if ok:
                delivered.append(NotificationChannel.SMS.value)
            else:
                errors.append(f"sms: {error}")

        await self._reschedule(reminder, next_date)

        status = ProcessStatus.SENT if delivered else ProcessStatus.FAILED
        logger.info(
            "Reminder processed",
            reminder_id=reminder.id,
            days_until_expiry=days,
            status=status.value,
            channels=delivered,
            next_notification_date=next_date,
        )
        return ProcessResult(
            reminder_id=reminder.id,
            status=status,
            days_until_expiry=days,
            channels=delivered,
            reason="; ".join(errors) or None,
            next_notification_date=next_date,
        )

    async def _recipient(
        self, reminder: Reminder
    ) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """Name, canonical phone and email for a reminder."""
        if reminder.is_guest:
            return (
                reminder.guest_name,
                normalize_phone(reminder.guest_phone),
                reminder.guest_email,
            )

        contact = await self.repository.get_contact(reminder.user_id)
        if contact is None:
            return None, None, None
        return contact.name, normalize_phone(contact.phone), contact.email

    async def _send_sms(
        self, reminder: Reminder, name: Optional[str], phone: str, days: int
    ) -> Tuple[bool, Optional[str]]:
        body = reminder_message(
            reminder.reminder_type,
            name,
            reminder.plate_number,
            as_date(reminder.expiry_date),
            days,
            opt_out_link=build_opt_out_link(phone, self.settings.app_url),
        )
        template_id = f"{reminder.reminder_type.value}_{template_key(days)}"
        result = await self.sms_provider.send_sms(
            phone, body, metadata={"template_id": template_id}
        )
        await self._log(reminder, NotificationChannel.SMS, phone, result, days)
        if not result.success:
            logger.warning(
                "Reminder SMS failed",
                reminder_id=reminder.id,
                to=mask_phone(phone),
                error_code=result.error_code,
            )
        return result.success, result.error_message

    async def _send_email(
        self,
        reminder: Reminder,
        name: Optional[str],
        email: str,
        phone: Optional[str],
        days: int,
    ) -> Tuple[bool, Optional[str]]:
        expiry = as_date(reminder.expiry_date)
        opt_out_link = build_opt_out_link(phone, self.settings.app_url) if phone else None
        result = await self.email_provider.send_email(
            email,
            reminder_email_subject(reminder.reminder_type, reminder.plate_number, days),
            reminder_email_html(
                reminder.reminder_type,
                name,
                reminder.plate_number,
                expiry,
                days,
                opt_out_link=opt_out_link,
            ),
        )
        await self._log(reminder, NotificationChannel.EMAIL, email, result, days)
        if not result.success:
            logger.warning(
                "Reminder email failed",
                reminder_id=reminder.id,
                error_code=result.error_code,
            )
        return result.success, result.error_message

    async def _log(
        self,
        reminder: Reminder,
        channel: NotificationChannel,
        recipient: str,
        result: SendResult,
        days: int,
    ) -> None:
        await self.repository.log_notification(
            NotificationLogEntry(
                reminder_id=reminder.id,
                channel=channel,
                status=NotificationStatus.SENT if result.success else NotificationStatus.FAILED,
                recipient=recipient,
                sent_at=self._clock(),
                provider_message_id=result.message_id,
                error_message=result.error_message if not result.success else None,
                details={
                    "days_until_expiry": days,
                    "provider": result.provider,
                    "parts": result.parts,
                },
            )
        )

    async def _reschedule(self, reminder: Reminder, next_date: Optional[str]) -> None:
        await self.repository.update_next_notification_date(
            reminder.id, as_date(next_date) if next_date else None
        )
