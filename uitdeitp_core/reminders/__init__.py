"""
Reminders Module
================
Expiry arithmetic, plate numbers and the daily reminder batch.
"""

# Re-export all public APIs
from .intervals import (
    UrgencyStatus,
    as_date,
    local_today,
    days_until_expiry,
    should_notify_today,
    next_notification_date,
    initial_notification_date,
    urgency_status,
    validate_intervals,
    DEFAULT_TIMEZONE,
)
from .plate import format_plate_number, is_valid_plate_number, county_name, ROMANIAN_COUNTIES
from .models import (
    ReminderType,
    ReminderSource,
    NotificationChannel,
    NotificationStatus,
    NotificationChannels,
    ProcessStatus,
    Reminder,
    Contact,
    NotificationLogEntry,
    ProcessResult,
    BatchReport,
    ReminderRepository,
)
from .processor import ReminderBatchProcessor

__all__ = [
    # Intervals
    "UrgencyStatus",
    "as_date",
    "local_today",
    "days_until_expiry",
    "should_notify_today",
    "next_notification_date",
    "initial_notification_date",
    "urgency_status",
    "validate_intervals",
    "DEFAULT_TIMEZONE",
    # Plates
    "format_plate_number",
    "is_valid_plate_number",
    "county_name",
    "ROMANIAN_COUNTIES",
    # Models
    "ReminderType",
    "ReminderSource",
    "NotificationChannel",
    "NotificationStatus",
    "NotificationChannels",
    "ProcessStatus",
    "Reminder",
    "Contact",
    "NotificationLogEntry",
    "ProcessResult",
    "BatchReport",
    "ReminderRepository",
    # Batch
    "ReminderBatchProcessor",
]
