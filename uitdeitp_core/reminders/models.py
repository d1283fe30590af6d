"""
Reminder Models
===============
Domain types for reminders and the daily batch.
"""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol


class ReminderType(str, Enum):
    """What expires."""
    ITP = "itp"
    RCA = "rca"
    ROVINIETA = "rovinieta"


class ReminderSource(str, Enum):
    KIOSK = "kiosk"
    USER = "user"


class NotificationChannel(str, Enum):
    SMS = "sms"
    EMAIL = "email"


class NotificationStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


class ProcessStatus(str, Enum):
    """Outcome of one reminder in a batch."""
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class NotificationChannels:
    sms: bool = True
    email: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "NotificationChannels":
        data = data or {}
        return cls(sms=bool(data.get("sms", True)), email=bool(data.get("email", False)))

    def to_dict(self) -> Dict[str, bool]:
        return {"sms": self.sms, "email": self.email}


@dataclass
class Reminder:
    """A scheduled expiry reminder. Guests have no ``user_id``."""
    id: str
    reminder_type: ReminderType
    plate_number: str
    expiry_date: date
    notification_intervals: List[int] = field(default_factory=lambda: [7, 3, 1])
    notification_channels: NotificationChannels = field(default_factory=NotificationChannels)
    next_notification_date: Optional[date] = None
    user_id: Optional[str] = None
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    guest_email: Optional[str] = None
    source: ReminderSource = ReminderSource.USER
    station_id: Optional[str] = None
    opt_out: bool = False

    @property
    def is_guest(self) -> bool:
        return self.user_id is None


@dataclass
class Contact:
    """Where a registered user's notifications go."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class NotificationLogEntry:
    reminder_id: str
    channel: NotificationChannel
    status: NotificationStatus
    recipient: str
    sent_at: datetime
    provider_message_id: Optional[str] = None
    error_message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ProcessResult:
    """What happened to one reminder."""
    reminder_id: str
    status: ProcessStatus
    days_until_expiry: Optional[int] = None
    channels: List[str] = field(default_factory=list)
    reason: Optional[str] = None
    next_notification_date: Optional[str] = None


@dataclass
class BatchReport:
    """Aggregate counts of a batch run."""
    today: str
    total: int = 0
    processed: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    deferred: int = 0
    email_only: int = 0
    sms_only: int = 0
    email_and_sms: int = 0
    duration_ms: float = 0.0
    results: List[ProcessResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ReminderRepository(Protocol):
    """Storage operations the batch needs."""

    async def list_due(self, today: date) -> List[Reminder]:
        ...

    async def get_contact(self, user_id: str) -> Optional[Contact]:
        ...

    async def is_opted_out(self, phone: str) -> bool:
        ...

    async def log_notification(self, entry: NotificationLogEntry) -> None:
        ...

    async def update_next_notification_date(
        self, reminder_id: str, next_date: Optional[date]
    ) -> None:
        ...
