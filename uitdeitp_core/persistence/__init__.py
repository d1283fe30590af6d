"""
Persistence Module
==================
SQLAlchemy tables and repositories.
"""

# Re-export all public APIs
from .tables import (
    KioskStationModel,
    PhoneVerificationModel,
    UserProfileModel,
    ReminderModel,
    GlobalOptOutModel,
    NotificationLogModel,
)
from .verification_store import SqlVerificationStore, as_utc
from .reminder_repository import SqlReminderRepository, SqlOptOutRepository

__all__ = [
    # Tables
    "KioskStationModel",
    "PhoneVerificationModel",
    "UserProfileModel",
    "ReminderModel",
    "GlobalOptOutModel",
    "NotificationLogModel",
    # Repositories
    "SqlVerificationStore",
    "SqlReminderRepository",
    "SqlOptOutRepository",
    "as_utc",
]
