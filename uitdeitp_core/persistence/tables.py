"""
Database Tables
===============
SQLAlchemy models for stations, verifications, reminders, opt-outs and
the notification log.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class KioskStationModel(Base):
    __tablename__ = "kiosk_stations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    station_phone: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class PhoneVerificationModel(Base):
    __tablename__ = "phone_verifications"
    __table_args__ = (
        Index("ix_phone_verifications_phone_created", "phone_number", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    phone_number: Mapped[str] = mapped_column(String(16))
    verification_code: Mapped[str] = mapped_column(String(6))
    source: Mapped[str] = mapped_column(String(16))
    station_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("kiosk_stations.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class UserProfileModel(Base):
    __tablename__ = "user_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)


class ReminderModel(Base):
    __tablename__ = "reminders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("user_profiles.id"), nullable=True, index=True
    )
    guest_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    guest_phone: Mapped[Optional[str]] = mapped_column(String(16), nullable=True, index=True)
    guest_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reminder_type: Mapped[str] = mapped_column(String(16), default="itp")
    plate_number: Mapped[str] = mapped_column(String(16))
    expiry_date: Mapped[date] = mapped_column(Date)
    notification_intervals: Mapped[List[int]] = mapped_column(JSON, default=lambda: [7, 3, 1])
    notification_channels: Mapped[Dict[str, Any]] = mapped_column(
        JSON, default=lambda: {"sms": True, "email": False}
    )
    next_notification_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)
    source: Mapped[str] = mapped_column(String(16), default="user")
    station_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("kiosk_stations.id"), nullable=True
    )
    consent_given: Mapped[bool] = mapped_column(Boolean, default=False)
    consent_timestamp: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    consent_ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    opt_out: Mapped[bool] = mapped_column(Boolean, default=False)
    opt_out_timestamp: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class GlobalOptOutModel(Base):
    __tablename__ = "global_opt_outs"

    phone: Mapped[str] = mapped_column(String(16), primary_key=True)
    source: Mapped[str] = mapped_column(String(32), default="sms_link")
    opted_out_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class NotificationLogModel(Base):
    __tablename__ = "notification_log"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    reminder_id: Mapped[str] = mapped_column(ForeignKey("reminders.id"), index=True)
    channel: Mapped[str] = mapped_column(String(16))
    status: Mapped[str] = mapped_column(String(16))
    recipient: Mapped[str] = mapped_column(String(255))
    provider_message_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    details: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
