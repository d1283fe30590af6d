"""
Verification Store
==================
Persistence contract for verification records, plus an in-memory
implementation for development and tests.
"""

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Protocol

from .models import KioskStation, VerificationRecord


class VerificationStore(Protocol):
    """
    Storage operations used by the verification engine.

    ``increment_attempts`` and ``mark_verified`` must be atomic with
    respect to concurrent requests for the same phone.
    """

    async def insert(self, record: VerificationRecord) -> None:
        ...

    async def count_created_since(self, phone: str, since: datetime) -> int:
        ...

    async def find_active(self, phone: str, now: datetime) -> List[VerificationRecord]:
        """Unverified, unexpired records for ``phone``, newest first."""
        ...

    async def increment_attempts(self, phone: str, now: datetime) -> int:
        """Add one failed attempt to every active record of ``phone``; returns rows touched."""
        ...

    async def mark_verified(
        self, record_id: str, now: datetime, max_attempts: int
    ) -> bool:
        """Flip ``verified`` if the record is still usable; False when another request won."""
        ...

    async def find_active_station(self, slug: str) -> Optional[KioskStation]:
        ...

    async def latest_verified_at(self, phone: str) -> Optional[datetime]:
        ...


class InMemoryVerificationStore:
    """Process-local store. Not shared between workers."""

    def __init__(self):
        self._records: Dict[str, VerificationRecord] = {}
        self._stations: Dict[str, KioskStation] = {}
        self._lock = asyncio.Lock()

    def add_station(self, station: KioskStation) -> None:
        self._stations[station.slug] = station

    def get(self, record_id: str) -> Optional[VerificationRecord]:
        record = self._records.get(record_id)
        return replace(record) if record else None

    async def insert(self, record: VerificationRecord) -> None:
        async with self._lock:
            self._records[record.id] = replace(record)

    async def count_created_since(self, phone: str, since: datetime) -> int:
        return sum(
            1 for r in self._records.values()
            if r.phone_number == phone and r.created_at >= since
        )

    def _active(self, phone: str, now: datetime) -> List[VerificationRecord]:
        active = [
            r for r in self._records.values()
            if r.phone_number == phone and not r.verified and r.expires_at > now
        ]
        return sorted(active, key=lambda r: r.created_at, reverse=True)

    async def find_active(self, phone: str, now: datetime) -> List[VerificationRecord]:
        return [replace(r) for r in self._active(phone, now)]

    async def increment_attempts(self, phone: str, now: datetime) -> int:
        async with self._lock:
            active = self._active(phone, now)
            for record in active:
                record.attempts += 1
            return len(active)

    async def mark_verified(
        self, record_id: str, now: datetime, max_attempts: int
    ) -> bool:
        async with self._lock:
            record = self._records.get(record_id)
            if (
                record is None
                or record.verified
                or record.attempts >= max_attempts
                or record.expires_at <= now
            ):
                return False
            record.verified = True
            record.verified_at = now
            return True

    async def find_active_station(self, slug: str) -> Optional[KioskStation]:
        station = self._stations.get(slug)
        if station is None or not station.is_active:
            return None
        return station

    async def latest_verified_at(self, phone: str) -> Optional[datetime]:
        times = [
            r.verified_at for r in self._records.values()
            if r.phone_number == phone and r.verified and r.verified_at is not None
        ]
        return max(times) if times else None
