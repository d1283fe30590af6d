"""
Shared fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio


class FakeClock:
    """Settable UTC clock for code expiry and batch timing."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeTime:
    """Settable Unix-seconds clock for rate limiting."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def settings():
    from uitdeitp_core.config import Settings

    return Settings(
        environment="test",
        verify_min_response_ms=0,
        verify_jitter_ms=0,
        expose_codes=True,
        app_url="https://uitdeitp.ro",
        cron_secret="cron-secret",
    )


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Fresh SQLite database with every table."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    from uitdeitp_core.database import Base
    from uitdeitp_core.persistence import tables  # noqa: F401

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
