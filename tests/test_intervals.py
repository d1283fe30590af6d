"""
Unit Tests for Reminder Scheduling
==================================
Interval arithmetic, local dates and plate numbers.
"""

from datetime import date, datetime, timezone

import pytest


class TestNextNotificationDate:
    """Tests for picking the next reminder date."""

    @pytest.mark.parametrize("days,expected", [
        (30, "2025-12-24"),
        (7, "2025-12-28"),
        (3, "2025-12-30"),
        (1, None),
        (0, None),
        (-4, None),
    ])
    def test_standard_intervals(self, days, expected):
        """The next interval is the largest one strictly below today's distance."""
        from uitdeitp_core.reminders import next_notification_date

        assert next_notification_date("2025-12-31", days, [7, 3, 1]) == expected

    def test_empty_intervals(self):
        """No intervals means no further reminders."""
        from uitdeitp_core.reminders import next_notification_date

        assert next_notification_date("2025-12-31", 7, []) is None
        assert next_notification_date(date(2026, 1, 1), 400, []) is None

    def test_order_independent(self):
        """Unsorted and duplicated intervals give the same answer."""
        from uitdeitp_core.reminders import next_notification_date

        assert next_notification_date("2025-12-31", 7, [1, 7, 3]) == next_notification_date(
            "2025-12-31", 7, [7, 3, 1]
        )
        assert next_notification_date("2025-12-31", 7, [3, 1, 3, 7, 1]) == "2025-12-28"

    def test_accepts_date_and_datetime(self):
        """Dates, datetimes and ISO strings are interchangeable."""
        from uitdeitp_core.reminders import next_notification_date

        as_date = next_notification_date(date(2025, 12, 31), 7, [7, 3, 1])
        as_datetime = next_notification_date(datetime(2025, 12, 31, 23, 0), 7, [7, 3, 1])
        as_iso = next_notification_date("2025-12-31T00:00:00Z", 7, [7, 3, 1])

        assert as_date == as_datetime == as_iso == "2025-12-28"


class TestInitialNotificationDate:
    """Tests for the first reminder date of a new reminder."""

    def test_far_future(self):
        """A distant expiry starts at the largest interval."""
        from uitdeitp_core.reminders import initial_notification_date

        assert initial_notification_date("2025-12-31", [7, 3, 1], "2025-06-01") == "2025-12-24"

    def test_interval_day_counts(self):
        """Created exactly on an interval day, the reminder fires today."""
        from uitdeitp_core.reminders import initial_notification_date

        assert initial_notification_date("2025-12-31", [7, 3, 1], "2025-12-24") == "2025-12-24"

    def test_between_intervals(self):
        """Between intervals the next smaller one is chosen."""
        from uitdeitp_core.reminders import initial_notification_date

        assert initial_notification_date("2025-12-31", [7, 3, 1], "2025-12-27") == "2025-12-28"

    def test_too_late(self):
        """On the expiry day nothing is scheduled."""
        from uitdeitp_core.reminders import initial_notification_date

        assert initial_notification_date("2025-12-31", [7, 3, 1], "2025-12-31") is None


class TestDays:
    """Tests for local dates and day counts."""

    def test_days_until_expiry(self):
        """Whole calendar days, negative once expired."""
        from uitdeitp_core.reminders import days_until_expiry

        assert days_until_expiry("2025-03-17", "2025-03-10") == 7
        assert days_until_expiry(date(2025, 3, 10), date(2025, 3, 10)) == 0
        assert days_until_expiry("2025-03-08", "2025-03-10") == -2

    def test_local_today_crosses_midnight(self):
        """22:30 UTC in summer is already the next day in Bucharest."""
        from uitdeitp_core.reminders import local_today

        now = datetime(2025, 7, 1, 22, 30, tzinfo=timezone.utc)
        assert local_today("Europe/Bucharest", now) == date(2025, 7, 2)
        assert local_today("UTC", now) == date(2025, 7, 1)

    def test_should_notify_today(self):
        """Only exact interval days fire."""
        from uitdeitp_core.reminders import should_notify_today

        assert should_notify_today(7, [7, 3, 1]) is True
        assert should_notify_today(5, [7, 3, 1]) is False
        assert should_notify_today(0, [7, 3, 1]) is False

    @pytest.mark.parametrize("days,expected", [
        (-1, "expired"),
        (0, "urgent"),
        (3, "urgent"),
        (7, "warning"),
        (30, "normal"),
    ])
    def test_urgency_status(self, days, expected):
        """Urgency buckets for display."""
        from uitdeitp_core.reminders import urgency_status

        assert urgency_status(days).value == expected


class TestValidateIntervals:
    """Tests for user-supplied interval lists."""

    def test_dedupes_and_sorts(self):
        """Duplicates are dropped and the list is largest first."""
        from uitdeitp_core.reminders import validate_intervals

        assert validate_intervals([1, 7, 3, 7]) == [7, 3, 1]

    @pytest.mark.parametrize("intervals", [[], [0, 7], [7, 400], [-1]])
    def test_rejects_invalid(self, intervals):
        """Empty lists and out-of-range values are rejected."""
        from uitdeitp_core.errors import ValidationError
        from uitdeitp_core.reminders import validate_intervals

        with pytest.raises(ValidationError):
            validate_intervals(intervals)


class TestPlateNumbers:
    """Tests for plate number formatting."""

    @pytest.mark.parametrize("raw,expected", [
        ("CJ12ABC", "CJ-12-ABC"),
        ("cj 12 abc", "CJ-12-ABC"),
        ("B-123-XYZ", "B-123-XYZ"),
        ("b123xyz", "B-123-XYZ"),
    ])
    def test_formats(self, raw, expected):
        """Common spellings normalize to XX-123-ABC."""
        from uitdeitp_core.reminders import format_plate_number

        assert format_plate_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "1234", "CJ-1-ABC", "CJ-12-AB", "ABC-12-XYZ"])
    def test_rejects(self, raw):
        """Anything else is not a plate."""
        from uitdeitp_core.reminders import format_plate_number, is_valid_plate_number

        assert format_plate_number(raw) is None
        assert is_valid_plate_number(raw) is False

    def test_county_name(self):
        """County codes resolve to their names."""
        from uitdeitp_core.reminders import county_name

        assert county_name("CJ-12-ABC") == "Cluj"
        assert county_name("B-123-XYZ") == "București"
        assert county_name("nonsense") is None
