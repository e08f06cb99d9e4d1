"""
Test suite for dates module

Tests month arithmetic, the Sunday adjustment for due dates and whole-day
delinquency counting.
"""

import pytest
from datetime import date, datetime, timezone

from lending_core.dates import (
    add_months, adjust_for_excluded_weekday, add_months_business,
    days_between, days_late, format_date, business_today, business_date
)

SUNDAY = 6


class TestAddMonths:
    """Test calendar month arithmetic"""

    def test_simple_month(self):
        assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)

    def test_year_rollover(self):
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)

    def test_month_end_clamped_leap_year(self):
        """Jan 31 + 1 month lands on the last day of February"""
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_twelve_months(self):
        assert add_months(date(2024, 2, 29), 12) == date(2025, 2, 28)


class TestExcludedWeekday:
    """Test the business-day adjustment"""

    def test_sunday_moves_to_monday(self):
        """2024-02-11 is a Sunday"""
        assert date(2024, 2, 11).weekday() == SUNDAY
        assert adjust_for_excluded_weekday(date(2024, 2, 11)) == date(2024, 2, 12)

    def test_other_days_unchanged(self):
        for day in range(5, 11):  # Monday 2024-02-05 .. Saturday 2024-02-10
            value = date(2024, 2, day)
            assert adjust_for_excluded_weekday(value) == value

    def test_custom_excluded_weekday(self):
        """A Saturday exclusion moves Saturday to Sunday"""
        assert adjust_for_excluded_weekday(date(2024, 2, 10), excluded_weekday=5) == date(2024, 2, 11)

    def test_add_months_business_shifts_once(self):
        """2024-01-11 + 1 month is Sunday 2024-02-11, shifted to Monday"""
        assert add_months_business(date(2024, 1, 11), 1) == date(2024, 2, 12)

    def test_add_months_business_after_clamp(self):
        """Jan 31 + 2 months is Sunday Mar 31, moved into April"""
        assert add_months_business(date(2024, 1, 31), 2) == date(2024, 4, 1)

    def test_add_months_business_without_shift(self):
        """2024-01-07 + 1 month is Wednesday 2024-02-07"""
        assert add_months_business(date(2024, 1, 7), 1) == date(2024, 2, 7)


class TestDayCounts:
    """Test whole-day differences"""

    def test_days_between_signed(self):
        assert days_between(date(2024, 6, 10), date(2024, 6, 20)) == 10
        assert days_between(date(2024, 6, 20), date(2024, 6, 10)) == -10

    def test_days_late_floored_at_zero(self):
        assert days_late(date(2024, 6, 10), date(2024, 6, 5)) == 0
        assert days_late(date(2024, 6, 10), date(2024, 6, 10)) == 0
        assert days_late(date(2024, 6, 10), date(2024, 6, 18)) == 8

    def test_days_late_across_months(self):
        assert days_late(date(2024, 2, 28), date(2024, 3, 1)) == 2


class TestFormatting:
    """Test display helpers"""

    def test_format_date(self):
        assert format_date(date(2024, 2, 7)) == "07/02/2024"

    def test_format_none(self):
        assert format_date(None) == ""

    def test_business_today_is_date(self):
        assert isinstance(business_today(), date)

    def test_business_date_of_utc_moment(self):
        """Lima is UTC-5: 01:00 UTC on Feb 16 is still Feb 15"""
        assert business_date(datetime(2024, 2, 16, 1, 0, tzinfo=timezone.utc)) == date(2024, 2, 15)
        assert business_date(datetime(2024, 2, 16, 5, 0, tzinfo=timezone.utc)) == date(2024, 2, 16)


if __name__ == "__main__":
    pytest.main([__file__])
