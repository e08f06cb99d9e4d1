"""
Business Calendar Module

Month arithmetic, the excluded-weekday rule for due dates, and whole-day
differences used for delinquency.
"""

from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo
import calendar

from .config import get_config


def business_today() -> date:
    """Current date in the configured business timezone"""
    return datetime.now(ZoneInfo(get_config().timezone)).date()


def business_now() -> datetime:
    """Current timezone-aware datetime in the configured business timezone"""
    return datetime.now(ZoneInfo(get_config().timezone))


def business_date(moment: datetime) -> date:
    """Calendar date of an aware datetime in the configured business timezone"""
    return moment.astimezone(ZoneInfo(get_config().timezone)).date()


def add_months(start_date: date, months: int) -> date:
    """Add months to a date, handling month-end edge cases"""
    month = start_date.month - 1 + months
    year = start_date.year + month // 12
    month = month % 12 + 1
    day = min(start_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def adjust_for_excluded_weekday(value: date, excluded_weekday: Optional[int] = None) -> date:
    """Move a date falling on the excluded weekday (Sunday) to the following day"""
    if excluded_weekday is None:
        excluded_weekday = get_config().excluded_weekday
    if value.weekday() == excluded_weekday:
        return value + timedelta(days=1)
    return value


def add_months_business(start_date: date, months: int,
                        excluded_weekday: Optional[int] = None) -> date:
    """Add months, then shift off the excluded weekday (applied once, not re-checked)"""
    return adjust_for_excluded_weekday(add_months(start_date, months), excluded_weekday)


def days_between(start: date, end: date) -> int:
    """Signed whole days from start to end"""
    return (end - start).days


def days_late(due_date: date, as_of: date) -> int:
    """Whole days past due as of a date, floored at zero"""
    return max(0, days_between(due_date, as_of))


def format_date(value: Optional[date]) -> str:
    """Format for display using the configured pattern, empty for None"""
    if value is None:
        return ""
    return value.strftime(get_config().date_format)
