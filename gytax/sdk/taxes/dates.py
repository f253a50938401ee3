"""Calendar helpers for due-date arithmetic."""

import calendar
from datetime import date


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month.

    Example: add_months(date(2025, 8, 31), 6) -> date(2026, 2, 28)
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    max_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, max_day))


def on_day(year: int, month: int, day: int) -> date:
    """date(year, month, day) with day clamped to the month's length."""
    max_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, max_day))


def epoch_millis(day: date) -> int:
    """Milliseconds since the Unix epoch at UTC midnight of day."""
    return calendar.timegm(day.timetuple()) * 1000
