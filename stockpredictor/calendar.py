"""
Trading calendar helpers for the daily simulation loop.

Only weekends are skipped. Exchange holidays are left to the price history:
a weekday without a price row simply yields no inference window.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, timedelta

from .errors import CalendarStall

_MONTH_NAMES = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


def is_weekend(d: date) -> bool:
    """Check if date falls on Saturday (5) or Sunday (6)."""
    return d.weekday() >= 5


def next_weekday(d: date) -> date:
    """
    Advance one day, skipping Saturday and Sunday.

    A step landing on Saturday jumps two further days, a step landing on
    Sunday jumps one.

    Raises:
        CalendarStall: If the computed date is not after ``d``
    """
    new_date = d + timedelta(days=1)
    dow = new_date.weekday()
    if dow == 5:
        new_date += timedelta(days=2)
    elif dow == 6:
        new_date += timedelta(days=1)

    if new_date <= d:
        raise CalendarStall(d)
    return new_date


def add_months(d: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, _days_in_month(year, month))
    return date(year, month, day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        return 31
    return (date(year, month + 1, 1) - date(year, month, 1)).days


def month_starts(start: date, end: date, step: int = 1) -> Iterator[date]:
    """Yield ``start`` and every ``step`` months after it, while before ``end``."""
    current = start
    while current < end:
        yield current
        current = add_months(current, step)


def month_label(d: date) -> str:
    """Short label such as ``Jan2024``."""
    return f'{_MONTH_NAMES[d.month - 1]}{d.year}'
