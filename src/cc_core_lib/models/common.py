"""Common helpers shared across models and services.

- utc_now(): Timezone-aware current time
- utc_today(): Current calendar date in UTC (streaks and monthly caps use server UTC)
- month_key(): YYYY-MM bucket for monthly conversion caps
"""

from datetime import date, datetime, timezone
from typing import Union


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Calendar date in UTC, so clients cannot shift streak days with local clocks"""
    return utc_now().date()


def month_key(moment: Union[date, datetime]) -> str:
    """Return the YYYY-MM bucket for a date or datetime.

    Example:
        >>> month_key(date(2026, 3, 9))
        '2026-03'
    """
    return f"{moment.year:04d}-{moment.month:02d}"
