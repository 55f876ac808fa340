"""Calendar helpers for date-range filters and billing periods.

All datetimes are naive server-local time, matching how delivery dates
are written.
"""

import calendar
from datetime import date, datetime, time, timedelta


def start_of_day(day: date) -> datetime:
    """Midnight at the start of ``day``."""
    return datetime.combine(day, time.min)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open bounds ``[midnight, next midnight)`` for a calendar day."""
    start = start_of_day(day)
    return start, start + timedelta(days=1)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """Billing period bounds: 1st 00:00:00 through last day 23:59:59 (inclusive).

    Raises:
        ValueError: If month is outside 1-12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return (
        datetime(year, month, 1),
        datetime(year, month, last_day, 23, 59, 59),
    )


def date_range_bounds(
    start_date: date | None,
    end_date: date | None,
) -> tuple[datetime | None, datetime | None]:
    """Convert inclusive ISO date bounds into ``[start, end)`` datetimes.

    The end date covers the whole day, so records written at any time of
    day on ``end_date`` are included.
    """
    start = start_of_day(start_date) if start_date is not None else None
    end = start_of_day(end_date) + timedelta(days=1) if end_date is not None else None
    return start, end


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Return the (year, month) ``offset`` months after the given one."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def weekday_index(moment: datetime | date) -> int:
    """Day of week numbered 1 = Sunday through 7 = Saturday."""
    return moment.isoweekday() % 7 + 1


WEEKDAY_NAMES = {
    1: "Sunday",
    2: "Monday",
    3: "Tuesday",
    4: "Wednesday",
    5: "Thursday",
    6: "Friday",
    7: "Saturday",
}
