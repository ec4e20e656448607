"""Calendar arithmetic for period expansion: month/year lengths, RFC 5545 week
numbers and n-th weekday positions."""

import calendar
from datetime import date, timedelta
from functools import lru_cache
from typing import Tuple


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def day_of_year(d: date) -> int:
    return d.timetuple().tm_yday


@lru_cache(maxsize=1024)
def week_one_start(year: int, week_start: int) -> date:
    """First day of week 1: the first week with at least four days in ``year``."""
    jan1 = date(year, 1, 1)
    offset = (jan1.weekday() - week_start) % 7
    start = jan1 - timedelta(days=offset)
    if 7 - offset < 4:
        start += timedelta(days=7)
    return start


def week_number(d: date, week_start: int) -> Tuple[int, int]:
    """Return (week number, number of weeks in that week-numbering year).

    Days early in January may belong to the last week of the previous year and
    days late in December to week 1 of the next one.
    """
    year = d.year
    start = week_one_start(year, week_start)
    if d < start:
        year -= 1
        start = week_one_start(year, week_start)
    else:
        following = week_one_start(year + 1, week_start)
        if d >= following:
            year += 1
            start = following
    weeks = (week_one_start(year + 1, week_start) - start).days // 7
    return (d - start).days // 7 + 1, weeks


def nth_in_month(d: date) -> Tuple[int, int]:
    """(n, -n) position of d's weekday within its month, e.g. (2, -4) for a second Tuesday."""
    last = days_in_month(d.year, d.month)
    return (d.day - 1) // 7 + 1, -((last - d.day) // 7 + 1)


def nth_in_year(d: date) -> Tuple[int, int]:
    doy = day_of_year(d)
    return (doy - 1) // 7 + 1, -((days_in_year(d.year) - doy) // 7 + 1)


def matches_signed(value: int, length: int, allowed) -> bool:
    """True if ``value`` (1-based) or its from-the-end form is in ``allowed``."""
    return value in allowed or (value - length - 1) in allowed
