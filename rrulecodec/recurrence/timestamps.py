"""Date/time helpers: RFC 3339 and iCalendar basic-format timestamps, zones, DST.

All wall-clock arithmetic in the engine happens on naive datetimes; this module
is the only place that attaches or strips zones.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.parser import isoparse

from rrulecodec.models.constants import MONTH_NAMES
from rrulecodec.recurrence.errors import DateTimeParseError, RRuleCalendarError, RRuleParseError

_BASIC_RE = re.compile(
    r"^(?P<y>\d{4})(?P<mo>\d{2})(?P<d>\d{2})(?:T(?P<h>\d{2})(?P<mi>\d{2})(?P<s>\d{2})(?P<z>Z)?)?$",
    re.I,
)
_RFC3339_DATE_RE = re.compile(r"^\s*(?P<y>\d{4})-(?P<mo>\d{2})-(?P<d>\d{2})")


def check_calendar_date(year: int, month: int, day: int) -> None:
    """Raise RRuleCalendarError if (year, month, day) is not a real date."""
    if not 1 <= month <= 12:
        raise DateTimeParseError(f"{year:04d}-{month:02d}-{day:02d}")
    days = calendar.monthrange(year, month)[1]
    if not 1 <= day <= days:
        raise RRuleCalendarError(MONTH_NAMES[month - 1], day, days_in_month=days, year=year)


def resolve_zone(tzid: str) -> ZoneInfo:
    try:
        return ZoneInfo(tzid.strip())
    except (ZoneInfoNotFoundError, ValueError):
        raise RRuleParseError(f"Unknown TZID: {tzid}", fragment=tzid) from None


def zone_name(tz: Optional[tzinfo]) -> Optional[str]:
    if tz is None:
        return None
    key = getattr(tz, "key", None)
    if key:
        return key
    return tz.tzname(None)


def parse_basic(value: str) -> Tuple[datetime, bool, bool]:
    """Parse ``YYYYMMDD[THHMMSS[Z]]``.

    Returns (naive datetime, is_utc, is_date_only).
    """
    m = _BASIC_RE.match((value or "").strip())
    if not m:
        raise RRuleParseError(f"Invalid date-time value: {value}", fragment=value)
    year, month, day = int(m.group("y")), int(m.group("mo")), int(m.group("d"))
    if not 1 <= month <= 12:
        raise RRuleParseError(f"Invalid month in date-time value: {value}", fragment=value)
    check_calendar_date(year, month, day)
    if m.group("h") is None:
        return datetime(year, month, day), False, True
    hour, minute, second = int(m.group("h")), int(m.group("mi")), int(m.group("s"))
    if hour > 23 or minute > 59 or second > 60:
        raise RRuleParseError(f"Invalid time in date-time value: {value}", fragment=value)
    # Leap seconds clamp to :59
    second = min(second, 59)
    return datetime(year, month, day, hour, minute, second), bool(m.group("z")), False


def localize(naive: datetime, zone: tzinfo) -> Optional[datetime]:
    """Attach ``zone`` to a wall-clock time.

    Returns None for wall times that fall into a DST gap. Ambiguous wall times
    resolve to the first instant (fold=0).
    """
    aware = naive.replace(tzinfo=zone, fold=0)
    back = aware.astimezone(timezone.utc).astimezone(zone).replace(tzinfo=None)
    if back != naive:
        return None
    return aware


def to_wall(dt: datetime, zone: tzinfo) -> datetime:
    """Express an aware instant as naive wall-clock time in ``zone``."""
    return dt.astimezone(zone).replace(tzinfo=None)


def parse_timestamp(value) -> datetime:
    """Parse an RFC 3339 timestamp that must carry an offset."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise DateTimeParseError(value.isoformat())
        return value
    if not isinstance(value, str) or not value.strip():
        raise DateTimeParseError(value)
    m = _RFC3339_DATE_RE.match(value)
    if m:
        month = int(m.group("mo"))
        if 1 <= month <= 12:
            check_calendar_date(int(m.group("y")), month, int(m.group("d")))
    try:
        dt = isoparse(value.strip())
    except (ValueError, OverflowError):
        raise DateTimeParseError(value) from None
    if dt.tzinfo is None:
        raise DateTimeParseError(value)
    return dt


def format_timestamp(dt: datetime) -> str:
    """RFC 3339 with millisecond precision and numeric offset."""
    return dt.isoformat(timespec="milliseconds")


def format_basic_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def format_basic_local(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M%S")


def end_of_day(d: date) -> datetime:
    return datetime(d.year, d.month, d.day, 23, 59, 59)
