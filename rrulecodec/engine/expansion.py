"""Per-period candidate expansion.

A rule plus its anchor is compiled once into an ExpansionPlan (BYxxx parts with
RFC 5545 defaults filled in from the anchor). ``expand_period`` then lists every
wall-clock date-time inside one period that satisfies the plan, sorted, with
BYSETPOS applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import FrozenSet, Iterator, List, Optional, Tuple

from rrulecodec.engine.calendar_info import (
    day_of_year,
    days_in_month,
    days_in_year,
    matches_signed,
    nth_in_month,
    nth_in_year,
    week_number,
)
from rrulecodec.models.rule import Frequency, Nth, Rule

# Coarse -> fine. Components finer than the frequency are enumerated by BYxxx;
# the component equal to the frequency (and coarser) is fixed by the period.
FREQ_RANK = {
    Frequency.YEARLY: 0,
    Frequency.MONTHLY: 1,
    Frequency.WEEKLY: 2,
    Frequency.DAILY: 3,
    Frequency.HOURLY: 4,
    Frequency.MINUTELY: 5,
    Frequency.SECONDLY: 6,
}
HOURLY_RANK = FREQ_RANK[Frequency.HOURLY]
MINUTELY_RANK = FREQ_RANK[Frequency.MINUTELY]
SECONDLY_RANK = FREQ_RANK[Frequency.SECONDLY]


@dataclass(frozen=True)
class ExpansionPlan:
    frequency: Frequency
    interval: int
    week_start: int
    months: FrozenSet[int]
    week_nos: FrozenSet[int]
    year_days: FrozenSet[int]
    month_days: FrozenSet[int]
    weekdays: FrozenSet[int]
    nth_weekdays: FrozenSet[Tuple[int, int]]
    nth_scope: str  # "month" | "year"
    # For components the period fixes, these are limits (empty = no limit).
    hours: Tuple[int, ...]
    minutes: Tuple[int, ...]
    seconds: Tuple[int, ...]
    set_pos: Tuple[int, ...]

    @property
    def rank(self) -> int:
        return FREQ_RANK[self.frequency]

    @property
    def is_sub_daily(self) -> bool:
        return self.rank >= HOURLY_RANK


def build_plan(rule: Rule, anchor: datetime) -> ExpansionPlan:
    """Compile ``rule`` against the anchor's wall-clock time."""
    freq = rule.frequency
    rank = FREQ_RANK[freq]

    months = set(rule.by_month)
    month_days = set(rule.by_month_day)
    weekdays = set()
    nth_weekdays = set()
    for wd in rule.by_weekday:
        # Ordinals only mean something inside a month or a year.
        if isinstance(wd, Nth) and freq in (Frequency.MONTHLY, Frequency.YEARLY):
            nth_weekdays.add((wd.n, wd.weekday.index))
        else:
            weekdays.add(wd.weekday.index)

    if not (rule.by_week_no or rule.by_year_day or rule.by_month_day or rule.by_weekday):
        if freq == Frequency.YEARLY:
            if not months:
                months = {anchor.month}
            month_days = {anchor.day}
        elif freq == Frequency.MONTHLY:
            month_days = {anchor.day}
        elif freq == Frequency.WEEKLY:
            weekdays = {anchor.weekday()}

    nth_scope = "month" if freq == Frequency.MONTHLY or (freq == Frequency.YEARLY and months) else "year"

    hours = tuple(sorted(rule.by_hour))
    if not hours and rank < HOURLY_RANK:
        hours = (anchor.hour,)
    minutes = tuple(sorted(rule.by_minute))
    if not minutes and rank < MINUTELY_RANK:
        minutes = (anchor.minute,)
    seconds = tuple(sorted(rule.by_second))
    if not seconds and rank < SECONDLY_RANK:
        seconds = (anchor.second,)

    return ExpansionPlan(
        frequency=freq,
        interval=rule.interval,
        week_start=rule.week_start.index,
        months=frozenset(months),
        week_nos=frozenset(rule.by_week_no),
        year_days=frozenset(rule.by_year_day),
        month_days=frozenset(month_days),
        weekdays=frozenset(weekdays),
        nth_weekdays=frozenset(nth_weekdays),
        nth_scope=nth_scope,
        hours=hours,
        minutes=minutes,
        seconds=seconds,
        set_pos=tuple(rule.by_set_pos),
    )


def day_matches(plan: ExpansionPlan, d: date) -> bool:
    """Apply BYMONTH, BYWEEKNO, BYYEARDAY, BYMONTHDAY and BYDAY to one day."""
    if plan.months and d.month not in plan.months:
        return False
    if plan.week_nos:
        weekno, weeks = week_number(d, plan.week_start)
        if not matches_signed(weekno, weeks, plan.week_nos):
            return False
    if plan.year_days and not matches_signed(day_of_year(d), days_in_year(d.year), plan.year_days):
        return False
    if plan.month_days and not matches_signed(d.day, days_in_month(d.year, d.month), plan.month_days):
        return False
    if plan.weekdays or plan.nth_weekdays:
        wd = d.weekday()
        if wd in plan.weekdays:
            return True
        if not plan.nth_weekdays:
            return False
        fwd, bwd = nth_in_month(d) if plan.nth_scope == "month" else nth_in_year(d)
        return (fwd, wd) in plan.nth_weekdays or (bwd, wd) in plan.nth_weekdays
    return True


def _period_days(plan: ExpansionPlan, start: date) -> Iterator[date]:
    if plan.frequency == Frequency.YEARLY:
        months = sorted(plan.months) if plan.months else range(1, 13)
        for month in months:
            for day in range(1, days_in_month(start.year, month) + 1):
                yield date(start.year, month, day)
    elif plan.frequency == Frequency.MONTHLY:
        for day in range(1, days_in_month(start.year, start.month) + 1):
            yield date(start.year, start.month, day)
    elif plan.frequency == Frequency.WEEKLY:
        for offset in range(7):
            yield start + timedelta(days=offset)
    else:
        yield start


def _limited(fixed: int, limit: Tuple[int, ...]) -> List[int]:
    return [fixed] if not limit or fixed in limit else []


def period_times(plan: ExpansionPlan, period_start: datetime) -> Tuple[List[int], List[int], List[int]]:
    rank = plan.rank
    hours = _limited(period_start.hour, plan.hours) if rank >= HOURLY_RANK else list(plan.hours)
    minutes = _limited(period_start.minute, plan.minutes) if rank >= MINUTELY_RANK else list(plan.minutes)
    seconds = _limited(period_start.second, plan.seconds) if rank >= SECONDLY_RANK else list(plan.seconds)
    return hours, minutes, seconds


def select_positions(candidates: List[datetime], positions: Tuple[int, ...]) -> List[datetime]:
    """BYSETPOS: keep the 1-based (negative: from the end) positions, in ascending order."""
    size = len(candidates)
    picked = set()
    for pos in positions:
        idx = pos - 1 if pos > 0 else size + pos
        if 0 <= idx < size:
            picked.add(idx)
    return [candidates[i] for i in sorted(picked)]


def expand_period(plan: ExpansionPlan, period_start: datetime) -> List[datetime]:
    """Every matching wall-clock date-time in the period starting at ``period_start``."""
    hours, minutes, seconds = period_times(plan, period_start)
    if not (hours and minutes and seconds):
        return []
    days = [d for d in _period_days(plan, period_start.date()) if day_matches(plan, d)]
    candidates = [
        datetime(d.year, d.month, d.day, h, m, s)
        for d in days
        for h in hours
        for m in minutes
        for s in seconds
    ]
    if plan.set_pos:
        candidates = select_positions(candidates, plan.set_pos)
    return candidates


def skip_target(plan: ExpansionPlan, period_start: datetime) -> Optional[datetime]:
    """For sub-daily frequencies, the next wall-clock boundary worth visiting.

    Returns None when the current period can produce candidates; otherwise the
    start of the next day (failed day filter) or next hour/minute (failed
    BYHOUR/BYMINUTE limit) so the generator can jump over empty periods.
    """
    if not plan.is_sub_daily:
        return None
    day = period_start.date()
    if not day_matches(plan, day):
        return datetime.combine(day + timedelta(days=1), datetime.min.time())
    rank = plan.rank
    if rank > HOURLY_RANK and plan.hours and period_start.hour not in plan.hours:
        return period_start.replace(minute=0, second=0) + timedelta(hours=1)
    if rank > MINUTELY_RANK and plan.minutes and period_start.minute not in plan.minutes:
        return period_start.replace(second=0) + timedelta(minutes=1)
    return None
