"""Lazy occurrence generation for rules and rule sets.

Period by period from the anchor's period, stepping ``interval`` periods:
expand the period, drop candidates before DTSTART, emit, stop on COUNT/UNTIL.
A run of empty periods longer than the configured horizon ends the stream, as
does running off the supported calendar.
"""

import heapq
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterator, List, Optional

from dateutil.relativedelta import relativedelta

from rrulecodec.config import get_generator_limits
from rrulecodec.engine.expansion import ExpansionPlan, build_plan, expand_period, skip_target
from rrulecodec.models.constants import MAX_YEAR
from rrulecodec.models.rule import Frequency, Rule
from rrulecodec.models.rule_set import RuleSet
from rrulecodec.recurrence.timestamps import localize, to_wall

logger = logging.getLogger(__name__)

_STEP_UNIT = {
    Frequency.YEARLY: "years",
    Frequency.MONTHLY: "months",
    Frequency.WEEKLY: "weeks",
    Frequency.DAILY: "days",
    Frequency.HOURLY: "hours",
    Frequency.MINUTELY: "minutes",
    Frequency.SECONDLY: "seconds",
}

_SUB_DAILY_SECONDS = {
    Frequency.HOURLY: 3600,
    Frequency.MINUTELY: 60,
    Frequency.SECONDLY: 1,
}


def period_start(plan: ExpansionPlan, anchor: datetime) -> datetime:
    """Start of the period (per frequency) containing the wall-clock ``anchor``."""
    freq = plan.frequency
    if freq == Frequency.YEARLY:
        return datetime(anchor.year, 1, 1)
    if freq == Frequency.MONTHLY:
        return datetime(anchor.year, anchor.month, 1)
    midnight = datetime(anchor.year, anchor.month, anchor.day)
    if freq == Frequency.WEEKLY:
        return midnight - timedelta(days=(anchor.weekday() - plan.week_start) % 7)
    if freq == Frequency.DAILY:
        return midnight
    if freq == Frequency.HOURLY:
        return anchor.replace(minute=0, second=0, microsecond=0)
    if freq == Frequency.MINUTELY:
        return anchor.replace(second=0, microsecond=0)
    return anchor.replace(microsecond=0)


def advance(plan: ExpansionPlan, start: datetime, units: int) -> datetime:
    """Move ``start`` forward by ``units`` frequency units (not intervals)."""
    return start + relativedelta(**{_STEP_UNIT[plan.frequency]: units})


def units_between(plan: ExpansionPlan, first: datetime, target: datetime) -> int:
    """Whole frequency units from the period ``first`` to the one containing ``target``."""
    freq = plan.frequency
    if freq == Frequency.YEARLY:
        return target.year - first.year
    if freq == Frequency.MONTHLY:
        return (target.year * 12 + target.month) - (first.year * 12 + first.month)
    if freq == Frequency.WEEKLY:
        return (target.date() - first.date()).days // 7
    if freq == Frequency.DAILY:
        return (target.date() - first.date()).days
    return int((target - first).total_seconds()) // _SUB_DAILY_SECONDS[freq]


def _fast_forward(plan: ExpansionPlan, first: datetime, target: datetime) -> datetime:
    """First aligned period at or one interval before the period containing ``target``."""
    units = units_between(plan, first, target)
    steps = units // plan.interval - 1
    if steps <= 0:
        return first
    return advance(plan, first, steps * plan.interval)


def _jump(plan: ExpansionPlan, start: datetime, boundary: datetime) -> datetime:
    """First aligned sub-daily period at or after ``boundary``."""
    step = _SUB_DAILY_SECONDS[plan.frequency] * plan.interval
    gap = int((boundary - start).total_seconds())
    steps = -(-gap // step)
    return start + timedelta(seconds=steps * step)


def iter_rule(
    rule: Rule,
    dtstart: datetime,
    *,
    start_hint: Optional[datetime] = None,
    max_empty_periods: Optional[int] = None,
) -> Iterator[datetime]:
    """Yield the occurrences of ``rule`` anchored at ``dtstart``, ascending.

    Args:
        rule: The recurrence rule (assumed validated)
        dtstart: Timezone-aware anchor; occurrences share its zone
        start_hint: Optional instant the caller is interested in. Ignored when
            the rule has COUNT; otherwise generation starts near it.
        max_empty_periods: Safety horizon override (defaults to configuration)

    Yields:
        Timezone-aware datetimes in strictly ascending order
    """
    if rule.count == 0:
        return
    if max_empty_periods is None:
        max_empty_periods = get_generator_limits()["max_empty_periods"]

    zone = dtstart.tzinfo
    anchor = to_wall(dtstart, zone)
    plan = build_plan(rule, anchor)
    period = period_start(plan, anchor)
    if start_hint is not None and rule.count is None:
        period = _fast_forward(plan, period, to_wall(start_hint, zone))

    dtstart_utc = dtstart.astimezone(timezone.utc)
    until_utc = rule.until.astimezone(timezone.utc) if rule.until is not None else None
    emitted = 0
    empty = 0
    while period.year <= MAX_YEAR:
        produced = False
        boundary = skip_target(plan, period)
        if boundary is not None:
            period = _jump(plan, period, boundary)
        else:
            for naive in expand_period(plan, period):
                if naive < anchor:
                    continue
                if naive == anchor:
                    # Keeps the anchor's fold on a repeated hour.
                    occurrence = dtstart
                else:
                    occurrence = localize(naive, zone)
                    if occurrence is None:
                        # Wall time falls into a DST gap.
                        continue
                    # Same-zone comparisons ignore fold, so compare instants.
                    if occurrence.astimezone(timezone.utc) < dtstart_utc:
                        continue
                if rule.until is not None and occurrence.astimezone(timezone.utc) > until_utc:
                    return
                yield occurrence
                produced = True
                emitted += 1
                if rule.count is not None and emitted >= rule.count:
                    return
            try:
                period = advance(plan, period, plan.interval)
            except (ValueError, OverflowError):
                logger.debug(f"Stopping {rule.frequency.value} expansion at the calendar limit")
                return

        if produced:
            empty = 0
            continue
        empty += 1
        if empty >= max_empty_periods:
            logger.warning(
                f"Stopping {rule.frequency.value} expansion after {empty} consecutive empty periods "
                f"(last period {period.isoformat()})"
            )
            return


def _dedupe_sorted(stream: Iterator[datetime]) -> Iterator[datetime]:
    last = None
    for dt in stream:
        if last is not None and dt == last:
            continue
        last = dt
        yield dt


def iter_rule_set(
    rule_set: RuleSet,
    *,
    start_hint: Optional[datetime] = None,
    max_empty_periods: Optional[int] = None,
) -> Iterator[datetime]:
    """Merge RRULE streams and RDATEs, minus EXDATEs and EXRULE occurrences.

    Ascending and without duplicates. ``start_hint`` is forwarded to every rule
    (each ignores it when it has COUNT).
    """
    dtstart = rule_set.dtstart
    zone = dtstart.tzinfo
    kwargs = {"start_hint": start_hint, "max_empty_periods": max_empty_periods}

    streams: List[Iterator[datetime]] = [iter_rule(r, dtstart, **kwargs) for r in rule_set.rrules]
    if rule_set.rdates:
        streams.append(iter(sorted(d.astimezone(zone) for d in rule_set.rdates)))
    included = _dedupe_sorted(heapq.merge(*streams))

    exdates = {d for d in rule_set.exdates}
    excluded = heapq.merge(*[iter_rule(r, dtstart, **kwargs) for r in rule_set.exrules])
    next_excluded = next(excluded, None)

    for dt in included:
        if dt in exdates:
            continue
        while next_excluded is not None and next_excluded < dt:
            next_excluded = next(excluded, None)
        if next_excluded is not None and next_excluded == dt:
            continue
        yield dt
