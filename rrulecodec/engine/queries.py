"""Query modes over a rule set's ascending occurrence stream."""

from datetime import datetime, timedelta
from itertools import islice
from typing import Iterator, List, Optional

from rrulecodec.engine.generator import iter_rule_set
from rrulecodec.models.rule import Frequency
from rrulecodec.models.rule_set import RuleSet

# Size of one frequency unit, used to size just_before's search windows.
_UNIT_SPAN = {
    Frequency.YEARLY: timedelta(days=366),
    Frequency.MONTHLY: timedelta(days=31),
    Frequency.WEEKLY: timedelta(weeks=1),
    Frequency.DAILY: timedelta(days=1),
    Frequency.HOURLY: timedelta(hours=1),
    Frequency.MINUTELY: timedelta(minutes=1),
    Frequency.SECONDLY: timedelta(seconds=1),
}
_INITIAL_WINDOW_PERIODS = 8
_WINDOW_GROWTH = 4


def next_occurrences(rule_set: RuleSet, limit: int) -> List[datetime]:
    """The first ``limit`` occurrences from DTSTART (fewer if COUNT/UNTIL ends the rule)."""
    if limit <= 0:
        return []
    return list(islice(iter_rule_set(rule_set), limit))


def between(rule_set: RuleSet, start: datetime, end: datetime, inclusive: bool = False) -> List[datetime]:
    """Occurrences inside [start, end] (inclusive) or (start, end) (exclusive)."""
    out: List[datetime] = []
    if end < start:
        return out
    for dt in iter_rule_set(rule_set, start_hint=start):
        if dt > end or (not inclusive and dt == end):
            break
        if dt < start or (not inclusive and dt == start):
            continue
        out.append(dt)
    return out


def just_after(rule_set: RuleSet, after: datetime, inclusive: bool = False) -> Optional[datetime]:
    """Earliest occurrence > after (>= when inclusive)."""
    for dt in iter_rule_set(rule_set, start_hint=after):
        if dt > after or (inclusive and dt == after):
            return dt
    return None


def _latest_before(stream: Iterator[datetime], before: datetime, inclusive: bool) -> Optional[datetime]:
    found = None
    for dt in stream:
        if dt > before or (not inclusive and dt == before):
            break
        found = dt
    return found


def _window_span(rule_set: RuleSet) -> timedelta:
    return max(_UNIT_SPAN[r.frequency] * r.interval for r in rule_set.rrules) * _INITIAL_WINDOW_PERIODS


def just_before(rule_set: RuleSet, before: datetime, inclusive: bool = False) -> Optional[datetime]:
    """Latest occurrence < before (<= when inclusive).

    Without COUNT the search looks at widening windows ending at ``before``;
    with COUNT every occurrence depends on the earlier ones, so it scans from DTSTART.
    """
    if rule_set.has_count:
        return _latest_before(iter_rule_set(rule_set), before, inclusive)

    span = _window_span(rule_set)
    while before - rule_set.dtstart > span:
        lower = before - span
        found = _latest_before(iter_rule_set(rule_set, start_hint=lower), before, inclusive)
        # Anything earlier than ``lower`` may have skipped occurrences before it.
        if found is not None and found >= lower:
            return found
        span *= _WINDOW_GROWTH
    return _latest_before(iter_rule_set(rule_set), before, inclusive)
