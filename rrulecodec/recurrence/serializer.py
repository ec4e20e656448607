"""Export Rule / RuleSet models to canonical iCalendar text."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List

from rrulecodec.models.constants import BY_RULE_KEYS
from rrulecodec.models.rule import Every, Frequency, Nth, Rule, Weekday
from rrulecodec.models.rule_set import RuleSet
from rrulecodec.recurrence.errors import RRuleSerializeError
from rrulecodec.recurrence.timestamps import format_basic_local, format_basic_utc


def _freq_token(value) -> str:
    try:
        return Frequency.from_name(value).value
    except ValueError:
        raise RRuleSerializeError(f"Invalid frequency: {value}", fragment=str(value)) from None


def _weekday_token(value) -> str:
    if isinstance(value, Nth):
        if not isinstance(value.n, int) or value.n == 0:
            raise RRuleSerializeError(f"Invalid weekday ordinal: {value.n}", fragment=str(value))
        return f"{value.n}{Weekday(value.weekday).value}"
    if isinstance(value, Every):
        return Weekday(value.weekday).value
    raise RRuleSerializeError(f"Invalid weekday: {value!r}", fragment=repr(value))


def _int_list(key: str, values: Iterable) -> str:
    out: List[str] = []
    for v in values:
        if isinstance(v, bool) or not isinstance(v, int):
            raise RRuleSerializeError(f"{key} expects integers, got {v!r}", fragment=f"{key}={v!r}")
        out.append(str(v))
    return ",".join(out)


def serialize_rule(rule: Rule) -> str:
    """Convert a rule to an RRULE value (without the leading 'RRULE:' prefix).

    Canonical order: FREQ first, then the non-default parts in a fixed order.
    """
    parts: List[str] = [f"FREQ={_freq_token(rule.frequency)}"]
    if rule.interval is not None and int(rule.interval) != 1:
        if int(rule.interval) < 1:
            raise RRuleSerializeError(f"Invalid interval: {rule.interval}", fragment=f"INTERVAL={rule.interval}")
        parts.append(f"INTERVAL={int(rule.interval)}")
    if rule.count is not None:
        parts.append(f"COUNT={int(rule.count)}")
    if rule.until is not None:
        until: datetime = rule.until
        if until.tzinfo is None:
            raise RRuleSerializeError("UNTIL must be timezone-aware", fragment=until.isoformat())
        parts.append(f"UNTIL={format_basic_utc(until)}")
    try:
        week_start = Weekday(rule.week_start)
    except ValueError:
        raise RRuleSerializeError(f"Invalid week start: {rule.week_start}", fragment=str(rule.week_start)) from None
    if week_start != Weekday.MO:
        parts.append(f"WKST={week_start.value}")
    for attr, key in BY_RULE_KEYS.items():
        values = getattr(rule, attr)
        if not values:
            continue
        if attr == "by_weekday":
            parts.append(f"{key}=" + ",".join(_weekday_token(v) for v in values))
        else:
            parts.append(f"{key}={_int_list(key, values)}")
    return ";".join(parts)


def _dtstart_line(rule_set: RuleSet) -> str:
    if rule_set.tzid:
        return f"DTSTART;TZID={rule_set.tzid}:{format_basic_local(rule_set.dtstart)}"
    return f"DTSTART:{format_basic_utc(rule_set.dtstart)}"


def _date_line(name: str, dates: Iterable[datetime]) -> str:
    return f"{name}:" + ",".join(format_basic_utc(d.astimezone(timezone.utc)) for d in dates)


def serialize_rule_set(rule_set: RuleSet) -> str:
    """Render DTSTART, RRULE, EXRULE, RDATE and EXDATE lines, newline-separated."""
    lines = [_dtstart_line(rule_set)]
    lines.extend(f"RRULE:{serialize_rule(r)}" for r in rule_set.rrules)
    lines.extend(f"EXRULE:{serialize_rule(r)}" for r in rule_set.exrules)
    if rule_set.rdates:
        lines.append(_date_line("RDATE", rule_set.rdates))
    if rule_set.exdates:
        lines.append(_date_line("EXDATE", rule_set.exdates))
    return "\n".join(lines)
