"""Deterministic parser for RFC 5545 recurrence text.

This module converts DTSTART/RRULE/EXRULE/RDATE/EXDATE content lines into a
structured RuleSet (or a bare RRULE value into a Rule).
It must be deterministic: same input -> same output (or same structured error).
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from rrulecodec.models.constants import RECOGNIZED_KEYS
from rrulecodec.models.rule import Every, Frequency, Nth, Rule, Weekday
from rrulecodec.models.rule_set import RuleSet
from rrulecodec.recurrence.errors import RRuleParseError
from rrulecodec.recurrence.timestamps import end_of_day, localize, parse_basic, resolve_zone

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^[+-]?\d+$")
_WEEKDAY_RE = re.compile(r"^(?P<n>[+-]?\d{1,2})?(?P<day>MO|TU|WE|TH|FR|SA|SU)$", re.I)
_CONTENT_LINE_RE = re.compile(r"^(?P<name>[A-Za-z-]+)(?P<params>(?:;[^:]*)?):(?P<value>.*)$")

# Rule attribute for each integer-list key
_INT_LIST_KEYS: Dict[str, str] = {
    "BYSETPOS": "by_set_pos",
    "BYMONTH": "by_month",
    "BYMONTHDAY": "by_month_day",
    "BYYEARDAY": "by_year_day",
    "BYWEEKNO": "by_week_no",
    "BYHOUR": "by_hour",
    "BYMINUTE": "by_minute",
    "BYSECOND": "by_second",
}


def _parse_int(raw: str, *, key: str) -> int:
    token = raw.strip()
    if not _INT_RE.match(token):
        raise RRuleParseError(f"{key} expects an integer, got {raw!r}", fragment=f"{key}={raw}")
    return int(token)


def _parse_int_list(raw: str, *, key: str) -> Tuple[int, ...]:
    items = raw.split(",")
    if any(not item.strip() for item in items):
        raise RRuleParseError(f"{key} has an empty list item", fragment=f"{key}={raw}")
    return tuple(_parse_int(item, key=key) for item in items)


def parse_weekday_token(token: str, *, key: str = "BYDAY"):
    """Parse 'MO', 'mo', '2TU', '-1FR', '+3SA' into Every/Nth."""
    m = _WEEKDAY_RE.match(token.strip())
    if not m:
        raise RRuleParseError(f"Invalid weekday: {token!r}", fragment=f"{key}={token}")
    day = Weekday(m.group("day").upper())
    if m.group("n") is None:
        return Every(weekday=day)
    n = int(m.group("n"))
    if n == 0:
        raise RRuleParseError(f"Weekday ordinal must be non-zero: {token!r}", fragment=f"{key}={token}")
    return Nth(n=n, weekday=day)


def _parse_until(raw: str, zone: Optional[tzinfo]) -> datetime:
    naive, is_utc, is_date = parse_basic(raw)
    if is_utc:
        return naive.replace(tzinfo=timezone.utc)
    zone = zone or timezone.utc
    if is_date:
        # A DATE-valued UNTIL covers the whole day.
        naive = end_of_day(naive.date())
    return localize(naive, zone) or naive.replace(tzinfo=zone)


def parse_rule(text: str, *, zone: Optional[tzinfo] = None) -> Rule:
    """Parse an RRULE value (``FREQ=DAILY;COUNT=3``), with or without the ``RRULE:`` prefix.

    ``zone`` is the anchor's zone, used for floating UNTIL values (UTC when omitted).
    """
    raw = (text or "").strip()
    if not raw:
        raise RRuleParseError("Rule text is required", fragment=text)
    if raw.upper().startswith("RRULE:") or raw.upper().startswith("EXRULE:"):
        raw = raw.split(":", 1)[1]

    seen: set = set()
    fields: Dict[str, object] = {}
    for part in raw.split(";"):
        if not part.strip():
            continue
        if "=" not in part:
            raise RRuleParseError(f"Invalid parameter format: {part!r}", fragment=part)
        key, value = part.split("=", 1)
        key = key.strip().upper()
        value = value.strip()
        if key not in RECOGNIZED_KEYS:
            raise RRuleParseError(f"Unknown rule part: {key}", fragment=part)
        if key in seen:
            raise RRuleParseError(f"Duplicate rule part: {key}", fragment=part)
        seen.add(key)
        if not value:
            raise RRuleParseError(f"Empty value for {key}", fragment=part)

        if key == "FREQ":
            try:
                fields["frequency"] = Frequency(value.upper())
            except ValueError:
                raise RRuleParseError(f"Invalid frequency: {value}", fragment=part) from None
        elif key == "INTERVAL":
            interval = _parse_int(value, key=key)
            if interval < 1:
                raise RRuleParseError("INTERVAL must be a positive integer", fragment=part)
            fields["interval"] = interval
        elif key == "COUNT":
            count = _parse_int(value, key=key)
            if count < 0:
                raise RRuleParseError("COUNT must be a non-negative integer", fragment=part)
            fields["count"] = count
        elif key == "UNTIL":
            fields["until"] = _parse_until(value, zone)
        elif key == "WKST":
            m = _WEEKDAY_RE.match(value)
            if not m or m.group("n") is not None:
                raise RRuleParseError(f"Invalid week start: {value}", fragment=part)
            fields["week_start"] = Weekday(m.group("day").upper())
        elif key == "BYDAY":
            items = value.split(",")
            if any(not item.strip() for item in items):
                raise RRuleParseError("BYDAY has an empty list item", fragment=part)
            fields["by_weekday"] = tuple(parse_weekday_token(item) for item in items)
        else:
            fields[_INT_LIST_KEYS[key]] = _parse_int_list(value, key=key)

    if "frequency" not in fields:
        raise RRuleParseError("FREQ is required", fragment=text)

    try:
        rule = Rule(**fields)
    except PydanticValidationError as e:
        raise RRuleParseError(f"Invalid rule: {e.errors()[0]['msg']}", fragment=text) from None
    logger.debug(f"Parsed rule {raw!r} -> FREQ={rule.frequency.value}")
    return rule


def _unfold(text: str) -> List[str]:
    """Split into content lines, joining RFC 5545 folded continuations."""
    lines: List[str] = []
    for line in text.replace("\r\n", "\n").split("\n"):
        if line[:1] in (" ", "\t") and lines:
            lines[-1] += line[1:]
        elif line.strip():
            lines.append(line.strip())
    return lines


def _parse_params(raw: str, *, line: str) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for item in raw.split(";"):
        if not item:
            continue
        if "=" not in item:
            raise RRuleParseError(f"Invalid property parameter: {item!r}", fragment=line)
        k, v = item.split("=", 1)
        params[k.strip().upper()] = v.strip().strip('"')
    return params


def _parse_dtstart(params: Dict[str, str], value: str) -> Tuple[datetime, Optional[str]]:
    naive, is_utc, _ = parse_basic(value)
    tzid = params.get("TZID")
    if tzid:
        zone = resolve_zone(tzid)
        if is_utc:
            # TZID plus a UTC value: the instant is UTC, expressed in the named zone.
            return naive.replace(tzinfo=timezone.utc).astimezone(zone), tzid
        return localize(naive, zone) or naive.replace(tzinfo=zone), tzid
    # Floating and UTC anchors are both pinned to UTC.
    return naive.replace(tzinfo=timezone.utc), None


def _parse_date_list(params: Dict[str, str], value: str, anchor_zone: tzinfo, *, line: str) -> List[datetime]:
    if params.get("VALUE", "").upper() == "PERIOD":
        raise RRuleParseError("PERIOD values are not supported", fragment=line)
    zone = resolve_zone(params["TZID"]) if params.get("TZID") else anchor_zone
    out: List[datetime] = []
    for item in value.split(","):
        if not item.strip():
            raise RRuleParseError("Empty date in list", fragment=line)
        naive, is_utc, _ = parse_basic(item)
        if is_utc:
            dt = naive.replace(tzinfo=timezone.utc)
        else:
            dt = localize(naive, zone) or naive.replace(tzinfo=zone)
        out.append(dt.astimezone(anchor_zone))
    return out


def parse_rule_set(text: str) -> RuleSet:
    """Parse DTSTART plus RRULE/EXRULE/RDATE/EXDATE lines into a RuleSet.

    Supported input:
    - ``DTSTART;TZID=Europe/London:20230326T000000Z`` followed by
    - ``RRULE:FREQ=DAILY;BYDAY=MO,TU,WE`` (one or more), and optionally
    - ``EXRULE:...``, ``RDATE:...``, ``EXDATE;TZID=...:...``
    """
    raw = (text or "").strip()
    if not raw:
        raise RRuleParseError("Rule text is required", fragment=text)

    lines: List[Tuple[str, Dict[str, str], str, str]] = []
    for line in _unfold(raw):
        if line.upper().startswith("FREQ="):
            lines.append(("RRULE", {}, line, line))
            continue
        m = _CONTENT_LINE_RE.match(line)
        if not m:
            raise RRuleParseError(f"Invalid content line: {line!r}", fragment=line)
        name = m.group("name").upper()
        params = _parse_params(m.group("params"), line=line)
        lines.append((name, params, m.group("value").strip(), line))

    dtstarts = [entry for entry in lines if entry[0] == "DTSTART"]
    if not dtstarts:
        raise RRuleParseError("DTSTART is required", fragment=text)
    if len(dtstarts) > 1:
        raise RRuleParseError("Only one DTSTART is allowed", fragment=dtstarts[1][3])
    _, dt_params, dt_value, _ = dtstarts[0]
    dtstart, tzid = _parse_dtstart(dt_params, dt_value)
    zone = dtstart.tzinfo

    rrules: List[Rule] = []
    exrules: List[Rule] = []
    rdates: List[datetime] = []
    exdates: List[datetime] = []
    for name, params, value, line in lines:
        if name == "DTSTART":
            continue
        if name == "RRULE":
            rrules.append(parse_rule(value, zone=zone))
        elif name == "EXRULE":
            exrules.append(parse_rule(value, zone=zone))
        elif name == "RDATE":
            rdates.extend(_parse_date_list(params, value, zone, line=line))
        elif name == "EXDATE":
            exdates.extend(_parse_date_list(params, value, zone, line=line))
        else:
            raise RRuleParseError(f"Unknown property: {name}", fragment=line)

    if not rrules:
        raise RRuleParseError("RRULE is required", fragment=text)

    logger.debug(f"Parsed rule set: {len(rrules)} rrule(s), {len(exrules)} exrule(s), "
                 f"{len(rdates)} rdate(s), {len(exdates)} exdate(s)")
    return RuleSet(
        dtstart=dtstart,
        tzid=tzid,
        rrules=tuple(rrules),
        exrules=tuple(exrules),
        rdates=tuple(rdates),
        exdates=tuple(exdates),
    )
