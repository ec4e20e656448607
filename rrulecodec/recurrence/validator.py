"""Semantic validation of parsed rules against their anchor.

Checks run in a fixed order so the same bad input always reports the same
error: value ranges, frequency compatibility, anchor date, impossible
month/day combinations, then UNTIL versus DTSTART. Validation never mutates
the rule.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Union

from rrulecodec.models.constants import BY_RULE_KEYS, FIELD_RANGES, MONTH_NAMES, SIGNED_FIELDS
from rrulecodec.models.rule import Frequency, Nth, Rule
from rrulecodec.models.rule_set import RuleSet
from rrulecodec.recurrence.errors import RRuleCalendarError, RRuleError, RRuleValidationError
from rrulecodec.recurrence.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

# Longest each month can be (February in a leap year)
_MAX_MONTH_DAYS = [31, 29, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]

# BYxxx key -> frequencies it may not be combined with
_UNSUPPORTED = {
    "BYWEEKNO": frozenset(f for f in Frequency if f != Frequency.YEARLY),
    "BYYEARDAY": frozenset({Frequency.DAILY, Frequency.WEEKLY, Frequency.MONTHLY}),
    "BYMONTHDAY": frozenset({Frequency.WEEKLY}),
}


def _check_value(key: str, value, month: Optional[str] = None) -> None:
    low, high = FIELD_RANGES[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise RRuleValidationError(key, value, reason="invalid_value")
    if value < low or value > high or (value == 0 and key in SIGNED_FIELDS):
        raise RRuleValidationError(key, value, min=low, max=high, month=month)


def _anchor_month(dtstart) -> Optional[str]:
    """Month name of the anchor, or None while the anchor is still unchecked."""
    try:
        return MONTH_NAMES[parse_timestamp(dtstart).month - 1]
    except RRuleError:
        # Reported in order by validate_rule.
        return None


def _check_ranges(rule: Rule, anchor_month: Optional[str] = None) -> None:
    try:
        Frequency(rule.frequency)
    except ValueError:
        raise RRuleValidationError("FREQ", rule.frequency, reason="invalid_value") from None
    if not isinstance(rule.interval, int) or rule.interval < 1:
        raise RRuleValidationError("INTERVAL", rule.interval, min=1)
    if rule.count is not None and rule.count < 0:
        raise RRuleValidationError("COUNT", rule.count, min=0)

    for attr, key in BY_RULE_KEYS.items():
        for value in getattr(rule, attr):
            if attr == "by_weekday":
                if isinstance(value, Nth):
                    _check_value(key, value.n)
            else:
                _check_value(key, value, month=anchor_month if key == "BYMONTHDAY" else None)


def _check_frequency(rule: Rule) -> None:
    freq = Frequency(rule.frequency)
    for attr, key in BY_RULE_KEYS.items():
        if getattr(rule, attr) and freq in _UNSUPPORTED.get(key, ()):
            raise RRuleValidationError(
                key,
                list(getattr(rule, attr)),
                reason="unsupported_for_frequency",
                frequency=freq.value,
            )
    if rule.by_set_pos:
        others = [attr for attr in BY_RULE_KEYS if attr != "by_set_pos" and getattr(rule, attr)]
        if not others:
            raise RRuleValidationError("BYSETPOS", list(rule.by_set_pos), reason="requires_by_rule")


def _check_month_days(rule: Rule) -> None:
    """Reject BYMONTH/BYMONTHDAY combinations that no year can satisfy."""
    if not rule.by_month or not rule.by_month_day:
        return
    for month in rule.by_month:
        longest = _MAX_MONTH_DAYS[month - 1]
        if any(abs(day) <= longest for day in rule.by_month_day):
            return
    month = rule.by_month[0]
    day = next(d for d in rule.by_month_day if abs(d) > _MAX_MONTH_DAYS[month - 1])
    raise RRuleCalendarError(MONTH_NAMES[month - 1], day, days_in_month=_MAX_MONTH_DAYS[month - 1])


def validate_rule(rule: Rule, dtstart: Union[str, datetime]) -> datetime:
    """Validate ``rule`` against its anchor.

    Args:
        rule: Parsed or built rule
        dtstart: RFC 3339 timestamp string or timezone-aware datetime

    Returns:
        The parsed anchor

    Raises:
        RRuleValidationError: Out-of-range value or BYxxx part not allowed with FREQ
        RRuleCalendarError: Impossible anchor date or month/day combination
        DateTimeParseError: Anchor that is not a date-time
    """
    _check_ranges(rule, _anchor_month(dtstart))
    _check_frequency(rule)
    anchor = parse_timestamp(dtstart)
    _check_month_days(rule)
    if rule.until is not None and rule.until < anchor:
        raise RRuleValidationError("UNTIL", format_timestamp(rule.until), reason="until_before_dtstart")
    logger.debug(f"Validated FREQ={Frequency(rule.frequency).value} rule against {format_timestamp(anchor)}")
    return anchor


def validate_rule_set(rule_set: RuleSet) -> RuleSet:
    """Validate every RRULE and EXRULE of ``rule_set`` against its DTSTART."""
    for rule in (*rule_set.rrules, *rule_set.exrules):
        validate_rule(rule, rule_set.dtstart)
    return rule_set
