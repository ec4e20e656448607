"""High-level operations over recurrence text.

This module is the single entrypoint used by the HTTP API. Every function takes
plain values (rule text, RFC 3339 strings), runs parse -> validate -> generate,
and returns ``Ok(value)`` or ``Err(ErrorPayload)``. Engine errors never cross
this boundary as exceptions.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from rrulecodec.engine import queries
from rrulecodec.models.properties import RuleProperties
from rrulecodec.models.result import Err, ErrorPayload, Ok, Result
from rrulecodec.models.rule import Frequency, Rule
from rrulecodec.models.rule_set import RuleSet
from rrulecodec.recurrence import parser, serializer, validator
from rrulecodec.recurrence.errors import RRuleError
from rrulecodec.recurrence.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)


def _run(operation: str, fn: Callable[[], Any]) -> Result:
    try:
        return Ok(fn())
    except RRuleError as e:
        logger.debug(f"{operation} failed: {e.kind}: {e}")
        return Err(e.to_payload())


def _load(rule_text: str) -> RuleSet:
    return validator.validate_rule_set(parser.parse_rule_set(rule_text))


def _format_all(occurrences: List[datetime]) -> List[str]:
    return [format_timestamp(dt) for dt in occurrences]


def _format_one(occurrence: Optional[datetime]) -> List[str]:
    return [] if occurrence is None else [format_timestamp(occurrence)]


def next_occurrences(rule_text: str, limit: int) -> Result:
    """First ``limit`` occurrences from DTSTART."""
    return _run(
        "next_occurrences",
        lambda: _format_all(queries.next_occurrences(_load(rule_text), limit)),
    )


def between(rule_text: str, start: str, end: str, inclusive: bool = False) -> Result:
    """Occurrences between two RFC 3339 instants."""

    def run() -> List[str]:
        rule_set = _load(rule_text)
        return _format_all(
            queries.between(rule_set, parse_timestamp(start), parse_timestamp(end), inclusive=inclusive)
        )

    return _run("between", run)


def just_before(rule_text: str, before: str, inclusive: bool = False) -> Result:
    """Latest occurrence before ``before``, as a list of zero or one timestamps."""

    def run() -> List[str]:
        rule_set = _load(rule_text)
        return _format_one(queries.just_before(rule_set, parse_timestamp(before), inclusive=inclusive))

    return _run("just_before", run)


def just_after(rule_text: str, after: str, inclusive: bool = False) -> Result:
    """Earliest occurrence after ``after``, as a list of zero or one timestamps."""

    def run() -> List[str]:
        rule_set = _load(rule_text)
        return _format_one(queries.just_after(rule_set, parse_timestamp(after), inclusive=inclusive))

    return _run("just_after", run)


def properties(rule_text: str) -> Result:
    """Diagnostic view of the primary rule and its anchor."""
    return _run("properties", lambda: RuleProperties.from_rule_set(_load(rule_text)))


def parse_rule(rule_text: str) -> Result:
    """Parse a bare RRULE value (no DTSTART) into a Rule."""
    return _run("parse_rule", lambda: parser.parse_rule(rule_text))


def serialize_rule(rule: Rule) -> Result:
    """Render a Rule as a canonical RRULE value."""
    return _run("serialize_rule", lambda: serializer.serialize_rule(rule))


def validate_rule(rule: Rule, anchor: Union[str, datetime]) -> Result:
    """Validate a Rule against an anchor timestamp; ``Ok(None)`` when valid."""

    def run() -> None:
        validator.validate_rule(rule, anchor)

    return _run("validate_rule", run)


def build_rule(freq: Union[str, Frequency], **opts: Any) -> Result:
    """Keyword builder: ``build_rule("weekly", interval=2, by_weekday=["MO"])``."""
    try:
        frequency = Frequency.from_name(freq)
    except ValueError:
        return Err(ErrorPayload(kind="parse_error", message=f"Invalid frequency: {freq}", details={"fragment": str(freq)}))
    try:
        return Ok(Rule.build(frequency, **opts))
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ()))
        return Err(
            ErrorPayload(
                kind="parse_error",
                message=f"Invalid rule option {field}: {first['msg']}",
                details={"fragment": field},
            )
        )
