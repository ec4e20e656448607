"""Structured errors raised by the parser, validator and serializer.

Every error carries its payload as attributes so the operation boundary can
convert it into an ``ErrorPayload`` without re-parsing the message.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from rrulecodec.models.result import ErrorPayload


class RRuleError(ValueError):
    """Base class for all engine errors."""

    kind = "rrule_error"

    def details(self) -> Dict[str, Any]:
        return {}

    def to_payload(self) -> ErrorPayload:
        return ErrorPayload(kind=self.kind, message=str(self), details=self.details())


class RRuleParseError(RRuleError):
    """Malformed key/value, unknown token or unparsable list; local to one fragment."""

    kind = "parse_error"

    def __init__(self, message: str, *, fragment: Optional[str] = None):
        super().__init__(message)
        self.fragment = fragment

    def details(self) -> Dict[str, Any]:
        return {"fragment": self.fragment}


class RRuleSerializeError(RRuleParseError):
    """A rule whose fields cannot be rendered back into RRULE text."""

    kind = "serialize_error"


class RRuleValidationError(RRuleError):
    """A field value outside its RFC 5545 range or not allowed with the frequency."""

    kind = "validation_error"

    def __init__(
        self,
        field: str,
        value: Any,
        *,
        min: Optional[int] = None,
        max: Optional[int] = None,
        reason: str = "out_of_range",
        frequency: Optional[str] = None,
        month: Optional[str] = None,
    ):
        self.field = field
        self.value = value
        self.min = min
        self.max = max
        self.reason = reason
        self.frequency = frequency
        self.month = month
        if reason == "out_of_range" and max is None:
            message = f"{field} value {value} is below {min}"
        elif reason == "out_of_range":
            message = f"{field} value {value} is outside [{min}, {max}]"
        elif reason == "unsupported_for_frequency":
            message = f"{field} is not allowed with FREQ={frequency}"
        elif reason == "requires_by_rule":
            message = f"{field} requires another BYxxx rule part"
        elif reason == "until_before_dtstart":
            message = f"{field} {value} is before DTSTART"
        else:
            message = f"Invalid {field}: {value}"
        if month is not None:
            message = f"{message}; {month} has no day {value}"
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"field": self.field, "value": self.value, "reason": self.reason}
        if self.min is not None or self.max is not None:
            out["min"] = self.min
            out["max"] = self.max
        if self.frequency is not None:
            out["frequency"] = self.frequency
        if self.month is not None:
            out["month"] = self.month
        return out


class RRuleCalendarError(RRuleError):
    """Syntactically valid fields that describe an impossible calendar date."""

    kind = "calendar_error"

    def __init__(self, month: str, day: int, *, days_in_month: int, year: Optional[int] = None):
        self.month = month
        self.day = day
        self.days_in_month = days_in_month
        self.year = year
        where = f"{month} {year}" if year is not None else month
        super().__init__(f"{where} has {days_in_month} days, day {day} is invalid")

    def details(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "day": self.day,
            "days_in_month": self.days_in_month,
            "year": self.year,
        }


class DateTimeParseError(RRuleError):
    """An anchor or query timestamp that is not a date-time at all."""

    kind = "datetime_parse_error"

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid datetime: {value}")

    def details(self) -> Dict[str, Any]:
        return {"value": self.value}


class RRuleConfigError(RRuleError):
    """An environment setting the engine cannot use."""

    kind = "configuration_error"

    def __init__(self, name: str, value: Any):
        self.name = name
        self.value = value
        super().__init__(f"{name} must be a positive integer, got {value!r}")

    def details(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value}
