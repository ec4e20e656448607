"""Recurrence rule model for rrulecodec.

Canonical immutable representation of an RFC 5545 RRULE. Rules are built by the
parser or directly with keyword arguments; a change produces a new instance via
``model_copy(update=...)``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Frequency(str, Enum):
    SECONDLY = "SECONDLY"
    MINUTELY = "MINUTELY"
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"

    @classmethod
    def from_name(cls, name: Union[str, "Frequency"]) -> "Frequency":
        """Resolve 'weekly', 'Weekly', 'WEEKLY' or a Frequency member."""
        if isinstance(name, Frequency):
            return name
        try:
            return cls(str(name).strip().upper())
        except ValueError:
            raise ValueError(f"Invalid frequency: {name!r}") from None


class Weekday(str, Enum):
    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"

    @property
    def index(self) -> int:
        # Python weekday: Monday=0 ... Sunday=6
        return _WEEKDAY_ORDER.index(self)

    @classmethod
    def from_index(cls, idx: int) -> "Weekday":
        return _WEEKDAY_ORDER[idx]

    @classmethod
    def from_token(cls, token: str) -> "Weekday":
        """Case-insensitive lookup accepting 'MO', 'mo', 'Mon', 'Monday'."""
        key = (token or "").strip().upper()
        for day, name in zip(_WEEKDAY_ORDER, _DAY_NAMES):
            if key in (day.value, name[:3], name):
                return day
        raise ValueError(f"Invalid weekday: {token!r}")


_WEEKDAY_ORDER = [Weekday.MO, Weekday.TU, Weekday.WE, Weekday.TH, Weekday.FR, Weekday.SA, Weekday.SU]
_DAY_NAMES = ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"]


class Every(BaseModel):
    """Every occurrence of a weekday inside the period."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["every"] = "every"
    weekday: Weekday

    def __str__(self) -> str:
        return self.weekday.value


class Nth(BaseModel):
    """The n-th (or n-th from last, when negative) weekday inside the period."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["nth"] = "nth"
    n: int
    weekday: Weekday

    def __str__(self) -> str:
        return f"{self.n}{self.weekday.value}"


NWeekday = Annotated[Union[Every, Nth], Field(discriminator="kind")]


def coerce_nweekday(value: Any) -> Any:
    """Accept 'MO', Weekday.MO, (2, 'TU') or [2, 'TU'] as shorthand."""
    if isinstance(value, (Every, Nth, dict)):
        return value
    if isinstance(value, Weekday):
        return Every(weekday=value)
    if isinstance(value, str):
        return Every(weekday=Weekday.from_token(value))
    if isinstance(value, (tuple, list)) and len(value) == 2:
        n, day = value
        return Nth(n=int(n), weekday=Weekday.from_token(day) if isinstance(day, str) else day)
    return value


def _dedupe(values: Tuple[Any, ...]) -> Tuple[Any, ...]:
    # Deduplicate but preserve order
    seen = set()
    out = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return tuple(out)


class Rule(BaseModel):
    """RFC 5545 recurrence rule.

    Notes:
    - Value ranges of the BYxxx parts are checked by the validator, not here, so
      that an out-of-range rule can be built and then reported with a structured error.
    - ``until`` must be timezone-aware.
    """

    model_config = ConfigDict(frozen=True)

    frequency: Frequency
    interval: int = Field(1, ge=1, description="Every N periods")
    count: Optional[int] = Field(None, ge=0, description="Total number of occurrences")
    until: Optional[datetime] = Field(None, description="Last instant an occurrence may fall on")
    week_start: Weekday = Weekday.MO

    by_set_pos: Tuple[int, ...] = ()
    by_month: Tuple[int, ...] = ()
    by_month_day: Tuple[int, ...] = ()
    by_year_day: Tuple[int, ...] = ()
    by_week_no: Tuple[int, ...] = ()
    by_weekday: Tuple[NWeekday, ...] = ()
    by_hour: Tuple[int, ...] = ()
    by_minute: Tuple[int, ...] = ()
    by_second: Tuple[int, ...] = ()

    @field_validator("frequency", mode="before")
    @classmethod
    def _validate_frequency(cls, v):
        return Frequency.from_name(v)

    @field_validator("week_start", mode="before")
    @classmethod
    def _validate_week_start(cls, v):
        if isinstance(v, str) and not isinstance(v, Weekday):
            return Weekday.from_token(v)
        return v

    @field_validator("until")
    @classmethod
    def _validate_until(cls, v):
        if v is None:
            return v
        if v.tzinfo is None:
            raise ValueError("until must be timezone-aware")
        # UNTIL is written with whole seconds.
        return v.replace(microsecond=0)

    @field_validator("by_weekday", mode="before")
    @classmethod
    def _coerce_by_weekday(cls, v):
        if v is None:
            return ()
        return tuple(coerce_nweekday(item) for item in v)

    @field_validator(
        "by_set_pos",
        "by_month",
        "by_month_day",
        "by_year_day",
        "by_week_no",
        "by_weekday",
        "by_hour",
        "by_minute",
        "by_second",
    )
    @classmethod
    def _dedupe_filters(cls, v):
        return _dedupe(v)

    @classmethod
    def build(cls, freq: Union[str, Frequency], **opts: Any) -> "Rule":
        """Keyword builder: ``Rule.build("weekly", interval=2, by_weekday=["MO", "FR"])``.

        Raises ValueError on an unknown frequency before anything else is looked at.
        """
        frequency = Frequency.from_name(freq)
        return cls(frequency=frequency, **opts)
