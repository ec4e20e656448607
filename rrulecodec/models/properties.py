"""Read-only diagnostic view of a parsed rule set."""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict

from rrulecodec.models.rule import Nth
from rrulecodec.models.rule_set import RuleSet


class RuleProperties(BaseModel):
    """Flat projection of the primary RRULE plus its anchor.

    For introspection only; nothing is recomputed from it.
    """

    model_config = ConfigDict(frozen=True)

    freq: str
    interval: int
    count: Optional[int] = None
    until: Optional[str] = None
    week_start: str
    by_set_pos: List[int] = []
    by_month: List[int] = []
    by_month_day: List[int] = []
    by_year_day: List[int] = []
    by_week_no: List[int] = []
    by_weekday: List[Union[str, List[Union[int, str]]]] = []
    by_hour: List[int] = []
    by_minute: List[int] = []
    by_second: List[int] = []
    dtstart: str
    tzid: Optional[str] = None

    @classmethod
    def from_rule_set(cls, rule_set: RuleSet) -> "RuleProperties":
        rule = rule_set.rule
        return cls(
            freq=rule.frequency.value,
            interval=rule.interval,
            count=rule.count,
            until=rule.until.isoformat(timespec="milliseconds") if rule.until else None,
            week_start=rule.week_start.value,
            by_set_pos=list(rule.by_set_pos),
            by_month=list(rule.by_month),
            by_month_day=list(rule.by_month_day),
            by_year_day=list(rule.by_year_day),
            by_week_no=list(rule.by_week_no),
            by_weekday=[
                [wd.n, wd.weekday.value] if isinstance(wd, Nth) else wd.weekday.value
                for wd in rule.by_weekday
            ],
            by_hour=list(rule.by_hour),
            by_minute=list(rule.by_minute),
            by_second=list(rule.by_second),
            dtstart=rule_set.dtstart.isoformat(timespec="milliseconds"),
            tzid=rule_set.tzid,
        )
