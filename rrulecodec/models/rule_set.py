"""Recurrence set model: an anchor plus inclusion/exclusion rules and dates."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rrulecodec.models.rule import Rule


class RuleSet(BaseModel):
    """DTSTART + RRULE/EXRULE/RDATE/EXDATE content lines.

    Notes:
    - ``dtstart`` is the anchor; its zone is the zone of every occurrence.
    - ``tzid`` is kept only so the set can be serialized back with its TZID parameter.
    """

    model_config = ConfigDict(frozen=True)

    dtstart: datetime
    tzid: Optional[str] = Field(None, description="IANA zone name from DTSTART;TZID=...")
    rrules: Tuple[Rule, ...] = ()
    exrules: Tuple[Rule, ...] = ()
    rdates: Tuple[datetime, ...] = ()
    exdates: Tuple[datetime, ...] = ()

    @field_validator("dtstart")
    @classmethod
    def _validate_dtstart(cls, v):
        if v.tzinfo is None:
            raise ValueError("dtstart must be timezone-aware")
        return v

    @field_validator("rdates", "exdates")
    @classmethod
    def _validate_dates(cls, v):
        for dt in v:
            if dt.tzinfo is None:
                raise ValueError("RDATE/EXDATE values must be timezone-aware")
        return v

    @property
    def rule(self) -> Rule:
        """The primary RRULE (first inclusion rule)."""
        return self.rrules[0]

    @property
    def has_count(self) -> bool:
        """True when any rule is bounded by COUNT (so streams must start at DTSTART)."""
        return any(r.count is not None for r in (*self.rrules, *self.exrules))
