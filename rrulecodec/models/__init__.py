"""Data models for rrulecodec."""

from rrulecodec.models.rule import Every, Frequency, Nth, NWeekday, Rule, Weekday
from rrulecodec.models.rule_set import RuleSet
from rrulecodec.models.properties import RuleProperties
from rrulecodec.models.result import Err, ErrorPayload, Ok, Result

__all__ = [
    "Every",
    "Frequency",
    "Nth",
    "NWeekday",
    "Rule",
    "Weekday",
    "RuleSet",
    "RuleProperties",
    "Err",
    "ErrorPayload",
    "Ok",
    "Result",
]
