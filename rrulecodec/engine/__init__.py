"""Occurrence generation engine for rrulecodec."""

from rrulecodec.engine.expansion import ExpansionPlan, build_plan, expand_period
from rrulecodec.engine.generator import iter_rule, iter_rule_set
from rrulecodec.engine.queries import between, just_after, just_before, next_occurrences

__all__ = [
    "ExpansionPlan",
    "build_plan",
    "expand_period",
    "iter_rule",
    "iter_rule_set",
    "next_occurrences",
    "between",
    "just_before",
    "just_after",
]
