"""Functional core - recurrence set logic with no I/O."""

from .errors import RecurrenceError, InvalidRuleError, InvalidDateError
from .iteration import Decision, IterResult, Query, QueryMode
from .exclusions import ExclusionTable
from .queries import Recurrence
from .ruleset import RuleSet, build_ruleset
from .timefmt import format_until, sort_ascending

__all__ = [
    # Errors
    "RecurrenceError",
    "InvalidRuleError",
    "InvalidDateError",
    # Iteration protocol
    "Decision",
    "IterResult",
    "Query",
    "QueryMode",
    "ExclusionTable",
    "Recurrence",
    # Sets
    "RuleSet",
    "build_ruleset",
    # Dates
    "format_until",
    "sort_ascending",
]
