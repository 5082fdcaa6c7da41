"""recurset - recurrence sets combining rules, dates and exclusions."""

from .adapters import DateutilRule
from .core import InvalidDateError, InvalidRuleError, RecurrenceError, RuleSet
from .ports import RuleEngine

__version__ = "0.1.0"

__all__ = [
    "DateutilRule",
    "InvalidDateError",
    "InvalidRuleError",
    "RecurrenceError",
    "RuleEngine",
    "RuleSet",
]
