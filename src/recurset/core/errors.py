"""Exceptions raised by recurrence sets and rule adapters."""


class RecurrenceError(Exception):
    """Base class for recurset errors."""

    pass


class InvalidRuleError(RecurrenceError, TypeError):
    """Raised when a value is not a usable rule."""

    pass


class InvalidDateError(RecurrenceError, TypeError):
    """Raised when a value is not a usable occurrence datetime."""

    pass
