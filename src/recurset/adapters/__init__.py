"""Adapters - implementations of ports."""

from .dateutil_rule import DateutilRule

__all__ = [
    "DateutilRule",
]
