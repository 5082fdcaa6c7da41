"""Ports - interfaces/protocols for external collaborators."""

from .rule_engine import RuleEngine

__all__ = [
    "RuleEngine",
]
