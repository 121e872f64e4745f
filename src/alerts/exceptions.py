"""Alert evaluation exceptions."""

from __future__ import annotations


class AlertError(Exception):
    """Base exception for alert evaluation errors."""


class RuleEvaluationError(AlertError):
    """A single rule could not be evaluated against a snapshot."""
