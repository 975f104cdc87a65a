"""Exception hierarchy shared by timelines, sinks, and automatable properties."""
from __future__ import annotations


class AutomationError(Exception):
    """Base error for automation failures."""


class InvalidCurveError(AutomationError, ValueError):
    """Raised when a curve name does not match a known :class:`CurveKind`."""


class InvalidParameterError(AutomationError):
    """Raised when a parameter has neither a native sink nor a manual setter."""


class NotAutomatableError(AutomationError, AttributeError):
    """Raised when ``automate`` targets a property that was never declared."""


class DomainError(AutomationError, ValueError):
    """Raised when exponential math is asked to cross or touch zero.

    Timelines never let this escape: :meth:`ParameterTimeline.schedule`
    substitutes a step curve instead.
    """


__all__ = [
    "AutomationError",
    "DomainError",
    "InvalidCurveError",
    "InvalidParameterError",
    "NotAutomatableError",
]
