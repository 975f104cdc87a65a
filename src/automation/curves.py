"""Curve kinds and the interpolation math shared by timelines and sinks.

Scalar helpers back :meth:`ParameterTimeline.value_at`; the ``*_block``
variants evaluate the same formulas over numpy time vectors so offline
renders stay consistent with point queries.
"""
from __future__ import annotations

from enum import Enum
import math

import numpy as np

from .errors import DomainError, InvalidCurveError

# Smallest positive single-precision value; exponential curves cannot reach it.
MIN_EXPONENTIAL_VALUE = 1.4e-45


class CurveKind(str, Enum):
    """How a value approaches an event, interpreted against the previous event."""

    STEP = "step"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    TARGET = "target"

    @classmethod
    def parse(cls, curve: "CurveKind | str") -> "CurveKind":
        """Return the curve kind for *curve*, accepting enum members or names."""

        if isinstance(curve, CurveKind):
            return curve
        if isinstance(curve, str):
            name = curve.strip().lower()
            if name == "decay":
                return cls.TARGET
            try:
                return cls(name)
            except ValueError:
                pass
        raise InvalidCurveError(f"Unknown curve {curve!r}")

    @property
    def is_ramp(self) -> bool:
        return self in (CurveKind.LINEAR, CurveKind.EXPONENTIAL)


def exponential_defined(start: float, end: float) -> bool:
    """Return ``True`` when a geometric curve can join *start* and *end*."""

    if abs(start) < MIN_EXPONENTIAL_VALUE or abs(end) < MIN_EXPONENTIAL_VALUE:
        return False
    return (start > 0.0) == (end > 0.0)


def linear(start: float, end: float, fraction: float) -> float:
    return start + (end - start) * fraction


def exponential(start: float, end: float, fraction: float) -> float:
    """Geometric interpolation between two same-signed, non-zero values."""

    if not exponential_defined(start, end):
        raise DomainError(
            f"Exponential curve undefined between {start!r} and {end!r}"
        )
    return start * math.pow(end / start, fraction)


def target(start: float, end: float, elapsed: float, time_constant: float) -> float:
    """Value of an asymptotic approach from *start* towards *end*."""

    if time_constant <= 0.0:
        return end
    return end + (start - end) * math.exp(-elapsed / time_constant)


def ramp(curve: CurveKind, start: float, end: float, fraction: float) -> float:
    """Evaluate a linear or exponential ramp, holding *start* where undefined."""

    if curve is CurveKind.LINEAR:
        return linear(start, end, fraction)
    if curve is CurveKind.EXPONENTIAL:
        if not exponential_defined(start, end):
            return start
        return exponential(start, end, fraction)
    raise InvalidCurveError(f"{curve.value!r} is not a ramp curve")


# ----------------------------------------------------------------------
# Vectorised helpers
# ----------------------------------------------------------------------
def ramp_block(
    curve: CurveKind,
    start: float,
    end: float,
    times: np.ndarray,
    t0: float,
    t1: float,
) -> np.ndarray:
    """Evaluate :func:`ramp` for every entry in *times*."""

    fraction = (times - t0) / (t1 - t0)
    if curve is CurveKind.LINEAR:
        return start + (end - start) * fraction
    if curve is CurveKind.EXPONENTIAL:
        if not exponential_defined(start, end):
            return np.full(times.shape, start, dtype=np.float64)
        return start * np.power(end / start, fraction)
    raise InvalidCurveError(f"{curve.value!r} is not a ramp curve")


def target_block(
    start: float,
    end: float,
    times: np.ndarray,
    t0: float,
    time_constant: float,
) -> np.ndarray:
    """Evaluate :func:`target` for every entry in *times*."""

    if time_constant <= 0.0:
        return np.full(times.shape, end, dtype=np.float64)
    return end + (start - end) * np.exp(-(times - t0) / time_constant)


__all__ = [
    "CurveKind",
    "MIN_EXPONENTIAL_VALUE",
    "exponential",
    "exponential_defined",
    "linear",
    "ramp",
    "ramp_block",
    "target",
    "target_block",
]
