"""Automation events and the point evaluator shared by every event list."""
from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Sequence

from . import curves
from .curves import CurveKind


@dataclass(frozen=True)
class AutomationEvent:
    """Value held as of ``time``, approached via ``curve`` from the previous event.

    ``duration`` is the time constant of a :attr:`CurveKind.TARGET` decay and
    the nominal length of a ramp; step events always carry ``0.0``.
    """

    time: float
    value: float
    curve: CurveKind = CurveKind.STEP
    duration: float = 0.0

    def as_tuple(self) -> tuple[float, float, CurveKind, float]:
        return (self.time, self.value, self.curve, self.duration)


def _event_time(event: AutomationEvent) -> float:
    return event.time


def index_before(events: Sequence[AutomationEvent], time: float, end: int | None = None) -> int:
    """Return the index of the last event strictly before *time* (``-1`` if none)."""

    hi = len(events) if end is None else end
    return bisect_left(events, time, hi=hi, key=_event_time) - 1


def index_at_or_before(
    events: Sequence[AutomationEvent], time: float, end: int | None = None
) -> int:
    """Return the index of the last event at or before *time* (``-1`` if none).

    Events sharing a timestamp resolve to the last one at that instant.
    """

    hi = len(events) if end is None else end
    return bisect_right(events, time, hi=hi, key=_event_time) - 1


def start_value(events: Sequence[AutomationEvent], index: int) -> float:
    """Return the value a curve anchored at ``events[index]`` departs from.

    Only target decays depart from something other than their own value:
    they start wherever the events preceding them left the parameter.
    """

    anchor = events[index]
    if anchor.curve is not CurveKind.TARGET or index == 0:
        return anchor.value
    return evaluate(events, anchor.time, end=index)


def departure_value(events: Sequence[AutomationEvent], index: int, time: float) -> float:
    """Return the value held at *time* by the segment anchored at ``events[index]``.

    A decay is still moving when the next event takes over, so its value
    at *time* is what a ramp ending there has to leave from.
    """

    anchor = events[index]
    if anchor.curve is not CurveKind.TARGET:
        return anchor.value
    return curves.target(
        start_value(events, index), anchor.value, time - anchor.time, anchor.duration
    )


def evaluate(events: Sequence[AutomationEvent], time: float, end: int | None = None) -> float:
    """Interpolate the value described by ``events[:end]`` at *time*.

    A target anchor decays until the next event, whatever that event's
    curve. Otherwise a following linear or exponential event ramps from
    the anchor's value, and anything else holds it.
    """

    limit = len(events) if end is None else end
    if limit <= 0:
        raise ValueError("Cannot evaluate an empty event list")

    n = index_at_or_before(events, time, end=limit)
    if n < 0:
        return events[0].value

    anchor = events[n]
    if anchor.curve is CurveKind.TARGET:
        return curves.target(
            start_value(events, n), anchor.value, time - anchor.time, anchor.duration
        )

    following = events[n + 1] if n + 1 < limit else None
    if following is not None and following.curve.is_ramp:
        fraction = (time - anchor.time) / (following.time - anchor.time)
        return curves.ramp(following.curve, anchor.value, following.value, fraction)
    return anchor.value


__all__ = [
    "AutomationEvent",
    "departure_value",
    "evaluate",
    "index_at_or_before",
    "index_before",
    "start_value",
]
