"""Per-parameter automation timeline.

The timeline owns the ordered event list for one parameter. It decides
where scheduled events land, evaluates the interpolated value at any time
without consulting the sink, and cuts the schedule at an arbitrary time
while keeping the value continuous. Every committed change is forwarded to
the sink so native playback never diverges from the model.
"""
from __future__ import annotations

import logging
import math
from typing import Callable, Iterable, Iterator, List, Optional

from .curves import MIN_EXPONENTIAL_VALUE, CurveKind, exponential_defined
from .errors import InvalidParameterError
from .events import (
    AutomationEvent,
    departure_value,
    evaluate,
    index_at_or_before,
    index_before,
)
from .sinks import ManualSink, ParamSink

logger = logging.getLogger(__name__)


def check_time(time: float) -> float:
    time = float(time)
    if not math.isfinite(time) or time < 0.0:
        raise ValueError(f"Automation time must be a finite, non-negative number, got {time!r}")
    return time


def check_duration(duration: float) -> float:
    duration = float(duration)
    if not math.isfinite(duration) or duration < 0.0:
        raise ValueError(f"Duration must be a finite, non-negative number, got {duration!r}")
    return duration


class ParameterTimeline:
    """Ordered automation events for a single parameter.

    Either a native ``param`` sink or a manual ``setter`` (with an optional
    ``getter`` for the starting value) is required. The list is seeded with
    a step event at time zero holding the sink's current value, so it is
    never empty.
    """

    def __init__(
        self,
        param: Optional[ParamSink] = None,
        *,
        setter: Callable[[float, float, float, CurveKind], None] | None = None,
        getter: Callable[[], float] | None = None,
        name: str = "",
    ) -> None:
        if param is None:
            if setter is None:
                raise InvalidParameterError(
                    f"Parameter {name!r} needs a native param or a setter function"
                )
            param = ManualSink(setter, getter)
        self.name = name
        self._sink = param
        self._events: List[AutomationEvent] = [
            AutomationEvent(0.0, float(param.current_value()), CurveKind.STEP, 0.0)
        ]

    @classmethod
    def from_events(
        cls,
        events: Iterable[AutomationEvent],
        param: ParamSink,
        *,
        name: str = "",
    ) -> "ParameterTimeline":
        """Build a timeline from an existing ordered event list and push it to *param*."""

        ordered = list(events)
        if not ordered:
            raise ValueError("A timeline needs at least one event")
        for previous, current in zip(ordered, ordered[1:]):
            if current.time < previous.time:
                raise ValueError(
                    f"Events out of order: {current.time!r} follows {previous.time!r}"
                )
        timeline = cls(param, name=name)
        timeline._events = ordered
        timeline.commit_from(ordered[0].time, *ordered)
        return timeline

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    @property
    def sink(self) -> ParamSink:
        return self._sink

    @property
    def events(self) -> List[AutomationEvent]:
        """Return a snapshot of the event list."""

        return list(self._events)

    @property
    def last_event(self) -> AutomationEvent:
        return self._events[-1]

    @property
    def final_value(self) -> float:
        """Value the schedule settles on once every event has played."""

        return self._events[-1].value

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[AutomationEvent]:
        return iter(list(self._events))

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def schedule(
        self,
        time: float,
        value: float,
        curve: CurveKind | str = CurveKind.STEP,
        duration: float = 0.0,
        *,
        commit: bool = True,
    ) -> AutomationEvent:
        """Insert an event reaching *value* by *time* via *curve*.

        Exponential curves that would have to touch or cross zero are
        committed as steps instead. Returns the event actually inserted.
        With ``commit=False`` the sink is left alone; pair that with
        :meth:`commit_from` once a batch of edits is complete.
        """

        curve = CurveKind.parse(curve)
        time = check_time(time)
        duration = 0.0 if curve is CurveKind.STEP else check_duration(duration)
        value = float(value)

        n = index_before(self._events, time)
        if curve is CurveKind.EXPONENTIAL and n >= 0:
            departure = departure_value(self._events, n, time)
            if abs(value) < MIN_EXPONENTIAL_VALUE:
                logger.debug(
                    "Exponential target %r on %r below threshold; committing a step", value, self.name
                )
                curve, duration = CurveKind.STEP, 0.0
                time = self._events[n].time
                n = index_before(self._events, time)
            elif not exponential_defined(departure, value):
                logger.debug(
                    "Exponential ramp %r -> %r on %r undefined; committing a step",
                    departure,
                    value,
                    self.name,
                )
                curve, duration = CurveKind.STEP, 0.0
        elif curve is CurveKind.EXPONENTIAL and abs(value) < MIN_EXPONENTIAL_VALUE:
            curve, duration = CurveKind.STEP, 0.0

        event = AutomationEvent(time, value, curve, duration)
        index = self._insert(n, event)
        logger.debug("Scheduled %s on %r at index %d", event, self.name, index)
        if commit:
            self.commit_from(time, event)
        return event

    def _insert(self, n: int, event: AutomationEvent) -> int:
        events = self._events
        index = n + 1
        if index == len(events):
            events.append(event)
            return index
        while index < len(events) and events[index].time == event.time:
            if events[index].curve is event.curve:
                events[index] = event
                return index
            index += 1
        events.insert(index, event)
        return index

    def commit_from(self, time: float, *committed: AutomationEvent) -> None:
        """Bring the sink in line with the model from *time* onwards.

        Sinks that can cancel have their schedule from *time* replaced by
        the modelled one. Sinks that cannot only receive *committed*, the
        events that are new since the last commit.
        """

        self._sink.cancel_from(time)
        if getattr(self._sink, "cancels", True):
            replay = self._events[index_before(self._events, time) + 1 :]
        else:
            replay = list(committed)
        for event in replay:
            self._sink.apply_event(event.value, event.time, event.duration, event.curve)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def value_at(self, time: float) -> float:
        """Return the interpolated value at *time*. Pure."""

        return evaluate(self._events, float(time))

    # ------------------------------------------------------------------
    # Truncation
    # ------------------------------------------------------------------
    def truncate_at(self, time: float, *, commit: bool = True) -> Optional[AutomationEvent]:
        """Discard scheduled intent after *time*, holding the value reached there.

        Ramps interrupted mid-flight end at *time* on their own curve; decays
        still running at *time* freeze as a step. Returns the event added at
        *time*, if any.
        """

        time = check_time(time)
        events = self._events
        value = self.value_at(time)
        n = index_before(events, time)
        synthetic: Optional[AutomationEvent] = None

        if n == len(events) - 1:
            if events[n].curve is CurveKind.TARGET:
                synthetic = AutomationEvent(time, value, CurveKind.STEP, 0.0)
        elif events[n + 1].time == time:
            end = index_at_or_before(events, time) + 1
            del events[end:]
            if events[-1].curve is CurveKind.TARGET:
                synthetic = AutomationEvent(time, value, CurveKind.STEP, 0.0)
        else:
            interrupted = events[n + 1]
            del events[n + 1 :]
            decaying = n >= 0 and events[n].curve is CurveKind.TARGET
            resumable = not decaying and (
                interrupted.curve is CurveKind.LINEAR
                or (interrupted.curve is CurveKind.EXPONENTIAL and abs(value) >= MIN_EXPONENTIAL_VALUE)
            )
            if resumable and n >= 0:
                synthetic = AutomationEvent(
                    time, value, interrupted.curve, time - events[n].time
                )
            else:
                synthetic = AutomationEvent(time, value, CurveKind.STEP, 0.0)

        if synthetic is not None:
            events.append(synthetic)
        logger.debug("Truncated %r at %s; %d events remain", self.name, time, len(events))
        if commit:
            if synthetic is None:
                self.commit_from(time)
            else:
                self.commit_from(time, synthetic)
        return synthetic


__all__ = ["ParameterTimeline", "check_duration", "check_time"]
