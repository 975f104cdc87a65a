"""Sink adapters that receive committed timeline events.

A sink is whatever actually renders a parameter: a native automation
parameter, or a plain setter for values that have no native backing. The
timeline only pushes events into it and reads the pre-automation value
back out; it never relies on the sink remembering history.
"""
from __future__ import annotations

from dataclasses import replace
import logging
from typing import Callable, ClassVar, List, Optional, Protocol

import numpy as np

from . import curves
from .clock import BlockClock
from .config import AutomationConfig
from .curves import MIN_EXPONENTIAL_VALUE, CurveKind
from .errors import DomainError
from .events import AutomationEvent, evaluate, index_before, start_value

logger = logging.getLogger(__name__)


class ParamSink(Protocol):
    """Receiver for committed automation events.

    ``cancels`` tells the timeline whether :meth:`cancel_from` really drops
    scheduled events. Sinks that cancel get the whole modelled schedule
    replayed from the cancel time; the others only ever see new events.
    """

    cancels: ClassVar[bool]

    def apply_event(self, value: float, time: float, duration: float, curve: CurveKind) -> None:
        """Schedule the native equivalent of a committed event."""

    def cancel_from(self, time: float) -> None:
        """Drop natively scheduled events at or after *time*."""

    def current_value(self) -> float:
        """Return the value the sink currently renders."""


class ClockLike(Protocol):
    @property
    def current_time(self) -> float:
        ...


class ManualSink:
    """Stand-in sink forwarding events to a setter function.

    Used for properties with no native parameter behind them; the timeline
    is then the only record of scheduled values and the setter is called
    once per committed event.
    """

    cancels = False

    def __init__(
        self,
        setter: Callable[[float, float, float, CurveKind], None],
        getter: Callable[[], float] | None = None,
        *,
        initial_value: float = 0.0,
    ) -> None:
        self._setter = setter
        self._getter = getter
        self._initial_value = float(initial_value)

    def apply_event(self, value: float, time: float, duration: float, curve: CurveKind) -> None:
        self._setter(value, time, duration, curve)

    def cancel_from(self, time: float) -> None:
        return None

    def current_value(self) -> float:
        if self._getter is None:
            return self._initial_value
        return float(self._getter())


class OfflineParam:
    """Sample-accurate emulation of a native automation parameter.

    Mirrors the scheduling primitives found on browser-style audio
    parameters so timelines can be checked against an independent renderer
    without an audio device. Events at an identical time follow the native
    rule: same kind replaces, other kinds queue after the existing ones.
    """

    cancels = True

    def __init__(
        self,
        default_value: float = 0.0,
        *,
        clock: Optional[ClockLike] = None,
        config: Optional[AutomationConfig] = None,
        name: str = "",
    ) -> None:
        self.name = name
        self.default_value = float(default_value)
        self.config = config or AutomationConfig()
        self._clock = clock
        self._events: List[AutomationEvent] = []

    # ------------------------------------------------------------------
    # Native scheduling primitives
    # ------------------------------------------------------------------
    def set_value_at_time(self, value: float, time: float) -> None:
        self._insert(AutomationEvent(float(time), float(value), CurveKind.STEP, 0.0))

    def linear_ramp_to_value_at_time(self, value: float, end_time: float) -> None:
        self._insert(AutomationEvent(float(end_time), float(value), CurveKind.LINEAR, 0.0))

    def exponential_ramp_to_value_at_time(self, value: float, end_time: float) -> None:
        if abs(value) < MIN_EXPONENTIAL_VALUE:
            raise DomainError(
                f"Exponential ramp target {value!r} must be non-zero on parameter {self.name!r}"
            )
        self._insert(
            AutomationEvent(float(end_time), float(value), CurveKind.EXPONENTIAL, 0.0)
        )

    def set_target_at_time(self, target: float, start_time: float, time_constant: float) -> None:
        if time_constant < 0.0:
            raise ValueError("time_constant must be non-negative")
        self._insert(
            AutomationEvent(float(start_time), float(target), CurveKind.TARGET, float(time_constant))
        )

    def cancel_scheduled_values(self, start_time: float) -> None:
        del self._events[index_before(self._events, start_time) + 1 :]

    def _insert(self, event: AutomationEvent) -> None:
        if event.time < 0.0:
            raise ValueError("Event time must be non-negative")
        index = index_before(self._events, event.time) + 1
        while index < len(self._events) and self._events[index].time == event.time:
            if self._events[index].curve is event.curve:
                self._events[index] = event
                return
            index += 1
        self._events.insert(index, event)

    # ------------------------------------------------------------------
    # ParamSink protocol
    # ------------------------------------------------------------------
    def apply_event(self, value: float, time: float, duration: float, curve: CurveKind) -> None:
        curve = CurveKind.parse(curve)
        if curve is CurveKind.STEP:
            self.set_value_at_time(value, time)
        elif curve is CurveKind.LINEAR:
            self.linear_ramp_to_value_at_time(value, time)
        elif curve is CurveKind.EXPONENTIAL:
            self.exponential_ramp_to_value_at_time(value, time)
        else:
            self.set_target_at_time(value, time, duration)

    def cancel_from(self, time: float) -> None:
        self.cancel_scheduled_values(time)

    def current_value(self) -> float:
        return self.value

    # ------------------------------------------------------------------
    # Reading back
    # ------------------------------------------------------------------
    @property
    def events(self) -> List[AutomationEvent]:
        return list(self._events)

    @property
    def value(self) -> float:
        """Value at the clock's current time (time zero without a clock)."""

        now = self._clock.current_time if self._clock is not None else 0.0
        return self.value_at(now)

    def _timeline(self) -> List[AutomationEvent]:
        return [AutomationEvent(0.0, self.default_value), *self._events]

    def value_at(self, time: float) -> float:
        return evaluate(self._timeline(), time)

    def _render_times(self, times: np.ndarray) -> np.ndarray:
        output = np.empty(times.shape, dtype=np.float64)
        events = self._timeline()
        event_times = np.fromiter((event.time for event in events), dtype=np.float64)
        anchors = np.searchsorted(event_times, times, side="right") - 1

        for index in np.unique(anchors):
            mask = anchors == index
            segment = times[mask]
            if index < 0:
                output[mask] = events[0].value
                continue
            anchor = events[index]
            following = events[index + 1] if index + 1 < len(events) else None
            if anchor.curve is CurveKind.TARGET:
                output[mask] = curves.target_block(
                    start_value(events, int(index)),
                    anchor.value,
                    segment,
                    anchor.time,
                    anchor.duration,
                )
            elif following is not None and following.curve.is_ramp:
                output[mask] = curves.ramp_block(
                    following.curve, anchor.value, following.value, segment, anchor.time, following.time
                )
            else:
                output[mask] = anchor.value
        return output

    def process(self, clock: BlockClock, frames: int | None = None) -> np.ndarray:
        """Render the block starting at *clock*'s position, then advance the clock."""

        frames = clock.config.block_size if frames is None else int(frames)
        rate = float(clock.config.sample_rate)
        times = (clock.processed_frames + np.arange(frames, dtype=np.float64)) / rate
        block = self._render_times(times)
        clock.tick(frames)
        return block

    def render(self, duration: float, sample_rate: int | None = None) -> np.ndarray:
        """Render the schedule into one float64 sample per frame from time zero."""

        rate = int(sample_rate or self.config.sample_rate)
        if rate <= 0:
            raise ValueError("sample_rate must be positive")
        clock = BlockClock(replace(self.config, sample_rate=rate))
        total_frames = int(round(max(duration, 0.0) * rate))
        output = np.empty(total_frames, dtype=np.float64)

        block_size = clock.config.block_size
        for frame_start in range(0, total_frames, block_size):
            block_frames = min(block_size, total_frames - frame_start)
            output[frame_start : frame_start + block_frames] = self.process(clock, block_frames)

        logger.debug(
            "Rendered %d frames for parameter %r across %d events",
            total_frames,
            self.name,
            len(self._events),
        )
        return output

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._events)


__all__ = ["ClockLike", "ManualSink", "OfflineParam", "ParamSink"]
