"""Pydantic documents describing persisted automation timelines."""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .curves import CurveKind
from .events import AutomationEvent
from .sinks import OfflineParam, ParamSink
from .timeline import ParameterTimeline


class AutomationEventModel(BaseModel):
    """Serialisable form of a single :class:`AutomationEvent`."""

    time: float = Field(..., ge=0.0, description="Seconds at which the value is reached")
    value: float = Field(..., description="Value held as of `time`")
    curve: CurveKind = Field(CurveKind.STEP, description="Approach from the previous event")
    duration: float = Field(0.0, ge=0.0, description="Decay time constant or ramp length")

    @field_validator("curve", mode="before")
    @classmethod
    def parse_curve(cls, value: Any) -> CurveKind:
        return CurveKind.parse(value)

    @classmethod
    def from_event(cls, event: AutomationEvent) -> "AutomationEventModel":
        return cls(time=event.time, value=event.value, curve=event.curve, duration=event.duration)

    def to_event(self) -> AutomationEvent:
        duration = 0.0 if self.curve is CurveKind.STEP else self.duration
        return AutomationEvent(self.time, self.value, self.curve, duration)


class TimelineDocument(BaseModel):
    """Named, ordered event list for one parameter."""

    name: str = "parameter"
    events: List[AutomationEventModel] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_order(self) -> TimelineDocument:
        times = [event.time for event in self.events]
        if any(later < earlier for earlier, later in zip(times, times[1:])):
            raise ValueError("Timeline events must be ordered by time")
        return self

    @classmethod
    def from_timeline(
        cls, timeline: ParameterTimeline, name: Optional[str] = None
    ) -> "TimelineDocument":
        return cls(
            name=name or timeline.name or "parameter",
            events=[AutomationEventModel.from_event(event) for event in timeline.events],
        )

    def to_timeline(self, param: Optional[ParamSink] = None) -> ParameterTimeline:
        """Rebuild the timeline, pushing it to *param* (an offline param by default)."""

        events = [model.to_event() for model in self.events]
        if param is None:
            param = OfflineParam(events[0].value, name=self.name)
        return ParameterTimeline.from_events(events, param, name=self.name)
