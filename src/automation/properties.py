"""Automatable properties layered on top of parameter timelines.

An :class:`AudioObject` declares properties backed either by a native
parameter sink or by a manual setter. Each declared property registers an
automator on the object; :func:`automate` dispatches to it by name. Reads
return a mirrored value that a frame callback keeps in step with the
timeline while automation is playing.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .clock import FrameLoop
from .config import AutomationConfig
from .curves import CurveKind
from .errors import InvalidParameterError, NotAutomatableError
from .sinks import ManualSink, ParamSink
from .timeline import ParameterTimeline, check_duration, check_time

logger = logging.getLogger(__name__)

Observer = Callable[["ChangeRecord"], None]


@dataclass(frozen=True)
class ChangeRecord:
    """Change notification emitted whenever a mirrored value moves."""

    name: str
    old_value: float
    new_value: float
    type: str = "update"


@dataclass
class PropertySpec:
    """Declaration of one automatable property.

    Supply ``param`` for a native sink, or ``set`` (and usually ``get``) for a
    property with no native backing. ``duration`` and ``curve`` override the
    automation defaults for this property.
    """

    param: Optional[ParamSink] = None
    set: Optional[Callable[..., None]] = None
    get: Optional[Callable[[], float]] = None
    duration: Optional[float] = None
    curve: Optional[str] = None

    @classmethod
    def coerce(cls, data: Any) -> "PropertySpec":
        """Accept a spec, a mapping of spec fields, or a bare param sink."""

        if isinstance(data, PropertySpec):
            return data
        if isinstance(data, Mapping):
            return cls(**data)
        if callable(getattr(data, "apply_event", None)):
            return cls(param=data)
        raise InvalidParameterError(f"Cannot declare an audio property from {data!r}")

    def build_sink(self, name: str) -> ParamSink:
        if self.param is not None:
            return self.param
        if self.set is None:
            raise InvalidParameterError(
                f"Audio property {name!r} requires a param or a set function"
            )
        return ManualSink(self.set, self.get)


def ramp_to_value(
    timeline: ParameterTimeline,
    value: float,
    time: float,
    duration: float | None = None,
    curve: CurveKind | str | None = None,
) -> None:
    """Move *timeline* towards *value* starting at *time*.

    The curve is a step when *duration* is zero or missing and linear when
    left unspecified. Anything scheduled from *time* on is discarded first;
    ramps then hold the current value at *time* and arrive at
    ``time + duration``, while target decays start at *time* and use
    *duration* as their time constant. Arguments are validated before the
    timeline is touched, and the sink sees a single commit.
    """

    time = check_time(time)
    value = float(value)
    if not duration:
        kind, duration = CurveKind.STEP, 0.0
    else:
        kind = CurveKind.parse(curve or CurveKind.LINEAR)
        duration = check_duration(duration)

    timeline.truncate_at(time, commit=False)
    if kind is CurveKind.STEP:
        event = timeline.schedule(time, value, CurveKind.STEP, commit=False)
    elif kind is CurveKind.TARGET:
        event = timeline.schedule(time, value, CurveKind.TARGET, duration, commit=False)
    else:
        timeline.schedule(time, timeline.value_at(time), CurveKind.STEP, commit=False)
        event = timeline.schedule(time + duration, value, kind, duration, commit=False)
    timeline.commit_from(time, event)


class AudioProperty:
    """Mirror, timeline, and automator for one declared property."""

    def __init__(
        self,
        owner: "AudioObject",
        name: str,
        clock,
        spec: PropertySpec,
        *,
        config: Optional[AutomationConfig] = None,
        frames: Optional[FrameLoop] = None,
    ) -> None:
        self.owner = owner
        self.name = name
        self.spec = spec
        self.config = config or AutomationConfig()
        self._clock = clock
        self._frames = frames
        self._sink = spec.build_sink(name)
        self._timeline: ParameterTimeline | None = None
        self._value = float(self._sink.current_value())

    @property
    def timeline(self) -> ParameterTimeline:
        """The property's timeline, created on first use."""

        if self._timeline is None:
            self._timeline = ParameterTimeline(self._sink, name=self.name)
        return self._timeline

    @property
    def value(self) -> float:
        return self._value

    def assign(self, value: float) -> None:
        """Handle ``owner.<name> = value``: publish immediately, then automate."""

        self._publish(float(value))
        self.automate(value)

    def automate(
        self,
        value: float,
        time: float | None = None,
        curve: CurveKind | str | None = None,
        duration: float | None = None,
    ) -> None:
        if time is None:
            time = self._clock.current_time
        if duration is None:
            duration = self.spec.duration if self.spec.duration is not None else self.config.default_duration
        curve = curve or self.spec.curve or self.config.default_curve
        logger.debug(
            "Automating %r to %r at %s over %s (%s)", self.name, value, time, duration, curve
        )
        ramp_to_value(self.timeline, value, time, duration, curve)
        if self._frames is not None:
            self._frames.request(self.frame)

    def frame(self, now: float | None = None) -> bool:
        """Refresh the mirrored value; return ``True`` while automation is still moving."""

        if now is None:
            now = self._clock.current_time
        timeline = self.timeline
        current = timeline.value_at(now)
        if current != self._value:
            self._publish(current)
        return now < timeline.last_event.time or current != timeline.final_value

    def _publish(self, value: float) -> None:
        # Mirror writes never reach the scheduling path.
        old_value, self._value = self._value, value
        self.owner._notify(ChangeRecord(self.name, old_value, value))


class AudioObject:
    """Object whose declared properties are automatable over time.

    Declared properties read as plain attributes; assigning one publishes
    the value to observers and schedules it on the property's timeline.
    """

    def __init__(
        self,
        clock,
        params: Mapping[str, Any] | None = None,
        *,
        config: Optional[AutomationConfig] = None,
        frames: Optional[FrameLoop] = None,
    ) -> None:
        object.__setattr__(self, "_audio_properties", {})
        object.__setattr__(self, "_observers", [])
        self.clock = clock
        self.config = config or AutomationConfig()
        self.frames = frames
        if params:
            define_audio_properties(self, clock, params)

    def __getattr__(self, name: str) -> Any:
        properties = self.__dict__.get("_audio_properties", {})
        if name in properties:
            return properties[name].value
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        properties = self.__dict__.get("_audio_properties", {})
        if name in properties:
            properties[name].assign(value)
            return
        object.__setattr__(self, name, value)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    @property
    def automators(self) -> Dict[str, Callable[..., None]]:
        return {name: prop.automate for name, prop in self._audio_properties.items()}

    def audio_property(self, name: str) -> AudioProperty:
        try:
            return self._audio_properties[name]
        except KeyError as exc:
            raise NotAutomatableError(f"Property {name!r} is not automatable") from exc

    def timeline(self, name: str) -> ParameterTimeline:
        return self.audio_property(name).timeline

    def automate(
        self,
        name: str,
        value: float,
        time: float | None = None,
        curve: CurveKind | str | None = None,
        duration: float | None = None,
    ) -> None:
        automate(self, name, value, time, curve, duration)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    def observe(self, callback: Observer) -> Callable[[], None]:
        """Subscribe *callback* to change records; returns an unsubscribe function."""

        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _notify(self, record: ChangeRecord) -> None:
        for observer in list(self._observers):
            observer(record)


def define_audio_property(
    obj: AudioObject,
    name: str,
    clock,
    data: Any,
    *,
    config: Optional[AutomationConfig] = None,
    frames: Optional[FrameLoop] = None,
) -> AudioObject:
    """Declare *name* on *obj* as an automatable property and register its automator."""

    if not isinstance(obj, AudioObject):
        raise TypeError(f"Audio properties can only be declared on an AudioObject, not {obj!r}")
    prop = AudioProperty(
        obj,
        name,
        clock,
        PropertySpec.coerce(data),
        config=config or obj.config,
        frames=frames or obj.frames,
    )
    obj._audio_properties[name] = prop
    logger.debug("Declared automatable property %r", name)
    return obj


def define_audio_properties(
    obj: AudioObject,
    clock,
    data: Mapping[str, Any],
    *,
    config: Optional[AutomationConfig] = None,
    frames: Optional[FrameLoop] = None,
) -> AudioObject:
    for name, spec in data.items():
        define_audio_property(obj, name, clock, spec, config=config, frames=frames)
    return obj


def automate(
    obj: Any,
    name: str,
    value: float,
    time: float | None = None,
    curve: CurveKind | str | None = None,
    duration: float | None = None,
) -> None:
    """Dispatch to the automator registered for ``obj.<name>``."""

    registry: Dict[str, AudioProperty] | None = getattr(obj, "__dict__", {}).get("_audio_properties")
    if not registry or name not in registry:
        raise NotAutomatableError(f"Property {name!r} is not automatable")
    registry[name].automate(value, time, curve, duration)


__all__ = [
    "AudioObject",
    "AudioProperty",
    "ChangeRecord",
    "PropertySpec",
    "automate",
    "define_audio_properties",
    "define_audio_property",
    "ramp_to_value",
]
