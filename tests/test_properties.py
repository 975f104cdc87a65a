import math

import pytest

from automation.clock import FrameLoop, ManualClock
from automation.config import AutomationConfig
from automation.curves import CurveKind
from automation.errors import InvalidCurveError, InvalidParameterError, NotAutomatableError
from automation.events import AutomationEvent
from automation.properties import (
    AudioObject,
    ChangeRecord,
    PropertySpec,
    automate,
    define_audio_property,
    ramp_to_value,
)
from automation.sinks import OfflineParam
from automation.timeline import ParameterTimeline


def _gain_object(clock: ManualClock, frames: FrameLoop, **spec) -> tuple[AudioObject, OfflineParam]:
    param = OfflineParam(1.0, clock=clock, name="gain")
    obj = AudioObject(clock, {"gain": {"param": param, **spec}}, frames=frames)
    return obj, param


def test_property_reads_sink_value(clock: ManualClock, frames: FrameLoop):
    obj, _ = _gain_object(clock, frames)
    assert obj.gain == 1.0
    assert set(obj.automators) == {"gain"}


def test_assignment_publishes_then_plays_ramp(clock: ManualClock, frames: FrameLoop):
    obj, param = _gain_object(clock, frames, duration=1.0)
    records = []
    obj.observe(records.append)

    obj.gain = 0.5

    assert records == [ChangeRecord("gain", 1.0, 0.5)]
    assert obj.gain == 0.5
    assert obj.timeline("gain").events == [
        AutomationEvent(0.0, 1.0, CurveKind.STEP, 0.0),
        AutomationEvent(1.0, 0.5, CurveKind.LINEAR, 1.0),
    ]
    assert len(frames) == 1

    ran = frames.run_until_idle(lambda: clock.advance(0.5))

    assert ran == 2
    assert [record.new_value for record in records] == [0.5, pytest.approx(0.75), 0.5]
    assert obj.gain == 0.5
    assert param.value == 0.5


def test_mirror_updates_do_not_schedule(clock: ManualClock, frames: FrameLoop):
    obj, _ = _gain_object(clock, frames, duration=1.0)
    obj.gain = 0.0
    snapshot = obj.timeline("gain").events
    clock.advance(0.25)
    prop = obj.audio_property("gain")
    assert prop.frame() is True
    assert obj.gain == pytest.approx(0.75)
    assert obj.timeline("gain").events == snapshot


def test_assignment_uses_config_default_duration(clock: ManualClock, frames: FrameLoop):
    param = OfflineParam(1.0, clock=clock)
    obj = AudioObject(
        clock, {"gain": param}, config=AutomationConfig(default_duration=0.25), frames=frames
    )
    obj.gain = 0.0
    assert obj.timeline("gain").last_event == AutomationEvent(0.25, 0.0, CurveKind.LINEAR, 0.25)


def test_manual_setter_property_with_zero_duration_steps(clock: ManualClock, frames: FrameLoop):
    calls = []
    obj = AudioObject(
        clock,
        {"pan": {"set": lambda *args: calls.append(args), "get": lambda: 0.2, "duration": 0.0}},
        frames=frames,
    )
    records = []
    obj.observe(records.append)

    obj.pan = 0.3

    assert calls == [(0.3, 0.0, 0.0, CurveKind.STEP)]
    assert obj.timeline("pan").value_at(0.0) == 0.3
    assert frames.run_frame() == 0
    assert records == [ChangeRecord("pan", 0.2, 0.3)]


def test_automate_exponential_holds_then_ramps(clock: ManualClock):
    param = OfflineParam(200.0, clock=clock, name="cutoff")
    obj = AudioObject(clock, {"cutoff": param})
    obj.automate("cutoff", 800.0, time=0.0, curve="exponential", duration=1.0)
    timeline = obj.timeline("cutoff")
    assert timeline.value_at(0.5) == pytest.approx(400.0)
    assert timeline.value_at(1.0) == 800.0
    assert param.value_at(0.5) == pytest.approx(400.0)


def test_automate_through_registry(clock: ManualClock):
    obj = AudioObject(clock, {"gain": OfflineParam(0.0)})
    automate(obj, "gain", 1.0, 2.0)
    hold, ramp = obj.timeline("gain").events[-2:]
    assert hold == AutomationEvent(2.0, 0.0, CurveKind.STEP, 0.0)
    assert ramp.curve is CurveKind.LINEAR
    assert ramp.time == pytest.approx(2.008)
    assert ramp.duration == pytest.approx(0.008)
    obj.automators["gain"](0.5, 3.0, "step")
    assert obj.timeline("gain").value_at(3.0) == 0.5


def test_unknown_property_is_not_automatable(clock: ManualClock):
    obj = AudioObject(clock, {"gain": OfflineParam(0.0)})
    with pytest.raises(NotAutomatableError):
        automate(obj, "volume", 1.0)
    with pytest.raises(NotAutomatableError):
        obj.timeline("volume")
    with pytest.raises(AttributeError):
        automate(object(), "gain", 1.0)


def test_invalid_curve_is_rejected_before_truncating(clock: ManualClock):
    obj = AudioObject(clock, {"gain": OfflineParam(0.0)})
    obj.automate("gain", 1.0, time=0.0, duration=1.0)
    snapshot = obj.timeline("gain").events
    with pytest.raises(InvalidCurveError):
        obj.automate("gain", 0.5, time=0.5, curve="wobble", duration=1.0)
    assert obj.timeline("gain").events == snapshot


def test_property_declaration_requires_param_or_setter(clock: ManualClock):
    with pytest.raises(InvalidParameterError):
        AudioObject(clock, {"gain": {"get": lambda: 1.0}})
    with pytest.raises(InvalidParameterError):
        AudioObject(clock, {"gain": 42})
    with pytest.raises(TypeError):
        define_audio_property(object(), "gain", clock, OfflineParam(0.0))


def test_property_spec_coercion():
    param = OfflineParam(0.0)
    spec = PropertySpec(param=param, duration=0.5)
    assert PropertySpec.coerce(spec) is spec
    assert PropertySpec.coerce(param).param is param
    assert PropertySpec.coerce({"param": param, "curve": "exponential"}).curve == "exponential"


def test_observer_unsubscribe(clock: ManualClock):
    obj = AudioObject(clock, {"gain": OfflineParam(0.0)})
    records = []
    unsubscribe = obj.observe(records.append)
    obj.gain = 0.1
    unsubscribe()
    unsubscribe()
    obj.gain = 0.2
    assert records == [ChangeRecord("gain", 0.0, 0.1)]


def test_plain_attributes_still_work(clock: ManualClock):
    obj = AudioObject(clock, {"gain": OfflineParam(0.0)})
    obj.label = "lead"
    assert obj.label == "lead"
    with pytest.raises(AttributeError):
        obj.missing


def test_ramp_to_value_reramp_holds_interrupted_value(param: OfflineParam, timeline: ParameterTimeline):
    ramp_to_value(timeline, 1.0, 0.0, 1.0)
    ramp_to_value(timeline, 0.0, 0.5, 1.0)

    assert [event.as_tuple() for event in timeline.events] == [
        (0.0, 0.0, CurveKind.STEP, 0.0),
        (0.5, 0.5, CurveKind.LINEAR, 0.5),
        (0.5, 0.5, CurveKind.STEP, 0.0),
        (1.5, 0.0, CurveKind.LINEAR, 1.0),
    ]
    assert timeline.value_at(1.0) == pytest.approx(0.25)
    for t in (0.25, 0.5, 1.0, 1.5, 2.0):
        assert param.value_at(t) == pytest.approx(timeline.value_at(t))


def test_ramp_to_value_without_duration_steps(timeline: ParameterTimeline):
    timeline.schedule(2.0, 4.0, CurveKind.LINEAR, 2.0)
    ramp_to_value(timeline, 9.0, 1.0)
    assert timeline.events[-1] == AutomationEvent(1.0, 9.0, CurveKind.STEP, 0.0)
    assert all(event.time <= 1.0 for event in timeline.events)
    assert timeline.value_at(0.5) == pytest.approx(1.0)


def test_ramp_to_value_target_uses_duration_as_time_constant():
    timeline = ParameterTimeline(OfflineParam(1.0))
    ramp_to_value(timeline, 0.0, 1.0, 0.5, "decay")
    assert timeline.events[-1] == AutomationEvent(1.0, 0.0, CurveKind.TARGET, 0.5)
    assert timeline.value_at(1.5) == pytest.approx(math.exp(-1.0))


def test_manual_setter_gets_one_call_per_automation(clock: ManualClock):
    calls = []
    obj = AudioObject(clock, {"pan": {"set": lambda *args: calls.append(args)}})
    obj.automate("pan", 1.0, time=1.0, duration=0.5)
    obj.automate("pan", -1.0, time=1.25, duration=0.5)

    assert calls == [
        (1.0, 1.5, 0.5, CurveKind.LINEAR),
        (-1.0, 1.75, 0.5, CurveKind.LINEAR),
    ]
    assert obj.timeline("pan").value_at(1.25) == pytest.approx(0.5)


def test_ramp_to_value_rejects_bad_arguments_before_truncating(
    param: OfflineParam, timeline: ParameterTimeline
):
    timeline.schedule(2.0, 10.0, CurveKind.LINEAR, 2.0)
    snapshot = timeline.events
    sink_snapshot = param.events

    with pytest.raises(ValueError):
        ramp_to_value(timeline, 5.0, 1.0, -0.5, "linear")
    with pytest.raises(ValueError):
        ramp_to_value(timeline, 5.0, 1.0, float("inf"))
    with pytest.raises(ValueError):
        ramp_to_value(timeline, 5.0, -1.0, 0.5)
    with pytest.raises(InvalidCurveError):
        ramp_to_value(timeline, 5.0, 1.0, 0.5, "wobble")

    assert timeline.events == snapshot
    assert param.events == sink_snapshot


def test_frame_loop_plays_automation_at_frame_interval(clock: ManualClock, frames: FrameLoop):
    obj, _ = _gain_object(clock, frames, duration=0.1)
    obj.gain = 0.0

    ran = frames.run_until_idle()

    assert ran >= 6
    assert clock.current_time >= 0.1
    assert obj.gain == 0.0
