"""Parameter automation timelines with curve interpolation and sink adapters."""
from .clock import BlockClock, FrameLoop, ManualClock
from .config import AutomationConfig
from .curves import MIN_EXPONENTIAL_VALUE, CurveKind
from .errors import (
    AutomationError,
    DomainError,
    InvalidCurveError,
    InvalidParameterError,
    NotAutomatableError,
)
from .events import AutomationEvent
from .models import AutomationEventModel, TimelineDocument
from .persistence import TimelineFileAdapter, TimelineSerializer
from .properties import (
    AudioObject,
    AudioProperty,
    ChangeRecord,
    PropertySpec,
    automate,
    define_audio_properties,
    define_audio_property,
    ramp_to_value,
)
from .sinks import ManualSink, OfflineParam, ParamSink
from .timeline import ParameterTimeline

__all__ = [
    "AudioObject",
    "AudioProperty",
    "AutomationConfig",
    "AutomationError",
    "AutomationEvent",
    "AutomationEventModel",
    "BlockClock",
    "ChangeRecord",
    "CurveKind",
    "DomainError",
    "FrameLoop",
    "InvalidCurveError",
    "InvalidParameterError",
    "MIN_EXPONENTIAL_VALUE",
    "ManualClock",
    "ManualSink",
    "NotAutomatableError",
    "OfflineParam",
    "ParamSink",
    "ParameterTimeline",
    "PropertySpec",
    "TimelineDocument",
    "TimelineFileAdapter",
    "TimelineSerializer",
    "automate",
    "define_audio_properties",
    "define_audio_property",
    "ramp_to_value",
]
