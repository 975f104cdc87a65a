import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT, ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from automation.clock import FrameLoop, ManualClock  # noqa: E402
from automation.sinks import OfflineParam  # noqa: E402
from automation.timeline import ParameterTimeline  # noqa: E402


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def frames(clock: ManualClock) -> FrameLoop:
    return FrameLoop(clock)


@pytest.fixture()
def param(clock: ManualClock) -> OfflineParam:
    return OfflineParam(0.0, clock=clock, name="gain")


@pytest.fixture()
def timeline(param: OfflineParam) -> ParameterTimeline:
    return ParameterTimeline(param, name="gain")
