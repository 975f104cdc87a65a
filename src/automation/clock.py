"""Clocks and the cooperative frame loop that drives property mirrors."""
from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, List, Optional

from .config import AutomationConfig

FrameCallback = Callable[[float], bool]


@dataclass
class ManualClock:
    """Clock advanced explicitly by the caller, in seconds."""

    current_time: float = 0.0

    def advance(self, seconds: float) -> float:
        if seconds < 0.0:
            raise ValueError("Clocks only move forwards")
        self.current_time += seconds
        return self.current_time


class BlockClock:
    """Clock that advances one processing block at a time."""

    def __init__(self, config: Optional[AutomationConfig] = None) -> None:
        self.config = config or AutomationConfig()
        self._processed_frames = 0

    @property
    def processed_frames(self) -> int:
        return self._processed_frames

    @property
    def current_time(self) -> float:
        return self._processed_frames / float(self.config.sample_rate)

    def tick(self, frames: int | None = None) -> float:
        """Advance by *frames* (one block by default) and return the new time."""

        frames = self.config.block_size if frames is None else int(frames)
        if frames < 0:
            raise ValueError("Clocks only move forwards")
        self._processed_frames += frames
        return self.current_time

    def reset(self) -> None:
        self._processed_frames = 0


class FrameLoop:
    """Runs queued callbacks once per frame, like a display refresh callback.

    A callback receives the clock's current time and is queued again for
    the next frame when it returns ``True``.
    """

    def __init__(self, clock, config: Optional[AutomationConfig] = None) -> None:
        self._clock = clock
        self.config = config or AutomationConfig()
        self._pending: List[FrameCallback] = []

    def request(self, callback: FrameCallback) -> None:
        if callback not in self._pending:
            self._pending.append(callback)

    def cancel(self, callback: FrameCallback) -> None:
        if callback in self._pending:
            self._pending.remove(callback)

    def run_frame(self) -> int:
        """Run every pending callback once; return how many remain queued."""

        now = self._clock.current_time
        callbacks, self._pending = self._pending, []
        for callback in callbacks:
            if callback(now):
                self.request(callback)
        return len(self._pending)

    def run_until_idle(
        self,
        advance: Callable[[], object] | None = None,
        *,
        max_frames: int = 10_000,
    ) -> int:
        """Alternate ``advance()`` and :meth:`run_frame` until nothing is queued.

        Without *advance* the clock moves forward by ``config.frame_interval``
        before each frame. Returns the number of frames run.
        """

        if advance is None:
            advance = partial(self._clock.advance, self.config.frame_interval)

        frames = 0
        while self._pending:
            if frames >= max_frames:
                raise RuntimeError(f"Frame loop still busy after {max_frames} frames")
            advance()
            self.run_frame()
            frames += 1
        return frames

    def __len__(self) -> int:
        return len(self._pending)


__all__ = ["BlockClock", "FrameLoop", "ManualClock"]
