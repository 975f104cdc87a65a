"""Shared configuration for automation timelines and their sinks."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class AutomationConfig:
    """Defaults applied when callers leave timing details unspecified.

    ``block_size`` is the number of frames rendered per offline block and
    ``frame_interval`` the seconds between mirror refreshes.
    """

    default_duration: float = 0.008
    default_curve: str = "linear"
    sample_rate: int = 48_000
    block_size: int = 512
    frame_interval: float = 1.0 / 60.0


__all__ = ["AutomationConfig"]
