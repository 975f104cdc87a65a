"""Saving and restoring parameter timelines as JSON documents.

Timelines are converted through :class:`TimelineDocument` so every write is
validated the same way a read is; restoring a timeline pushes its events
into the sink it is given.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .models import TimelineDocument
from .sinks import ParamSink
from .timeline import ParameterTimeline

logger = logging.getLogger(__name__)


class TimelineSerializer:
    """Convert timelines to JSON-compatible payloads and back."""

    @staticmethod
    def dump(timeline: ParameterTimeline, name: Optional[str] = None) -> Dict[str, Any]:
        return TimelineDocument.from_timeline(timeline, name).model_dump(mode="json")

    @staticmethod
    def validate(payload: Dict[str, Any]) -> TimelineDocument:
        return TimelineDocument.model_validate(payload)

    @classmethod
    def restore(
        cls, payload: Dict[str, Any], param: Optional[ParamSink] = None
    ) -> ParameterTimeline:
        """Rebuild a timeline from *payload*, committing it to *param*."""

        return cls.validate(payload).to_timeline(param)


class TimelineFileAdapter:
    """Keeps one timeline per JSON file below ``base_path``."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = Path(base_path)

    def path_for(self, filename: str) -> Path:
        return self.base_path / filename

    def save(
        self, timeline: ParameterTimeline, filename: str, *, name: Optional[str] = None
    ) -> Path:
        destination = self.path_for(filename)
        destination.parent.mkdir(parents=True, exist_ok=True)
        payload = TimelineSerializer.dump(timeline, name)
        destination.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info("Saved %d events for %r to %s", len(timeline), payload["name"], destination)
        return destination

    def read_document(self, filename: str) -> TimelineDocument:
        source = self.path_for(filename)
        return TimelineSerializer.validate(json.loads(source.read_text(encoding="utf-8")))

    def load(self, filename: str, param: Optional[ParamSink] = None) -> ParameterTimeline:
        """Restore the timeline stored in *filename*.

        Without *param* the events are committed to an :class:`OfflineParam`
        starting at the first stored value.
        """

        document = self.read_document(filename)
        timeline = document.to_timeline(param)
        logger.info("Loaded %d events for %r from %s", len(timeline), document.name, filename)
        return timeline


__all__ = ["TimelineFileAdapter", "TimelineSerializer"]
