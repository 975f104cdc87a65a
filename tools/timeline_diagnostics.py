#!/usr/bin/env python3
"""Timeline diagnostics CLI comparing modelled values with an offline render.

Run with ``python tools/timeline_diagnostics.py [timeline.json]`` to sample a
stored timeline (or the built-in demo when no document is given). The
command prints the event list, evenly spaced ``value_at`` samples, and the
largest deviation between the model and an :class:`OfflineParam` render of
the same schedule, so QA runs can confirm curve math without an audio device.
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Sequence

import numpy as np

from automation.curves import CurveKind
from automation.persistence import TimelineFileAdapter, TimelineSerializer
from automation.sinks import OfflineParam
from automation.timeline import ParameterTimeline

logger = logging.getLogger(__name__)


def _build_demo_timeline(param: OfflineParam) -> ParameterTimeline:
    timeline = ParameterTimeline(param, name="cutoff_hz")
    timeline.schedule(0.0, 100.0, CurveKind.STEP)
    timeline.schedule(1.0, 2_000.0, CurveKind.EXPONENTIAL, 1.0)
    timeline.schedule(1.5, 400.0, CurveKind.TARGET, 0.2)
    timeline.schedule(2.5, 400.0, CurveKind.STEP)
    timeline.schedule(3.5, 800.0, CurveKind.LINEAR, 1.0)
    return timeline


def _load_timeline(path: Path) -> tuple[ParameterTimeline, OfflineParam]:
    document = TimelineFileAdapter(path.parent).read_document(path.name)
    param = OfflineParam(document.events[0].value, name=document.name)
    return document.to_timeline(param), param


def _sample_times(until: float, samples: int) -> List[float]:
    if samples <= 1:
        return [0.0]
    return [until * index / (samples - 1) for index in range(samples)]


def _max_deviation(timeline: ParameterTimeline, param: OfflineParam, until: float, sample_rate: int) -> float:
    rendered = param.render(until, sample_rate)
    if rendered.size == 0:
        return 0.0
    modelled = np.array(
        [timeline.value_at(index / sample_rate) for index in range(rendered.size)],
        dtype=np.float64,
    )
    return float(np.max(np.abs(rendered - modelled)))


def _build_summary(
    timeline: ParameterTimeline,
    param: OfflineParam,
    *,
    until: float,
    samples: int,
    sample_rate: int,
) -> Dict[str, object]:
    payload = TimelineSerializer.dump(timeline)
    return {
        "name": payload["name"],
        "events": payload["events"],
        "samples": [
            {"time": time, "value": timeline.value_at(time)}
            for time in _sample_times(until, samples)
        ],
        "final_value": timeline.final_value,
        "max_render_deviation": _max_deviation(timeline, param, until, sample_rate),
    }


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "document",
        nargs="?",
        type=Path,
        default=None,
        help="Timeline JSON document to inspect (defaults to a demo timeline).",
    )
    parser.add_argument(
        "--until",
        type=float,
        default=4.0,
        help="Last time, in seconds, to sample and render.",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=9,
        help="Number of evenly spaced value_at samples to report.",
    )
    parser.add_argument(
        "--sample-rate",
        type=int,
        default=1_000,
        help="Sample rate of the offline render used for the deviation check.",
    )
    parser.add_argument(
        "--truncate",
        type=float,
        default=None,
        help="Truncate the timeline at this time before sampling.",
    )
    parser.add_argument(
        "--save",
        type=Path,
        default=None,
        help="Write the (possibly truncated) timeline to this JSON file.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON instead of a human-readable summary.",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print JSON output (implies --json).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log timeline mutations at debug level.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )
    if args.document is not None:
        timeline, param = _load_timeline(args.document)
    else:
        param = OfflineParam(0.0, name="cutoff_hz")
        timeline = _build_demo_timeline(param)
    if args.truncate is not None:
        timeline.truncate_at(args.truncate)
        logger.info("Truncated %r at %ss", timeline.name, args.truncate)
    if args.save is not None:
        TimelineFileAdapter(args.save.parent).save(timeline, args.save.name)

    until = max(args.until, 0.0)
    summary = _build_summary(
        timeline,
        param,
        until=until,
        samples=max(args.samples, 1),
        sample_rate=max(args.sample_rate, 1),
    )

    if args.json or args.pretty:
        print(json.dumps(summary, indent=2 if args.pretty else None))
    else:
        print(f"Timeline Diagnostics: {summary['name']}")
        print("==========================")
        print("Events:")
        for event in summary["events"]:
            print(
                f"  - {event['time']:.3f}s {event['curve']} → {event['value']:.4f}"
                + (f" (duration {event['duration']:.3f}s)" if event["duration"] else "")
            )
        print("\nSamples:")
        for sample in summary["samples"]:
            print(f"  - {sample['time']:.3f}s: {sample['value']:.4f}")
        print(f"\nFinal value: {summary['final_value']:.4f}")
        print(f"Max render deviation: {summary['max_render_deviation']:.3e}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
