"""Command-line interface for offline replays.

Usage:
    repcoach replay session.jsonl --exercise squat [--alpha 0.3] [--json]

Recording timestamps drive the pipeline clock, so debounce behaves exactly
as it did live.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from repcoach.io.normalization import FrameTransform
from repcoach.pipeline import ManualClock, PosePipeline, SessionSummary
from repcoach.repdetect.baseline import ExerciseType, UnknownExerciseError
from repcoach.signals.smoothing import DEFAULT_ALPHA
from repcoach.vision.cache import RecordingError, load_pose_frames

logger = logging.getLogger("repcoach.cli")


def replay(
    recording: Path,
    exercise: "ExerciseType | str",
    *,
    alpha: float = DEFAULT_ALPHA,
    transform: Optional[FrameTransform] = None,
) -> SessionSummary:
    """Run a recording through a fresh pipeline and return its summary."""
    clock = ManualClock()
    pipeline: Optional[PosePipeline] = None
    last_count = 0

    for frame in load_pose_frames(recording):
        clock.set(frame.timestamp)
        if pipeline is None:
            pipeline = PosePipeline(exercise, alpha, transform=transform, clock=clock)
        result = pipeline.process(frame.poses)
        if result.rep_state.count != last_count:
            last_count = result.rep_state.count
            logger.info("frame %d t=%.2fs rep %d", frame.frame_index, frame.timestamp, last_count)

    if pipeline is None:
        pipeline = PosePipeline(exercise, alpha, transform=transform, clock=clock)
    return pipeline.summary()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="repcoach", description="Keypoint stabilization and rep counting")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every rep and rejected jump")
    sub = parser.add_subparsers(dest="command", required=True)

    rp = sub.add_parser("replay", help="Replay a JSONL pose recording")
    rp.add_argument("recording", type=Path, help="Path to the recording")
    rp.add_argument("--exercise", default=ExerciseType.SQUAT.value, help="squat, pushup or bicep_curl")
    rp.add_argument("--alpha", type=float, default=DEFAULT_ALPHA, help="Smoothing factor (clamped to 0.1..1.0)")
    rp.add_argument("--rotation", type=int, default=0, help="Camera rotation in degrees")
    rp.add_argument("--mirror", action="store_true", help="Mirror keypoints horizontally")
    rp.add_argument("--width", type=float, default=0.0, help="Frame width (needed for rotation/mirror)")
    rp.add_argument("--height", type=float, default=0.0, help="Frame height (needed for rotation/mirror)")
    rp.add_argument("--json", action="store_true", help="Print the summary as JSON")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    transform = None
    if args.rotation or args.mirror:
        if args.width <= 0 or args.height <= 0:
            print("Error: --width and --height are required with --rotation/--mirror", file=sys.stderr)
            return 2
        transform = FrameTransform(width=args.width, height=args.height, rotation=args.rotation, mirror=args.mirror)

    try:
        summary = replay(args.recording, ExerciseType.parse(args.exercise), alpha=args.alpha, transform=transform)
    except (UnknownExerciseError, RecordingError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(summary.to_dict()))
    else:
        form = f"{summary.form_score}/100" if summary.form_score is not None else "n/a"
        print(
            f"{summary.exercise.display_name}: {summary.reps} reps "
            f"in {summary.duration:.1f}s ({summary.frames} frames), form {form}"
        )
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
