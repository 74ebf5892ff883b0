"""On-disk recordings of pose frames.

A recording is a JSONL file with one frame per line, so that a workout can be
replayed through the detection loop without a camera or a pose model. The
format is intentionally simple to ease inspection and debugging.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List

from repcoach.config import PoseConfig
from repcoach.vision.keypoints import Pose


class RecordingError(RuntimeError):
    """Raised when a recording line cannot be parsed."""


@dataclass(frozen=True)
class PoseFrame:
    """Pose estimator output for a single frame."""

    frame_index: int
    timestamp: float
    poses: List[Pose] = field(default_factory=list)


def recording_filename(session_id: str, pose_config: PoseConfig) -> str:
    """Build a recording filename using session id and pose config cache key."""
    return f"{session_id}_{pose_config.cache_key()}.jsonl"


def recording_path(recording_dir: Path, session_id: str, pose_config: PoseConfig) -> Path:
    """Return the path for the recording file without creating it."""
    return recording_dir / recording_filename(session_id, pose_config)


def _frame_to_json(frame: PoseFrame) -> str:
    payload = {
        "frame_index": frame.frame_index,
        "timestamp": frame.timestamp,
        "poses": [pose.to_dict() for pose in frame.poses],
    }
    return json.dumps(payload)


def _frame_from_obj(obj: dict) -> PoseFrame:
    return PoseFrame(
        frame_index=int(obj["frame_index"]),
        timestamp=float(obj["timestamp"]),
        poses=[Pose.from_dict(p) for p in obj.get("poses", [])],
    )


def save_pose_frames(
    recording_file: Path, frames: Iterable[PoseFrame], *, overwrite: bool = True
) -> Path:
    """Write pose frames to a JSONL recording.

    Args:
        recording_file: Destination path for the JSONL file.
        frames: Iterable of PoseFrame instances.
        overwrite: Whether to overwrite an existing file.
    """

    recording_file.parent.mkdir(parents=True, exist_ok=True)
    if recording_file.exists() and not overwrite:
        raise FileExistsError(f"Recording already exists: {recording_file}")

    with recording_file.open("w", encoding="utf-8") as fh:
        for frame in frames:
            fh.write(_frame_to_json(frame))
            fh.write("\n")
    return recording_file


def load_pose_frames(recording_file: Path) -> Iterator[PoseFrame]:
    """Read pose frames from a JSONL recording."""
    with recording_file.open("r", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                frame = _frame_from_obj(json.loads(line))
            except json.JSONDecodeError as exc:
                raise RecordingError(f"{recording_file}:{lineno}: invalid JSON: {exc}") from exc
            except (KeyError, TypeError, ValueError) as exc:
                raise RecordingError(f"{recording_file}:{lineno}: malformed frame: {exc}") from exc
            yield frame
