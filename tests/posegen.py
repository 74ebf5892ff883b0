"""Synthetic poses for tests."""

import math
from typing import Dict, Iterable, List, Optional

from repcoach.vision.keypoints import Keypoint, Pose

SEGMENT = 100.0

STANDING = {
    "nose": (100.0, 20.0),
    "left_eye": (95.0, 15.0),
    "right_eye": (105.0, 15.0),
    "left_ear": (90.0, 18.0),
    "right_ear": (110.0, 18.0),
    "left_shoulder": (80.0, 60.0),
    "right_shoulder": (120.0, 60.0),
    "left_elbow": (75.0, 100.0),
    "right_elbow": (125.0, 100.0),
    "left_wrist": (75.0, 140.0),
    "right_wrist": (125.0, 140.0),
    "left_hip": (85.0, 150.0),
    "right_hip": (115.0, 150.0),
    "left_knee": (85.0, 220.0),
    "right_knee": (115.0, 220.0),
    "left_ankle": (85.0, 290.0),
    "right_ankle": (115.0, 290.0),
}


def pose_from_points(points: Dict[str, tuple], score: float = 0.9) -> Pose:
    return Pose(keypoints=tuple(Keypoint(x=x, y=y, score=score, name=name) for name, (x, y) in points.items()))


def _limb(vertex: tuple, angle: float) -> tuple:
    """Point at SEGMENT from ``vertex`` so that (vertex - up) / vertex / point spans ``angle``."""
    rad = math.radians(angle)
    return (vertex[0] + SEGMENT * math.sin(rad), vertex[1] - SEGMENT * math.cos(rad))


def squat_pose(knee_angle: float, score: float = 0.9, omit: Iterable[str] = ()) -> Pose:
    """Both legs with the given hip-knee-ankle angle; thighs point straight up."""
    points = {}
    for side, x in (("left", 200.0), ("right", 400.0)):
        knee = (x, 300.0)
        points[f"{side}_hip"] = (x, 300.0 - SEGMENT)
        points[f"{side}_knee"] = knee
        points[f"{side}_ankle"] = _limb(knee, knee_angle)
    for name in omit:
        points.pop(name, None)
    return pose_from_points(points, score)


def arm_pose(elbow_angle: float, sides=("left", "right"), score: float = 0.9) -> Pose:
    points = {}
    for side, x in (("left", 200.0), ("right", 400.0)):
        if side not in sides:
            continue
        elbow = (x, 300.0)
        points[f"{side}_shoulder"] = (x, 300.0 - SEGMENT)
        points[f"{side}_elbow"] = elbow
        points[f"{side}_wrist"] = _limb(elbow, elbow_angle)
    return pose_from_points(points, score)


def squat_cycle(reps: int = 1, step: float = 10.0, low: float = 60.0, hold: int = 3) -> List[float]:
    """Knee angles for ``reps`` squats moving ``step`` degrees per frame."""
    angles: List[float] = [180.0] * 4
    for _ in range(reps):
        a = 180.0
        while a > low:
            a = max(low, a - step)
            angles.append(a)
        angles.extend([low] * hold)
        while a < 180.0:
            a = min(180.0, a + step)
            angles.append(a)
        angles.extend([180.0] * hold)
    return angles


def frames_payload(pose: Optional[Pose]) -> dict:
    return {"poses": [pose.to_dict()] if pose is not None else []}
