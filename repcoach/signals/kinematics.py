"""Kinematic signals derived from 2D keypoints.

Joint angles are the 1D signals rep detection runs on (knee flexion for
squats, elbow flexion for push-ups and curls).
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from repcoach.vision.keypoints import JointName, Keypoint, Pose

# Magnitude product below which two vectors are treated as degenerate.
EPSILON = 1e-9

# Returned for coincident points instead of NaN.
DEGENERATE_ANGLE = 0.0

PointLike = Union[Keypoint, Sequence[float], np.ndarray]
JointTriplet = Tuple[JointName, JointName, JointName]


def _as_array(point: PointLike) -> np.ndarray:
    if isinstance(point, Keypoint):
        return np.array([point.x, point.y], dtype=float)
    return np.asarray(point, dtype=float)[:2]


def distance(a: PointLike, b: PointLike) -> float:
    """Euclidean distance in pixels."""
    return float(np.linalg.norm(_as_array(a) - _as_array(b)))


def angle_between(a: PointLike, b: PointLike, c: PointLike) -> float:
    """Return the angle (degrees, 0..180) at vertex ``b`` formed by a-b-c.

    Coincident points yield :data:`DEGENERATE_ANGLE` so that a single bad
    frame never feeds NaN into downstream averages.
    """
    ba = _as_array(a) - _as_array(b)
    bc = _as_array(c) - _as_array(b)
    magnitude = float(np.linalg.norm(ba) * np.linalg.norm(bc))
    if not math.isfinite(magnitude) or magnitude < EPSILON:
        return DEGENERATE_ANGLE
    cosang = float(np.dot(ba, bc) / magnitude)
    cosang = float(np.clip(cosang, -1.0, 1.0))
    return math.degrees(math.acos(cosang))


def trusted_keypoint(pose: Pose, name: JointName, min_confidence: float) -> Optional[Keypoint]:
    kp = pose.get(name)
    if kp is None or kp.confidence < min_confidence:
        return None
    return kp


def joint_angle(pose: Pose, triplet: JointTriplet, min_confidence: float) -> Optional[float]:
    """Angle at the middle joint of ``triplet``, or None if any joint is untrusted."""
    points = [trusted_keypoint(pose, name, min_confidence) for name in triplet]
    if any(p is None for p in points):
        return None
    first, vertex, last = points
    return angle_between(first, vertex, last)


def segment_inclination(top: PointLike, bottom: PointLike) -> float:
    """Absolute angle (degrees) of the top->bottom segment against the x axis.

    A perfectly vertical segment reads 90.
    """
    t = _as_array(top)
    b = _as_array(bottom)
    return abs(math.degrees(math.atan2(b[1] - t[1], b[0] - t[0])))
