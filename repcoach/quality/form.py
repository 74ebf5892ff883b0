"""Heuristic form checks on a single stabilized pose.

Each check deducts from a score that starts at 100 and adds one line of
feedback. Joints only take part when their confidence is above
``TRUSTED_CONFIDENCE``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from repcoach.signals.kinematics import angle_between, segment_inclination
from repcoach.vision.keypoints import JointName as J
from repcoach.vision.keypoints import Keypoint, Pose

TRUSTED_CONFIDENCE = 0.5
MAX_SHOULDER_TILT = 30.0  # px
BACK_ANGLE_RANGE = (75.0, 105.0)  # degrees from horizontal
MAX_KNEE_OVER_ANKLE = 20.0  # px
MAX_SQUAT_DEPTH_ANGLE = 120.0
MAX_ELBOW_OFFSET = 40.0  # px
MIN_VISIBLE_KEYPOINTS = 10

LEG_EXERCISES = {"squat", "lunge"}
ARM_EXERCISES = {"pushup", "plank"}


@dataclass
class FormReport:
    score: int
    feedback: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"score": self.score, "feedback": list(self.feedback)}


def _normalize_exercise(exercise: str) -> str:
    return exercise.strip().lower().replace("-", "").replace("_", "").replace(" ", "")


def _trusted(pose: Pose, name: J) -> Optional[Keypoint]:
    kp = pose.get(name)
    if kp is None or kp.confidence <= TRUSTED_CONFIDENCE:
        return None
    return kp


def analyze_form(pose: Optional[Pose], exercise: str = "general") -> FormReport:
    """Score the form of ``pose`` for ``exercise`` (0..100) with feedback."""
    if pose is None or not pose.keypoints:
        return FormReport(score=0, feedback=["Position yourself in frame"])

    exercise = _normalize_exercise(exercise)
    feedback: List[str] = []
    score = 100

    left_shoulder = _trusted(pose, J.LEFT_SHOULDER)
    right_shoulder = _trusted(pose, J.RIGHT_SHOULDER)
    left_hip = _trusted(pose, J.LEFT_HIP)

    if left_shoulder and right_shoulder:
        if abs(left_shoulder.y - right_shoulder.y) > MAX_SHOULDER_TILT:
            feedback.append("Keep shoulders level")
            score -= 10

    if left_shoulder and left_hip:
        back_angle = segment_inclination(left_shoulder, left_hip)
        low, high = BACK_ANGLE_RANGE
        if back_angle < low or back_angle > high:
            feedback.append("Straighten your back")
            score -= 15

    if exercise in LEG_EXERCISES:
        left_knee = _trusted(pose, J.LEFT_KNEE)
        left_ankle = _trusted(pose, J.LEFT_ANKLE)
        if left_hip and left_knee and left_ankle:
            if left_knee.x > left_ankle.x + MAX_KNEE_OVER_ANKLE:
                feedback.append("Knees too far forward")
                score -= 15
            if angle_between(left_hip, left_knee, left_ankle) > MAX_SQUAT_DEPTH_ANGLE:
                feedback.append("Go deeper for full range")
                score -= 5

    if exercise in ARM_EXERCISES:
        left_elbow = _trusted(pose, J.LEFT_ELBOW)
        if left_shoulder and left_elbow:
            if abs(left_shoulder.y - left_elbow.y) > MAX_ELBOW_OFFSET:
                feedback.append("Keep elbows aligned with shoulders")
                score -= 10

    if len(pose.visible(TRUSTED_CONFIDENCE)) < MIN_VISIBLE_KEYPOINTS:
        feedback.append("Move closer or adjust lighting")
        score -= 10

    if not feedback:
        feedback.append("Excellent form! Keep it up!")

    return FormReport(score=max(0, min(100, score)), feedback=feedback)
