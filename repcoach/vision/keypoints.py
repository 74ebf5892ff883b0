"""Keypoint and pose records shared by every stage of the detection loop.

Backends hand over poses in their own pixel coordinate space. Scores are
optional because not every backend reports them; consumers read
:attr:`Keypoint.confidence`, which maps a missing score to 0.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class JointName(str, Enum):
    """COCO / MoveNet joint vocabulary used by the exercise rules."""

    NOSE = "nose"
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"


@dataclass(frozen=True)
class Keypoint:
    """Single named landmark in frame pixel coordinates."""

    x: float
    y: float
    score: Optional[float] = None
    name: Optional[str] = None

    @property
    def confidence(self) -> float:
        return self.score if self.score is not None else 0.0

    @property
    def key(self) -> str:
        """Identity used to track the joint across frames.

        Unnamed points fall back to their position, which only identifies
        them within a single frame.
        """
        return self.name if self.name else f"{self.x}_{self.y}"

    def with_score(self, score: float) -> "Keypoint":
        return replace(self, score=score)

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "score": self.score, "name": self.name}

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "Keypoint":
        score = obj.get("score")
        return cls(
            x=float(obj["x"]),
            y=float(obj["y"]),
            score=float(score) if score is not None else None,
            name=obj.get("name"),
        )


@dataclass(frozen=True)
class Pose:
    """Keypoints for one detected subject in one frame."""

    keypoints: Tuple[Keypoint, ...]
    score: Optional[float] = None

    def __post_init__(self) -> None:
        # Accept lists from callers while keeping the record hashable.
        object.__setattr__(self, "keypoints", tuple(self.keypoints))

    def get(self, name: str | JointName) -> Optional[Keypoint]:
        """Return the first keypoint carrying ``name``, if any."""
        wanted = name.value if isinstance(name, JointName) else name
        for kp in self.keypoints:
            if kp.name == wanted:
                return kp
        return None

    def visible(self, threshold: float) -> Tuple[Keypoint, ...]:
        """Keypoints whose confidence is strictly above ``threshold``."""
        return tuple(kp for kp in self.keypoints if kp.confidence > threshold)

    def with_keypoints(self, keypoints: Iterable[Keypoint]) -> "Pose":
        return Pose(keypoints=tuple(keypoints), score=self.score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "keypoints": [kp.to_dict() for kp in self.keypoints],
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "Pose":
        score = obj.get("score")
        return cls(
            keypoints=tuple(Keypoint.from_dict(kp) for kp in obj.get("keypoints", [])),
            score=float(score) if score is not None else None,
        )
