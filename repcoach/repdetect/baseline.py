"""Threshold-crossing rep detection on a smoothed joint angle.

Each exercise is described by the joint triplets whose angle tracks the
movement and by two thresholds: dropping below ``deep`` enters the ``down``
phase, rising above ``shallow`` from ``down`` completes a rep. A debounce
window keeps noisy crossings from counting twice.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional

from repcoach.config import CounterConfig
from repcoach.signals.kinematics import JointTriplet, joint_angle
from repcoach.vision.keypoints import JointName as J
from repcoach.vision.keypoints import Pose

logger = logging.getLogger(__name__)


class UnknownExerciseError(ValueError):
    """Raised when an exercise name does not map to a supported exercise."""


class ExerciseType(str, Enum):
    SQUAT = "squat"
    PUSHUP = "pushup"
    BICEP_CURL = "bicep_curl"

    @classmethod
    def parse(cls, value: "str | ExerciseType") -> "ExerciseType":
        if isinstance(value, ExerciseType):
            return value
        normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError as exc:
            choices = ", ".join(e.value for e in cls)
            raise UnknownExerciseError(f"Unknown exercise: {value!r}. Expected one of {choices}.") from exc

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").capitalize()


class RepPhase(str, Enum):
    IDLE = "idle"
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class ExerciseRule:
    """Angle definition and thresholds for one exercise.

    Attributes:
        left: Joint triplet (first, vertex, last) on the left side.
        right: Same triplet on the right side.
        deep: Angle (degrees) below which the movement is at the bottom.
        shallow: Angle (degrees) above which a rep from the bottom completes.
        require_both_sides: When True both sides must be visible; otherwise
            either side suffices and both are averaged when available.
    """

    left: JointTriplet
    right: JointTriplet
    deep: float
    shallow: float
    require_both_sides: bool = False


EXERCISE_RULES: Dict[ExerciseType, ExerciseRule] = {
    ExerciseType.SQUAT: ExerciseRule(
        left=(J.LEFT_HIP, J.LEFT_KNEE, J.LEFT_ANKLE),
        right=(J.RIGHT_HIP, J.RIGHT_KNEE, J.RIGHT_ANKLE),
        deep=90.0,
        shallow=160.0,
        require_both_sides=True,
    ),
    ExerciseType.PUSHUP: ExerciseRule(
        left=(J.LEFT_SHOULDER, J.LEFT_ELBOW, J.LEFT_WRIST),
        right=(J.RIGHT_SHOULDER, J.RIGHT_ELBOW, J.RIGHT_WRIST),
        deep=90.0,
        shallow=160.0,
    ),
    ExerciseType.BICEP_CURL: ExerciseRule(
        left=(J.LEFT_SHOULDER, J.LEFT_ELBOW, J.LEFT_WRIST),
        right=(J.RIGHT_SHOULDER, J.RIGHT_ELBOW, J.RIGHT_WRIST),
        deep=50.0,
        shallow=150.0,
    ),
}


@dataclass
class RepState:
    count: int
    angle: int
    state: RepPhase
    last_rep_time: float

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "angle": self.angle,
            "state": self.state.value,
            "last_rep_time": self.last_rep_time,
        }


def exercise_angle(pose: Pose, rule: ExerciseRule, min_confidence: float) -> Optional[float]:
    """Average the left/right angles of ``rule``; None when not computable."""
    left = joint_angle(pose, rule.left, min_confidence)
    right = joint_angle(pose, rule.right, min_confidence)
    if rule.require_both_sides:
        if left is None or right is None:
            return None
        return (left + right) / 2
    sides = [a for a in (left, right) if a is not None]
    if not sides:
        return None
    return sum(sides) / len(sides)


class RepCounter:
    """Debounced up/down state machine over a moving-average joint angle."""

    def __init__(
        self,
        exercise: "ExerciseType | str" = ExerciseType.SQUAT,
        *,
        config: Optional[CounterConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or CounterConfig()
        self._clock = clock
        self._exercise = ExerciseType.parse(exercise)
        self._angles: Deque[float] = deque(maxlen=self.config.smoothing_window)
        self._state = self._initial_state()

    def _initial_state(self) -> RepState:
        return RepState(count=0, angle=0, state=RepPhase.IDLE, last_rep_time=self._clock())

    @property
    def exercise(self) -> ExerciseType:
        return self._exercise

    @property
    def exercise_name(self) -> str:
        return self._exercise.display_name

    @property
    def rule(self) -> ExerciseRule:
        return EXERCISE_RULES[self._exercise]

    def state(self) -> RepState:
        return replace(self._state)

    def reset(self) -> None:
        self._state = self._initial_state()
        self._angles.clear()

    def set_exercise(self, exercise: "ExerciseType | str") -> None:
        """Switch exercise; any rep in progress is discarded."""
        self._exercise = ExerciseType.parse(exercise)
        self.reset()

    def _smooth_angle(self, angle: float) -> float:
        self._angles.append(angle)
        return sum(self._angles) / len(self._angles)

    def update(self, poses: List[Pose]) -> RepState:
        """Process one frame and return a snapshot of the rep state.

        Frames without a subject, or whose primary subject lacks the joints
        the exercise needs, leave the state untouched.
        """
        if not poses:
            return self.state()

        raw = exercise_angle(poses[0], self.rule, self.config.min_confidence)
        if raw is None:
            return self.state()

        smoothed = self._smooth_angle(raw)
        rule = self.rule
        state = self._state
        state.angle = round(smoothed)

        now = self._clock()
        if smoothed < rule.deep and state.state != RepPhase.DOWN:
            state.state = RepPhase.DOWN
        elif (
            smoothed > rule.shallow
            and state.state == RepPhase.DOWN
            and now - state.last_rep_time > self.config.debounce
        ):
            state.count += 1
            state.state = RepPhase.UP
            state.last_rep_time = now
            logger.debug("%s rep %d at %.1f deg", self.exercise_name, state.count, smoothed)

        return self.state()
