"""Synchronous detection loop: transform, stabilize, count.

The caller owns the loop. :class:`FrameScheduler` decides whether a tick is
due at the configured rate (independent of camera and display refresh), and
:meth:`PosePipeline.process` runs one frame through the core and returns the
stabilized poses with the current rep state.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from repcoach.config import CounterConfig, LoopConfig, StabilizerConfig
from repcoach.io.normalization import FrameTransform
from repcoach.quality.form import FormReport, analyze_form
from repcoach.repdetect.baseline import ExerciseType, RepCounter, RepState
from repcoach.signals.smoothing import DEFAULT_ALPHA, KeypointStabilizer
from repcoach.vision.keypoints import Pose

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class ManualClock:
    """Clock advanced explicitly, for replays and simulations."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def set(self, now: float) -> None:
        self.now = now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FrameScheduler:
    """Fixed-rate tick gate for a caller-owned detection loop."""

    def __init__(self, loop_config: Optional[LoopConfig] = None, *, clock: Clock = time.monotonic) -> None:
        self.loop_config = loop_config or LoopConfig()
        self._clock = clock
        self._last_tick: Optional[float] = None

    def due(self) -> bool:
        """Return True (and start a new interval) when a frame should be processed."""
        now = self._clock()
        if self._last_tick is not None and now - self._last_tick < self.loop_config.frame_interval:
            return False
        self._last_tick = now
        return True

    def reset(self) -> None:
        self._last_tick = None


@dataclass
class FrameResult:
    poses: List[Pose]
    rep_state: RepState
    form: Optional[FormReport] = None
    seconds_without_subject: float = 0.0
    subject_lost: bool = False


@dataclass
class SessionSummary:
    """What a workout store persists once a session ends."""

    exercise: ExerciseType
    reps: int
    duration: float
    frames: int
    form_score: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "exercise": self.exercise.value,
            "reps": self.reps,
            "duration": self.duration,
            "frames": self.frames,
            "form_score": self.form_score,
        }


@dataclass
class _SessionStats:
    started_at: float
    frames: int = 0
    form_scores: List[int] = field(default_factory=list)


class PosePipeline:
    """Stabilizer and rep counter wired together for one subject."""

    def __init__(
        self,
        exercise: "ExerciseType | str" = ExerciseType.SQUAT,
        alpha: float = DEFAULT_ALPHA,
        *,
        transform: Optional[FrameTransform] = None,
        stabilizer_config: Optional[StabilizerConfig] = None,
        counter_config: Optional[CounterConfig] = None,
        loop_config: Optional[LoopConfig] = None,
        with_form: bool = True,
        clock: Clock = time.monotonic,
    ) -> None:
        self._clock = clock
        self.transform = transform
        self.with_form = with_form
        self.loop_config = loop_config or LoopConfig()
        self.stabilizer = KeypointStabilizer(alpha, config=stabilizer_config, clock=clock)
        self.counter = RepCounter(exercise, config=counter_config, clock=clock)
        self._stats = _SessionStats(started_at=clock())
        self._last_subject_time = clock()

    @property
    def exercise(self) -> ExerciseType:
        return self.counter.exercise

    def set_alpha(self, alpha: float) -> None:
        self.stabilizer.set_alpha(alpha)

    def set_exercise(self, exercise: "ExerciseType | str") -> None:
        self.counter.set_exercise(exercise)
        self._stats = _SessionStats(started_at=self._clock())
        logger.info("Switched exercise to %s", self.counter.exercise_name)

    def reset(self) -> None:
        """Drop all history and counts, e.g. after a camera restart."""
        self.stabilizer.reset()
        self.counter.reset()
        self._stats = _SessionStats(started_at=self._clock())
        self._last_subject_time = self._clock()

    def process(self, poses: Optional[List[Pose]]) -> FrameResult:
        """Run one frame through the core; ``None`` is treated as no subject.

        Counting and form checks run in the normalized (upright) space; the
        returned poses are mapped back to the source frame's pixel space.
        """
        poses = list(poses or [])
        transform = self.transform if self.transform is not None and not self.transform.is_identity else None
        if transform is not None:
            poses = transform.normalize_poses(poses)
        stabilized = self.stabilizer.smooth(poses)
        rep_state = self.counter.update(stabilized)
        self._stats.frames += 1

        now = self._clock()
        if poses:
            self._last_subject_time = now
        without_subject = max(0.0, now - self._last_subject_time)

        form = None
        if self.with_form and stabilized:
            form = analyze_form(stabilized[0], self.exercise.value)
            self._stats.form_scores.append(form.score)
        if transform is not None:
            stabilized = transform.restore_poses(stabilized)
        return FrameResult(
            poses=stabilized,
            rep_state=rep_state,
            form=form,
            seconds_without_subject=without_subject,
            subject_lost=without_subject > self.loop_config.no_subject_timeout,
        )

    def summary(self) -> SessionSummary:
        scores = self._stats.form_scores
        return SessionSummary(
            exercise=self.exercise,
            reps=self.counter.state().count,
            duration=max(0.0, self._clock() - self._stats.started_at),
            frames=self._stats.frames,
            form_score=round(sum(scores) / len(scores)) if scores else None,
        )
