"""Per-joint temporal stabilization of raw detector keypoints.

The stabilizer turns noisy detector output into coordinates fit for
rendering and angle computation:

- detections below a minimum confidence are not trusted; a recently
  rendered joint is kept alive with a decaying score,
- a detection that moves further than ``max_jump`` pixels in one frame is
  treated as a misdetection and the previous value is reused,
- accepted detections are blended with an exponential moving average whose
  alpha shrinks for lower-confidence detections,
- a joint is only exposed with a non-zero score once it has been accepted
  for ``stability_threshold`` frames.

Suppressed joints are emitted with ``score == 0`` rather than dropped, so
callers must filter by score, not by absence.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from repcoach.config import StabilizerConfig
from repcoach.signals.kinematics import distance
from repcoach.vision.keypoints import Keypoint, Pose

logger = logging.getLogger(__name__)

MIN_ALPHA = 0.1
MAX_ALPHA = 1.0
DEFAULT_ALPHA = 0.3


def clamp_alpha(alpha: float) -> float:
    return max(MIN_ALPHA, min(MAX_ALPHA, alpha))


@dataclass
class KeypointHistory:
    """Last accepted state of one joint."""

    keypoint: Keypoint
    timestamp: float
    stability_count: int


class KeypointStabilizer:
    """Confidence-adaptive EMA filter keyed by joint name.

    An instance owns its history exclusively and is meant to be driven by a
    single detection loop.
    """

    def __init__(
        self,
        alpha: float = DEFAULT_ALPHA,
        *,
        config: Optional[StabilizerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or StabilizerConfig()
        self._clock = clock
        self._alpha = clamp_alpha(alpha)
        self._history: Dict[str, KeypointHistory] = {}

    @property
    def alpha(self) -> float:
        return self._alpha

    def set_alpha(self, alpha: float) -> None:
        """Update the smoothing factor; out-of-range values are clamped."""
        self._alpha = clamp_alpha(alpha)

    def history(self, key: str) -> Optional[KeypointHistory]:
        return self._history.get(key)

    def __len__(self) -> int:
        return len(self._history)

    def reset(self) -> None:
        """Forget every joint, e.g. when the camera restarts."""
        self._history.clear()

    def smooth(self, poses: List[Pose]) -> List[Pose]:
        """Stabilize every pose of a frame; an empty frame passes through."""
        if not poses:
            return poses
        now = self._clock()
        return [pose.with_keypoints(self._smooth_keypoint(kp, now) for kp in pose.keypoints) for pose in poses]

    def _is_exposed(self, history: Optional[KeypointHistory]) -> bool:
        """Whether the stored point has passed the stability and render gates."""
        cfg = self.config
        return (
            history is not None
            and history.stability_count >= cfg.stability_threshold
            and history.keypoint.confidence >= cfg.render_confidence
        )

    def _smooth_keypoint(self, kp: Keypoint, now: float) -> Keypoint:
        cfg = self.config
        key = kp.key
        history = self._history.get(key)
        confidence = kp.confidence

        if confidence < cfg.min_confidence:
            if self._is_exposed(history):
                # Dropout: keep the joint alive briefly with a decaying score.
                return history.keypoint.with_score(max(0.0, history.keypoint.confidence * cfg.dropout_decay))
            return kp.with_score(0.0)

        if history is None:
            smoothed = kp
            stability_count = 1
        else:
            prev = history.keypoint
            if distance(kp, prev) >= cfg.max_jump:
                logger.debug("Rejected %s jump of %.1fpx", key, distance(kp, prev))
                if not self._is_exposed(history):
                    return prev.with_score(0.0)
                return prev.with_score(max(0.0, prev.confidence * cfg.jump_decay))

            alpha = self._alpha if confidence > cfg.high_confidence else self._alpha * cfg.low_confidence_alpha_factor
            prev_score = prev.score if prev.score is not None else confidence
            smoothed = Keypoint(
                x=alpha * kp.x + (1 - alpha) * prev.x,
                y=alpha * kp.y + (1 - alpha) * prev.y,
                score=cfg.confidence_weight * confidence + (1 - cfg.confidence_weight) * prev_score,
                name=kp.name,
            )
            stability_count = min(history.stability_count + 1, cfg.stability_cap)

        self._history[key] = KeypointHistory(keypoint=smoothed, timestamp=now, stability_count=stability_count)

        if stability_count >= cfg.stability_threshold and smoothed.confidence >= cfg.render_confidence:
            return smoothed
        return smoothed.with_score(0.0)
