"""Shared configuration and data models used across the detection loop."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StabilizerConfig:
    """Fixed tuning constants for :class:`repcoach.signals.smoothing.KeypointStabilizer`.

    Attributes:
        min_confidence: Detections below this score are not trusted at all.
        render_confidence: Stabilized points below this score are tracked but
            emitted with a zero score.
        stability_threshold: Consecutive accepted frames required before a
            joint's smoothed value is exposed.
        stability_headroom: How far the stability count may grow past the
            threshold; the count is capped at ``threshold + headroom``.
        max_jump: Per-frame displacement (pixels) beyond which a detection is
            treated as an outlier.
        high_confidence: Detections above this score use the full alpha.
        low_confidence_alpha_factor: Fraction of alpha used for detections at
            or below ``high_confidence``.
        confidence_weight: Weight of the current score when blending scores;
            the previous score gets ``1 - confidence_weight``.
        dropout_decay: Score multiplier when a joint drops below
            ``min_confidence`` and the previous value is reused.
        jump_decay: Score multiplier when a jump is rejected.
    """

    min_confidence: float = 0.25
    render_confidence: float = 0.35
    stability_threshold: int = 3
    stability_headroom: int = 5
    max_jump: float = 100.0
    high_confidence: float = 0.7
    low_confidence_alpha_factor: float = 0.7
    confidence_weight: float = 0.8
    dropout_decay: float = 0.9
    jump_decay: float = 0.95

    @property
    def stability_cap(self) -> int:
        return self.stability_threshold + self.stability_headroom


@dataclass(frozen=True)
class CounterConfig:
    """Tuning constants for :class:`repcoach.repdetect.baseline.RepCounter`.

    ``debounce`` is expressed in seconds of the counter's clock.
    """

    min_confidence: float = 0.5
    smoothing_window: int = 3
    debounce: float = 0.3


@dataclass(frozen=True)
class LoopConfig:
    """Cadence of the detection loop, independent of camera and display rate."""

    target_fps: float = 20.0
    # Seconds without a subject before the loop reports it as lost.
    no_subject_timeout: float = 2.0

    @property
    def frame_interval(self) -> float:
        """Minimum number of seconds between two processed frames."""
        if self.target_fps <= 0:
            raise ValueError("target_fps must be positive")
        return 1.0 / self.target_fps


@dataclass(frozen=True)
class PoseConfig:
    """Configuration for MediaPipe Pose (or similar) extraction.

    This keeps the parameters centralized for easier tuning and for naming
    recordings made with a given detector setup.
    """

    model_complexity: int = 1
    smooth_landmarks: bool = True
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    def cache_key(self) -> str:
        """Return a short string usable in recording file naming."""
        return (
            f"mc{self.model_complexity}"
            f"-sml{int(self.smooth_landmarks)}"
            f"-det{self.min_detection_confidence:.2f}"
            f"-trk{self.min_tracking_confidence:.2f}"
        )
