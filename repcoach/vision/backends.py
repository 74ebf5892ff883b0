"""Pose estimation backends.

A backend turns an image frame into zero or more :class:`Pose` objects in the
frame's pixel space. The detection loop treats an empty list as "no subject
visible", so throttled ticks and failed estimations both map to ``[]``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional, Protocol, Sequence

from repcoach.config import LoopConfig, PoseConfig
from repcoach.vision.keypoints import JointName, Keypoint, Pose

logger = logging.getLogger(__name__)

# BlazePose landmark index for each COCO joint.
MEDIAPIPE_JOINT_INDEX = {
    JointName.NOSE: 0,
    JointName.LEFT_EYE: 2,
    JointName.RIGHT_EYE: 5,
    JointName.LEFT_EAR: 7,
    JointName.RIGHT_EAR: 8,
    JointName.LEFT_SHOULDER: 11,
    JointName.RIGHT_SHOULDER: 12,
    JointName.LEFT_ELBOW: 13,
    JointName.RIGHT_ELBOW: 14,
    JointName.LEFT_WRIST: 15,
    JointName.RIGHT_WRIST: 16,
    JointName.LEFT_HIP: 23,
    JointName.RIGHT_HIP: 24,
    JointName.LEFT_KNEE: 25,
    JointName.RIGHT_KNEE: 26,
    JointName.LEFT_ANKLE: 27,
    JointName.RIGHT_ANKLE: 28,
}


class PoseBackend(Protocol):
    name: str

    def estimate(self, frame: Any) -> List[Pose]:
        ...

    def close(self) -> None:
        ...


class ThrottledBackend:
    """Cap estimation to a target rate and absorb backend failures.

    Calls arriving sooner than the frame interval return ``[]`` without
    touching the wrapped backend. A failing estimation is logged and also
    yields ``[]``; there is no retry.
    """

    def __init__(
        self,
        backend: PoseBackend,
        loop_config: Optional[LoopConfig] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.backend = backend
        self.loop_config = loop_config or LoopConfig()
        self._clock = clock
        self._last_estimate: Optional[float] = None

    @property
    def name(self) -> str:
        return self.backend.name

    def estimate(self, frame: Any) -> List[Pose]:
        now = self._clock()
        if self._last_estimate is not None and now - self._last_estimate < self.loop_config.frame_interval:
            return []
        self._last_estimate = now
        try:
            return list(self.backend.estimate(frame))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Pose estimation failed on %s backend: %s", self.backend.name, exc)
            return []

    def close(self) -> None:
        self.backend.close()


def _require_mediapipe():
    """Import mediapipe lazily to avoid a hard dependency when unused."""
    try:
        import mediapipe as mp  # type: ignore
    except ImportError as exc:  # pragma: no cover - environment dependent
        raise ImportError(
            "mediapipe is required for the MediaPipe backend. "
            "Install the 'mediapipe' extra or supply poses from another backend."
        ) from exc
    return mp


def _require_cv2():
    """Import OpenCV lazily; only BGR frames need the colour conversion."""
    try:
        import cv2  # type: ignore
    except ImportError as exc:  # pragma: no cover - environment dependent
        raise ImportError(
            "opencv-python is required to convert BGR frames for the MediaPipe backend. "
            "Install the 'mediapipe' extra or pass RGB frames with bgr=False."
        ) from exc
    return cv2


def landmarks_to_pose(landmarks: Sequence[Any], width: int, height: int) -> Pose:
    """Convert normalized BlazePose landmarks into a named pixel-space pose.

    ``landmarks`` items need ``x``, ``y`` (0..1) and ``visibility`` attributes.
    """
    keypoints = []
    for joint, index in MEDIAPIPE_JOINT_INDEX.items():
        if index >= len(landmarks):
            continue
        lm = landmarks[index]
        keypoints.append(
            Keypoint(
                x=float(lm.x) * width,
                y=float(lm.y) * height,
                score=float(getattr(lm, "visibility", 0.0)),
                name=joint.value,
            )
        )
    scores = [kp.confidence for kp in keypoints]
    return Pose(keypoints=tuple(keypoints), score=sum(scores) / len(scores) if scores else None)


class MediaPipeBackend:
    """Single-person MediaPipe Pose backend.

    Frames are HxWx3 uint8 arrays; set ``bgr=True`` for OpenCV captures.
    """

    name = "mediapipe"

    def __init__(self, pose_config: Optional[PoseConfig] = None, *, bgr: bool = True) -> None:
        mp = _require_mediapipe()
        self.pose_config = pose_config or PoseConfig()
        self.bgr = bgr
        self._pose = mp.solutions.pose.Pose(
            static_image_mode=False,
            model_complexity=self.pose_config.model_complexity,
            smooth_landmarks=self.pose_config.smooth_landmarks,
            min_detection_confidence=self.pose_config.min_detection_confidence,
            min_tracking_confidence=self.pose_config.min_tracking_confidence,
        )

    def estimate(self, frame: Any) -> List[Pose]:
        height, width = frame.shape[:2]
        rgb = frame
        if self.bgr:
            cv2 = _require_cv2()
            rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self._pose.process(rgb)
        if results.pose_landmarks is None:
            return []
        return [landmarks_to_pose(results.pose_landmarks.landmark, width, height)]

    def close(self) -> None:
        self._pose.close()
