"""Rotation and mirroring helpers for keypoint coordinates.

Phone cameras deliver frames rotated by their sensor orientation, and front
cameras are usually shown mirrored. This module maps keypoints into an
upright (and optionally mirrored) space before stabilization while retaining
the ability to map results back to the original orientation for drawing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from repcoach.vision.keypoints import Keypoint, Pose

SUPPORTED_ROTATIONS = {0, 90, 180, 270}


def _assert_supported_rotation(rotation: int) -> None:
    if rotation not in SUPPORTED_ROTATIONS:
        raise ValueError(f"Unsupported rotation: {rotation}. Expected one of {SUPPORTED_ROTATIONS}.")


@dataclass(frozen=True)
class FrameTransform:
    """Bidirectional mapping between original and normalized coordinates.

    Normalized space corresponds to applying the inverse of the reported
    rotation (i.e., upright for analysis), then mirroring horizontally when
    ``mirror`` is set. Coordinates are continuous pixel positions.
    """

    width: float
    height: float
    rotation: int = 0
    mirror: bool = False

    @property
    def normalized_size(self) -> Tuple[float, float]:
        """Return (width, height) after normalizing rotation."""
        _assert_supported_rotation(self.rotation)
        if self.rotation in {90, 270}:
            return (self.height, self.width)
        return (self.width, self.height)

    @property
    def is_identity(self) -> bool:
        return self.rotation == 0 and not self.mirror

    def to_normalized(self, point: Tuple[float, float]) -> Tuple[float, float]:
        """Map a point from original orientation to upright normalized space."""
        _assert_supported_rotation(self.rotation)
        x, y = point
        if self.rotation == 90:
            x, y = y, self.width - x
        elif self.rotation == 180:
            x, y = self.width - x, self.height - y
        elif self.rotation == 270:
            x, y = self.height - y, x
        if self.mirror:
            x = self.normalized_size[0] - x
        return (x, y)

    def to_original(self, point: Tuple[float, float]) -> Tuple[float, float]:
        """Map a point from normalized space back to the original orientation."""
        _assert_supported_rotation(self.rotation)
        x, y = point
        if self.mirror:
            x = self.normalized_size[0] - x
        if self.rotation == 0:
            return (x, y)
        if self.rotation == 90:
            return (self.width - y, x)
        if self.rotation == 180:
            return (self.width - x, self.height - y)
        # rotation == 270
        return (y, self.height - x)

    def normalize_keypoint(self, kp: Keypoint) -> Keypoint:
        x, y = self.to_normalized((kp.x, kp.y))
        return Keypoint(x=x, y=y, score=kp.score, name=kp.name)

    def restore_keypoint(self, kp: Keypoint) -> Keypoint:
        x, y = self.to_original((kp.x, kp.y))
        return Keypoint(x=x, y=y, score=kp.score, name=kp.name)

    def normalize_poses(self, poses: Iterable[Pose]) -> List[Pose]:
        """Map every keypoint of every pose into normalized space."""
        return [pose.with_keypoints(self.normalize_keypoint(kp) for kp in pose.keypoints) for pose in poses]

    def restore_poses(self, poses: Iterable[Pose]) -> List[Pose]:
        """Map poses back to the original frame orientation."""
        return [pose.with_keypoints(self.restore_keypoint(kp) for kp in pose.keypoints) for pose in poses]
