from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from repcoach.repdetect.baseline import ExerciseType
from repcoach.vision.keypoints import Keypoint, Pose


class KeypointModel(BaseModel):
    x: float
    y: float
    score: Optional[float] = Field(None, ge=0.0, le=1.0, description="Detector confidence; missing means 0.")
    name: Optional[str] = Field(None, description="Joint name, e.g. left_knee.")

    def to_keypoint(self) -> Keypoint:
        return Keypoint(x=self.x, y=self.y, score=self.score, name=self.name)

    @classmethod
    def from_keypoint(cls, kp: Keypoint) -> "KeypointModel":
        return cls(x=kp.x, y=kp.y, score=kp.score, name=kp.name)


class PoseModel(BaseModel):
    keypoints: List[KeypointModel] = Field(default_factory=list)
    score: Optional[float] = None

    def to_pose(self) -> Pose:
        return Pose(keypoints=tuple(kp.to_keypoint() for kp in self.keypoints), score=self.score)

    @classmethod
    def from_pose(cls, pose: Pose) -> "PoseModel":
        return cls(keypoints=[KeypointModel.from_keypoint(kp) for kp in pose.keypoints], score=pose.score)


class TransformModel(BaseModel):
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
    rotation: int = 0
    mirror: bool = False

    @field_validator("rotation")
    @classmethod
    def rotation_supported(cls, v: int) -> int:
        if v not in (0, 90, 180, 270):
            raise ValueError("rotation must be one of 0, 90, 180, 270")
        return v


class SessionCreateRequest(BaseModel):
    """
    Session options. Alpha is checked for sanity here; the stabilizer still clamps it to 0.1..1.0.
    """
    exercise: str = Field(ExerciseType.SQUAT.value, description="squat, pushup or bicep_curl.")
    alpha: Optional[float] = Field(None, gt=0.0, le=1.0, description="Smoothing factor; defaults to server value.")
    transform: Optional[TransformModel] = Field(None, description="Rotation/mirroring of incoming keypoints.")


class ExerciseUpdateRequest(BaseModel):
    exercise: str


class FrameRequest(BaseModel):
    poses: List[PoseModel] = Field(default_factory=list, description="Estimator output for one frame.")


class RepStateModel(BaseModel):
    count: int
    angle: int
    state: str
    last_rep_time: float


class FormModel(BaseModel):
    score: int
    feedback: List[str]


class SessionResponse(BaseModel):
    session_id: str
    exercise: str
    alpha: float
    rep_state: RepStateModel


class FrameResponse(BaseModel):
    poses: List[PoseModel]
    rep_state: RepStateModel
    form: Optional[FormModel] = None
    seconds_without_subject: float = 0.0
    subject_lost: bool = False


class SummaryResponse(BaseModel):
    session_id: str
    exercise: str
    reps: int
    duration: float
    frames: int
    form_score: Optional[int] = None
