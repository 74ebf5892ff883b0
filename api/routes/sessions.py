from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from api.schemas import (
    ExerciseUpdateRequest,
    FormModel,
    FrameRequest,
    FrameResponse,
    PoseModel,
    RepStateModel,
    SessionCreateRequest,
    SessionResponse,
    SummaryResponse,
)
from api.services.sessions import SessionNotFoundError, SessionRegistry, registry
from repcoach.io.normalization import FrameTransform
from repcoach.pipeline import PosePipeline
from repcoach.repdetect.baseline import RepState, UnknownExerciseError

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_registry() -> SessionRegistry:
    return registry


def _rep_state(state: RepState) -> RepStateModel:
    return RepStateModel(**state.to_dict())


def _session_response(session_id: str, pipeline: PosePipeline) -> SessionResponse:
    return SessionResponse(
        session_id=session_id,
        exercise=pipeline.exercise.value,
        alpha=pipeline.stabilizer.alpha,
        rep_state=_rep_state(pipeline.counter.state()),
    )


def _lookup(sessions: SessionRegistry, session_id: str) -> PosePipeline:
    try:
        return sessions.get(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}") from exc


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(
    payload: SessionCreateRequest,
    sessions: SessionRegistry = Depends(get_registry),
) -> SessionResponse:
    transform = None
    if payload.transform is not None:
        transform = FrameTransform(**payload.transform.model_dump())
    try:
        session_id, pipeline = sessions.create(payload.exercise, payload.alpha, transform)
    except UnknownExerciseError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _session_response(session_id, pipeline)


@router.post("/{session_id}/frames", response_model=FrameResponse)
async def process_frame(
    session_id: str,
    payload: FrameRequest,
    sessions: SessionRegistry = Depends(get_registry),
) -> FrameResponse:
    """
    Feed one frame of estimator output. An empty `poses` list is a valid frame with no subject.
    """
    pipeline = _lookup(sessions, session_id)
    result = pipeline.process([p.to_pose() for p in payload.poses])
    return FrameResponse(
        poses=[PoseModel.from_pose(p) for p in result.poses],
        rep_state=_rep_state(result.rep_state),
        form=FormModel(**result.form.to_dict()) if result.form is not None else None,
        seconds_without_subject=result.seconds_without_subject,
        subject_lost=result.subject_lost,
    )


@router.post("/{session_id}/reset", response_model=SessionResponse)
async def reset_session(
    session_id: str,
    sessions: SessionRegistry = Depends(get_registry),
) -> SessionResponse:
    pipeline = _lookup(sessions, session_id)
    pipeline.reset()
    return _session_response(session_id, pipeline)


@router.put("/{session_id}/exercise", response_model=SessionResponse)
async def change_exercise(
    session_id: str,
    payload: ExerciseUpdateRequest,
    sessions: SessionRegistry = Depends(get_registry),
) -> SessionResponse:
    pipeline = _lookup(sessions, session_id)
    try:
        pipeline.set_exercise(payload.exercise)
    except UnknownExerciseError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _session_response(session_id, pipeline)


@router.delete("/{session_id}", response_model=SummaryResponse)
async def close_session(
    session_id: str,
    sessions: SessionRegistry = Depends(get_registry),
) -> SummaryResponse:
    try:
        summary = sessions.close(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}") from exc
    return SummaryResponse(session_id=session_id, **summary.to_dict())
