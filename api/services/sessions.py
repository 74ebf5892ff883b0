"""
In-memory registry of detection pipelines, one per client session.

Current strategy:
- Pipelines live in process memory; a restart drops every session.
- The registry is capped via $REPCOACH_MAX_SESSIONS; the oldest session is evicted first.
"""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from collections import OrderedDict
from typing import Callable, Optional

from repcoach.io.normalization import FrameTransform
from repcoach.pipeline import PosePipeline, SessionSummary
from repcoach.repdetect.baseline import ExerciseType
from repcoach.signals.smoothing import DEFAULT_ALPHA

logger = logging.getLogger(__name__)

MAX_SESSIONS = int(os.getenv("REPCOACH_MAX_SESSIONS", "64"))
SERVER_DEFAULT_ALPHA = float(os.getenv("REPCOACH_DEFAULT_ALPHA", str(DEFAULT_ALPHA)))


class SessionNotFoundError(KeyError):
    """Raised when a session id is unknown or was evicted."""


class SessionRegistry:
    def __init__(self, max_sessions: int = MAX_SESSIONS, *, clock: Callable[[], float] = time.monotonic) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: "OrderedDict[str, PosePipeline]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(
        self,
        exercise: "ExerciseType | str",
        alpha: Optional[float] = None,
        transform: Optional[FrameTransform] = None,
    ) -> tuple[str, PosePipeline]:
        pipeline = PosePipeline(
            ExerciseType.parse(exercise),
            SERVER_DEFAULT_ALPHA if alpha is None else alpha,
            transform=transform,
            clock=self._clock,
        )
        session_id = uuid.uuid4().hex
        with self._lock:
            while len(self._sessions) >= self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Evicted session %s (limit %d)", evicted, self.max_sessions)
            self._sessions[session_id] = pipeline
        logger.info("Created session %s for %s", session_id, pipeline.exercise.value)
        return session_id, pipeline

    def get(self, session_id: str) -> PosePipeline:
        with self._lock:
            try:
                return self._sessions[session_id]
            except KeyError as exc:
                raise SessionNotFoundError(session_id) from exc

    def close(self, session_id: str) -> SessionSummary:
        with self._lock:
            try:
                pipeline = self._sessions.pop(session_id)
            except KeyError as exc:
                raise SessionNotFoundError(session_id) from exc
        summary = pipeline.summary()
        logger.info("Closed session %s: %d reps", session_id, summary.reps)
        return summary


registry = SessionRegistry()
