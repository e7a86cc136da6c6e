# rep_counter/backend/models.py
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

from ..rep_logic import ExerciseResult, ExerciseType, Phase

# [x, y] or [x, y, visibility], normalized coordinates
LandmarkRow = Annotated[List[float], Field(min_length=2, max_length=3)]


class SessionCreate(BaseModel):
    exercise: ExerciseType


class SessionInfo(BaseModel):
    session_id: str
    exercise: ExerciseType


class FrameIn(BaseModel):
    landmarks: List[Optional[LandmarkRow]]
    timestamp_ms: Optional[float] = None  # detector clock, monotonic per session


class ExerciseResultOut(BaseModel):
    count: int
    stage: Optional[Phase] = None
    feedback: str
    progress: float
    rep_completed: bool = False

    @classmethod
    def from_result(cls, result: ExerciseResult, rep_completed: bool = False) -> "ExerciseResultOut":
        return cls(
            count=result.count,
            stage=result.stage,
            feedback=result.feedback,
            progress=result.progress,
            rep_completed=rep_completed,
        )
