"""
Rep counting from per-frame pose landmarks.

    counter = ExerciseCounter("curl")
    result = counter.update(frame_from_detector(results.pose_landmarks.landmark))
"""

from .pose_utils import (
    Frame,
    Landmark,
    PoseLandmark,
    compute_angle,
    frame_from_detector,
    resolve_landmark,
)
from .rep_logic import (
    EXERCISE_CONFIG,
    ExerciseCounter,
    ExerciseResult,
    ExerciseType,
    LimbState,
    Phase,
)

__all__ = [
    "EXERCISE_CONFIG",
    "ExerciseCounter",
    "ExerciseResult",
    "ExerciseType",
    "Frame",
    "Landmark",
    "LimbState",
    "Phase",
    "PoseLandmark",
    "compute_angle",
    "frame_from_detector",
    "resolve_landmark",
]
