# rep_counter/pose_utils.py

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

import numpy as np


class PoseLandmark(IntEnum):
    """BlazePose 33-point landmark indices (same order as MediaPipe Pose)."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


NUM_LANDMARKS = len(PoseLandmark)


@dataclass(frozen=True)
class Landmark:
    x: float
    y: float
    visibility: Optional[float] = None


# A frame is indexed by PoseLandmark; a None slot means the detector missed it.
Frame = Union[Sequence[Optional[Landmark]], Mapping[int, Optional[Landmark]]]


def compute_angle(a, b, c) -> float:
    """
    Returns the angle (in degrees) at point b formed by points a-b-c.

    Points are anything with .x / .y attributes. Uses the difference of the
    two ray arctangents, so coincident or collinear points never divide by zero.
    """
    radians = np.arctan2(c.y - b.y, c.x - b.x) - np.arctan2(a.y - b.y, a.x - b.x)
    angle = abs(float(np.degrees(radians)))

    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def resolve_landmark(frame: Frame, index: int) -> Optional[Landmark]:
    """Landmark at `index`, or None when the frame has no point there."""
    if frame is None:
        return None
    try:
        return frame[int(index)]
    except (IndexError, KeyError):
        return None


# -------------------------------------------------------------
# Detector output -> Frame
# -------------------------------------------------------------

def _to_landmark(idx: int, raw: Any) -> Optional[Landmark]:
    if raw is None:
        return None
    if isinstance(raw, Landmark):
        return raw

    if isinstance(raw, Mapping):
        x, y, vis = raw.get("x"), raw.get("y"), raw.get("visibility")
    elif hasattr(raw, "x") and hasattr(raw, "y"):
        # MediaPipe NormalizedLandmark and friends
        x, y, vis = raw.x, raw.y, getattr(raw, "visibility", None)
    elif isinstance(raw, (list, tuple)) and len(raw) in (2, 3):
        x, y = raw[0], raw[1]
        vis = raw[2] if len(raw) == 3 else None
    else:
        raise ValueError(f"Landmark {idx}: unsupported value {raw!r}")

    if x is None or y is None:
        raise ValueError(f"Landmark {idx}: missing x/y coordinate")
    try:
        return Landmark(
            x=float(x),
            y=float(y),
            visibility=None if vis is None else float(vis),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Landmark {idx}: {e}") from e


def frame_from_detector(landmarks: Optional[Sequence[Any]]) -> Tuple[Optional[Landmark], ...]:
    """
    Input: the landmark list a pose detector produced for one image, e.g.
      results.pose_landmarks.landmark (MediaPipe), a list of dicts,
      or rows of [x, y] / [x, y, visibility]. None entries stay absent.
    Output: immutable Frame (tuple of Landmark | None).
    """
    if not landmarks:
        return ()
    return tuple(_to_landmark(i, raw) for i, raw in enumerate(landmarks))
