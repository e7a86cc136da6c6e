# rep_counter/rep_logic.py

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union

import numpy as np

from .pose_utils import Frame, PoseLandmark, compute_angle, resolve_landmark

logger = logging.getLogger(__name__)


class ExerciseType(str, Enum):
    CURL = "curl"
    PUSHUP = "pushup"
    PULLUP = "pullup"


class Phase(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


@dataclass
class LimbState:
    stage: Optional[Phase] = None    # None until the first threshold crossing
    angle: float = 0.0


@dataclass(frozen=True)
class ExerciseResult:
    count: int
    stage: Optional[Phase]
    feedback: str
    progress: float

    @classmethod
    def initial(cls) -> "ExerciseResult":
        return cls(count=0, stage=None, feedback="", progress=0.0)


# ----------------- Visibility gate -----------------
VISIBILITY_THRESHOLD = 0.65
FRAME_MARGIN = 0.01              # usable area is [0.01, 0.99] on both axes
GATE_FEEDBACK = "Please step back to show your full body"

REQUIRED_LANDMARKS: Tuple[PoseLandmark, ...] = (
    PoseLandmark.LEFT_SHOULDER, PoseLandmark.RIGHT_SHOULDER,
    PoseLandmark.LEFT_ELBOW, PoseLandmark.RIGHT_ELBOW,
    PoseLandmark.LEFT_WRIST, PoseLandmark.RIGHT_WRIST,
    PoseLandmark.LEFT_HIP, PoseLandmark.RIGHT_HIP,
    PoseLandmark.LEFT_KNEE, PoseLandmark.RIGHT_KNEE,
)

ARM_JOINTS: Dict[str, Tuple[PoseLandmark, PoseLandmark, PoseLandmark]] = {
    "left": (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST),
    "right": (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST),
}


# ----------------- Per-exercise configuration -----------------
@dataclass(frozen=True)
class ExerciseProtocol:
    """
    limbs:
      - "left" / "right" : that arm's elbow angle, own phase
      - "global"         : average of both elbow angles, single phase
    down_when_above:
      True  -> limb enters DOWN when angle > down_angle, UP when angle < up_angle
      False -> limb enters DOWN when angle < down_angle, UP when angle > up_angle
    """
    limbs: Tuple[str, ...]
    down_angle: float
    up_angle: float
    down_when_above: bool
    debounce_s: float
    success_feedback: str

    def is_down(self, angle: float) -> bool:
        return angle > self.down_angle if self.down_when_above else angle < self.down_angle

    def is_up(self, angle: float) -> bool:
        return angle < self.up_angle if self.down_when_above else angle > self.up_angle

    def progress(self, angle: float) -> float:
        high = max(self.down_angle, self.up_angle)
        low = min(self.down_angle, self.up_angle)
        return float(np.clip((high - angle) / (high - low), 0.0, 1.0))


EXERCISE_CONFIG: Dict[ExerciseType, ExerciseProtocol] = {
    ExerciseType.CURL: ExerciseProtocol(
        limbs=("left", "right"),
        down_angle=165.0,        # full extension
        up_angle=45.0,           # full flexion
        down_when_above=True,
        debounce_s=1.0,          # shared by both arms
        success_feedback="Good curl!",
    ),
    ExerciseType.PUSHUP: ExerciseProtocol(
        limbs=("global",),
        down_angle=85.0,         # depth
        up_angle=165.0,          # lockout
        down_when_above=False,
        debounce_s=0.0,
        success_feedback="Good pushup!",
    ),
    ExerciseType.PULLUP: ExerciseProtocol(
        limbs=("left",),
        down_angle=160.0,        # dead hang
        up_angle=80.0,           # chin over bar
        down_when_above=True,
        debounce_s=0.0,
        success_feedback="Good pullup!",
    ),
}


def get_exercise_protocol(exercise: Union[ExerciseType, str]) -> ExerciseProtocol:
    return EXERCISE_CONFIG[ExerciseType(exercise)]


def visibility_problem(frame: Frame) -> Optional[str]:
    """Reason the frame fails the visibility gate, or None if every required point is usable."""
    hi = 1.0 - FRAME_MARGIN
    for idx in REQUIRED_LANDMARKS:
        lm = resolve_landmark(frame, idx)
        if lm is None:
            return f"{idx.name.lower()} missing"
        vis = lm.visibility if lm.visibility is not None else 0.0
        # written as "not >=" so a NaN score fails too
        if not vis >= VISIBILITY_THRESHOLD:
            return f"{idx.name.lower()} low confidence ({lm.visibility})"
        if not (FRAME_MARGIN <= lm.x <= hi and FRAME_MARGIN <= lm.y <= hi):
            return f"{idx.name.lower()} out of frame ({lm.x:.3f}, {lm.y:.3f})"
    return None


# -------------------------------------------------------------
# Counter
# -------------------------------------------------------------

class ExerciseCounter:
    """
    Per-frame rep counter for one exercise.

    A rep is counted when a limb goes DOWN -> UP. Reaching DOWN is
    unconditional; reaching UP requires the limb to be DOWN right before,
    so partial or reversed motions never count.

    Not thread-safe: callers delivering frames from several threads must
    serialize update() / reset() per instance.
    """

    def __init__(self, exercise: Union[ExerciseType, str]):
        self._exercise = ExerciseType(exercise)
        self._protocol = EXERCISE_CONFIG[self._exercise]
        self._count = 0
        self._last_feedback = ""
        self._last_rep_time: Optional[float] = None
        self._limbs: Dict[str, LimbState] = {}
        self.reset()

    @property
    def exercise(self) -> ExerciseType:
        return self._exercise

    @property
    def count(self) -> int:
        return self._count

    def reset(self) -> None:
        self._count = 0
        self._last_feedback = ""
        self._last_rep_time = None
        self._limbs = {limb_id: LimbState() for limb_id in self._protocol.limbs}

    def update(self, frame: Frame, now: Optional[float] = None) -> ExerciseResult:
        """
        Feed one landmark frame.

        `now` is the frame time in seconds on a monotonic clock; defaults to
        time.monotonic(). Only the curl debounce reads it.
        """
        problem = visibility_problem(frame)
        if problem is not None:
            logger.debug("%s: frame gated, %s", self._exercise.value, problem)
            return ExerciseResult(
                count=self._count,
                stage=None,
                feedback=GATE_FEEDBACK,
                progress=0.0,
            )

        if now is None:
            now = time.monotonic()

        p = self._protocol
        progress = 0.0
        rep_counted = False

        for limb_id, state in self._limbs.items():
            angle = self._limb_angle(frame, limb_id)
            state.angle = angle

            if p.is_down(angle):
                state.stage = Phase.DOWN
            elif p.is_up(angle) and state.stage == Phase.DOWN:
                state.stage = Phase.UP
                if not rep_counted and self._debounce_elapsed(now):
                    self._count += 1
                    self._last_rep_time = now
                    self._last_feedback = p.success_feedback
                    rep_counted = True
                    logger.debug(
                        "%s: rep %d (limb=%s, angle=%.1f)",
                        self._exercise.value, self._count, limb_id, angle,
                    )

            progress = max(progress, p.progress(angle))

        return ExerciseResult(
            count=self._count,
            stage=self._stage(),
            feedback=self._last_feedback,
            progress=progress,
        )

    # ---------- helpers ----------

    def _limb_angle(self, frame: Frame, limb_id: str) -> float:
        if limb_id == "global":
            return (self._arm_angle(frame, "left") + self._arm_angle(frame, "right")) / 2.0
        return self._arm_angle(frame, limb_id)

    @staticmethod
    def _arm_angle(frame: Frame, side: str) -> float:
        shoulder, elbow, wrist = (resolve_landmark(frame, idx) for idx in ARM_JOINTS[side])
        return compute_angle(shoulder, elbow, wrist)

    def _debounce_elapsed(self, now: float) -> bool:
        if self._protocol.debounce_s <= 0 or self._last_rep_time is None:
            return True
        return now - self._last_rep_time > self._protocol.debounce_s

    def _stage(self) -> Optional[Phase]:
        stages = [state.stage for state in self._limbs.values()]
        if Phase.UP in stages:
            return Phase.UP
        if Phase.DOWN in stages:
            return Phase.DOWN
        return None
