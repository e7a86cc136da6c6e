# rep_counter/client/replay.py
"""
Replay a recorded landmark session through the rep counter.

Recording format: JSON lines, one frame per line:

    {"t": 1033.4, "landmarks": [[0.41, 0.32, 0.98], null, ...]}

`t` is the detector timestamp in milliseconds and is required: the curl
debounce is measured on it, not on replay wall time. Landmarks may be
[x, y] / [x, y, visibility] rows or {"x", "y", "visibility"} objects.
"""

import argparse
import json
import logging
import math
from typing import Any, Iterable, Iterator, List, Optional, Tuple

import requests

from .. import settings
from ..pose_utils import Frame, frame_from_detector
from ..rep_logic import ExerciseCounter, ExerciseResult, ExerciseType, Phase

logger = logging.getLogger(__name__)

Record = Tuple[float, List[Any]]


def load_recording(path: str) -> Iterator[Record]:
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{lineno}: invalid JSON ({e})") from e
            if not isinstance(obj, dict) or "landmarks" not in obj:
                raise ValueError(f"{path}:{lineno}: expected an object with 'landmarks'")
            t_ms = obj.get("t")
            if isinstance(t_ms, bool) or not isinstance(t_ms, (int, float)) or not math.isfinite(t_ms):
                raise ValueError(f"{path}:{lineno}: expected a numeric frame time 't' in milliseconds")
            yield float(t_ms), obj["landmarks"] or []


def _frame_rows(frame: Frame) -> List[Optional[List[float]]]:
    rows: List[Optional[List[float]]] = []
    for lm in frame:
        if lm is None:
            rows.append(None)
        elif lm.visibility is None:
            rows.append([lm.x, lm.y])
        else:
            rows.append([lm.x, lm.y, lm.visibility])
    return rows


def replay_local(records: Iterable[Record], exercise: ExerciseType) -> ExerciseResult:
    counter = ExerciseCounter(exercise)
    result = ExerciseResult.initial()

    for t_ms, landmarks in records:
        before = result.count
        result = counter.update(frame_from_detector(landmarks), now=t_ms / 1000.0)
        if result.count > before:
            logger.info("=== REP %d === %s", result.count, result.feedback)

    return result


def replay_remote(
    records: Iterable[Record],
    exercise: ExerciseType,
    backend_url: str = settings.BACKEND_URL,
    timeout: float = settings.HTTP_TIMEOUT,
) -> ExerciseResult:
    base = backend_url.rstrip("/")
    resp = requests.post(f"{base}/sessions", json={"exercise": exercise.value}, timeout=timeout)
    resp.raise_for_status()
    session_id = resp.json()["session_id"]
    logger.info("Opened backend session %s", session_id)

    data = {"count": 0, "stage": None, "feedback": "", "progress": 0.0}
    try:
        for t_ms, landmarks in records:
            payload = {
                "landmarks": _frame_rows(frame_from_detector(landmarks)),
                "timestamp_ms": t_ms,
            }
            resp = requests.post(f"{base}/sessions/{session_id}/frames", json=payload, timeout=timeout)
            resp.raise_for_status()
            data = resp.json()
            if data.get("rep_completed"):
                logger.info("=== REP %d === %s", data["count"], data["feedback"])
    finally:
        try:
            requests.delete(f"{base}/sessions/{session_id}", timeout=timeout)
        except requests.RequestException as e:
            logger.warning("Could not close session %s: %s", session_id, e)

    return ExerciseResult(
        count=int(data["count"]),
        stage=Phase(data["stage"]) if data.get("stage") else None,
        feedback=data["feedback"],
        progress=float(data["progress"]),
    )


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description="Replay a recorded landmark session and count reps")
    parser.add_argument("recording", help="JSON-lines landmark recording")
    parser.add_argument("--exercise", required=True, choices=[e.value for e in ExerciseType])
    parser.add_argument("--remote", action="store_true",
                        help="Send frames to the backend instead of counting locally")
    parser.add_argument("--backend-url", default=settings.BACKEND_URL)
    parser.add_argument("--timeout", type=float, default=settings.HTTP_TIMEOUT)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_arguments(argv)
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    exercise = ExerciseType(args.exercise)
    records = load_recording(args.recording)
    if args.remote:
        result = replay_remote(records, exercise, args.backend_url, args.timeout)
    else:
        result = replay_local(records, exercise)

    print(f"Total reps ({exercise.value}): {result.count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
