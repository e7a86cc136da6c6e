import math

import pytest
from fastapi.testclient import TestClient

from rep_counter.backend.main import app, get_store
from rep_counter.backend.sessions import SessionStore
from rep_counter.pose_utils import NUM_LANDMARKS, Landmark, PoseLandmark

FOREARM = 0.1


def _arm(elbow_x, elbow_y, angle_deg, vis):
    # shoulder straight above the elbow; wrist rotated angle_deg away from it
    theta = math.radians(angle_deg)
    shoulder = Landmark(elbow_x, elbow_y - FOREARM, vis)
    elbow = Landmark(elbow_x, elbow_y, vis)
    wrist = Landmark(elbow_x + FOREARM * math.sin(theta), elbow_y - FOREARM * math.cos(theta), vis)
    return shoulder, elbow, wrist


def build_frame(left=170.0, right=170.0, visibility=0.99, overrides=None):
    """33-point frame with both elbows at the requested angles, everything else mid-frame."""
    points = [Landmark(0.5, 0.5, visibility) for _ in range(NUM_LANDMARKS)]

    ls, le, lw = _arm(0.35, 0.4, left, visibility)
    rs, re, rw = _arm(0.65, 0.4, right, visibility)
    points[PoseLandmark.LEFT_SHOULDER] = ls
    points[PoseLandmark.LEFT_ELBOW] = le
    points[PoseLandmark.LEFT_WRIST] = lw
    points[PoseLandmark.RIGHT_SHOULDER] = rs
    points[PoseLandmark.RIGHT_ELBOW] = re
    points[PoseLandmark.RIGHT_WRIST] = rw
    points[PoseLandmark.LEFT_HIP] = Landmark(0.4, 0.65, visibility)
    points[PoseLandmark.RIGHT_HIP] = Landmark(0.6, 0.65, visibility)
    points[PoseLandmark.LEFT_KNEE] = Landmark(0.4, 0.85, visibility)
    points[PoseLandmark.RIGHT_KNEE] = Landmark(0.6, 0.85, visibility)

    for idx, lm in (overrides or {}).items():
        points[idx] = lm
    return tuple(points)


def frame_rows(frame):
    return [None if lm is None else [lm.x, lm.y, lm.visibility] for lm in frame]


@pytest.fixture
def make_frame():
    return build_frame


@pytest.fixture
def store():
    return SessionStore(max_sessions=4)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
