# rep_counter/backend/main.py
import logging

from fastapi import Depends, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware

from ..pose_utils import frame_from_detector
from ..rep_logic import ExerciseResult
from .models import ExerciseResultOut, FrameIn, SessionCreate, SessionInfo
from .sessions import Session, SessionStore

logger = logging.getLogger(__name__)

app = FastAPI(title="Rep Counter Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_store = SessionStore()


def get_store() -> SessionStore:
    return _store


def get_session(session_id: str, store: SessionStore = Depends(get_store)) -> Session:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
    return session


@app.get("/")
def health_check(store: SessionStore = Depends(get_store)):
    return {"status": "ok", "sessions": len(store)}


@app.post("/sessions", response_model=SessionInfo, status_code=201)
def create_session(body: SessionCreate, store: SessionStore = Depends(get_store)):
    session = store.create(body.exercise)
    return SessionInfo(session_id=session.session_id, exercise=session.counter.exercise)


@app.post("/sessions/{session_id}/frames", response_model=ExerciseResultOut)
def push_frame(body: FrameIn, session: Session = Depends(get_session)):
    frame = frame_from_detector(body.landmarks)
    now = body.timestamp_ms / 1000.0 if body.timestamp_ms is not None else None

    with session.lock:
        timestamped = body.timestamp_ms is not None
        if session.timestamped is None:
            session.timestamped = timestamped
        elif session.timestamped != timestamped:
            raise HTTPException(
                status_code=409,
                detail="Session frames must all carry timestamp_ms or all omit it",
            )
        before = session.counter.count
        result = session.counter.update(frame, now=now)

    rep_completed = result.count > before
    if rep_completed:
        logger.info("Session %s: rep %d", session.session_id, result.count)
    return ExerciseResultOut.from_result(result, rep_completed=rep_completed)


@app.post("/sessions/{session_id}/reset", response_model=ExerciseResultOut)
def reset_session(session: Session = Depends(get_session)):
    with session.lock:
        session.counter.reset()
        session.timestamped = None
    return ExerciseResultOut.from_result(ExerciseResult.initial())


@app.delete("/sessions/{session_id}", status_code=204)
def close_session(session_id: str, store: SessionStore = Depends(get_store)):
    if not store.delete(session_id):
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
    return Response(status_code=204)
