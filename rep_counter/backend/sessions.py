# rep_counter/backend/sessions.py

import logging
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from ..rep_logic import ExerciseCounter, ExerciseType
from ..settings import MAX_SESSIONS

logger = logging.getLogger(__name__)


@dataclass
class Session:
    session_id: str
    counter: ExerciseCounter
    # FastAPI runs sync endpoints in a thread pool; frames for one session
    # must not interleave inside ExerciseCounter.update().
    lock: threading.Lock = field(default_factory=threading.Lock)
    # True: detector timestamps, False: server monotonic clock, None: no frame yet.
    # Fixed by the first frame so the curl debounce never compares two clocks.
    timestamped: Optional[bool] = None


class SessionStore:
    """In-memory sessions, least recently used evicted past `max_sessions`."""

    def __init__(self, max_sessions: int = MAX_SESSIONS):
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, Session]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, exercise: ExerciseType) -> Session:
        session = Session(session_id=uuid.uuid4().hex, counter=ExerciseCounter(exercise))
        with self._lock:
            self._sessions[session.session_id] = session
            while len(self._sessions) > self.max_sessions:
                evicted_id, _ = self._sessions.popitem(last=False)
                logger.info("Evicted idle session %s", evicted_id)
        logger.info("Created session %s (%s)", session.session_id, session.counter.exercise.value)
        return session

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._sessions.move_to_end(session_id)
            return session

    def delete(self, session_id: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info("Closed session %s", session_id)
        return removed is not None
