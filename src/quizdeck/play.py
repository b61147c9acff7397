"""In-memory registry of running play sessions."""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from collections import OrderedDict
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from quizdeck.quiz_models import QuizInput
from quizdeck.session import QuizSession

logger = logging.getLogger(__name__)

# Sessions untouched for this long are dropped (override with PLAY_SESSION_TTL)
PLAY_SESSION_TTL = float(os.environ.get("PLAY_SESSION_TTL", 60 * 60))
PLAY_SESSION_MAX = int(os.environ.get("PLAY_SESSION_MAX", 1000))


class PlaySessionNotFoundError(KeyError):
    pass


class _Entry:
    __slots__ = ("session", "lock", "touched")

    def __init__(self, session: QuizSession, touched: float) -> None:
        self.session = session
        self.lock = threading.Lock()
        self.touched = touched


class PlaySessions:
    """Holds one engine per player; each is driven under its own lock.

    Players who leave without ending their session are evicted once idle
    for ``ttl`` seconds, and the least recently used session is dropped
    when more than ``max_sessions`` are live.
    """

    def __init__(
        self,
        ttl: float = PLAY_SESSION_TTL,
        max_sessions: int = PLAY_SESSION_MAX,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    def start(self, quiz: QuizInput) -> tuple[str, QuizSession]:
        session = QuizSession(quiz)
        session_id = uuid.uuid4().hex
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            self._sessions[session_id] = _Entry(session, now)
            while len(self._sessions) > self.max_sessions:
                dropped, _ = self._sessions.popitem(last=False)
                logger.info("Evicted least recently used session %s", dropped)
        logger.info("Started session %s for quiz '%s'", session_id, quiz.slug)
        return session_id, session

    @contextmanager
    def locked(self, session_id: str) -> Iterator[QuizSession]:
        """Serialize operations on one session against its current state."""
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            entry = self._sessions.get(session_id)
            if entry is not None:
                entry.touched = now
                self._sessions.move_to_end(session_id)
        if entry is None:
            raise PlaySessionNotFoundError(session_id)
        with entry.lock:
            yield entry.session

    def end(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def _evict_expired(self, now: float) -> None:
        # Entries are kept in last-touched order, so expired ones sit at the front.
        while self._sessions:
            session_id, entry = next(iter(self._sessions.items()))
            if now - entry.touched < self.ttl:
                break
            del self._sessions[session_id]
            logger.info("Evicted idle session %s", session_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
