"""In-memory store of reader sessions driven over HTTP, with TTL cleanup.

WHY: An HTTP client reads a text through many requests (tick, pause, jump,
retune), so the ReaderSession has to outlive a single request. An in-memory
store is enough: sessions are cheap to rebuild from the text and nothing
needs to survive a restart.

HOW: Three components work together:
  ClientTimer  — TimerService that arms nothing; it only records the delay
                 so the response can tell the client when to tick
  StoredSession — dataclass holding a ReaderSession, its last FrameView,
                 and timestamps
  SessionStore — thread-safe dict-based store with create/get/list/delete,
                 per-session command serialization, and idle TTL cleanup

RULES:
- All store mutations are protected by threading.Lock
- Commands on one session run under that session's own lock, so the
  ReaderSession still sees one event at a time
- Sessions expire after ttl_seconds without a request
- Session IDs are UUID4 hex strings generated at creation time
- Default TTL is 1 hour (3600 seconds)
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from speedr.config import ReaderConfig
from speedr.core.ir import FrameView
from speedr.core.session import ReaderSession

logger = logging.getLogger(__name__)

# Idle time after which a session is dropped (seconds)
DEFAULT_TTL_SECONDS = 3600

T = TypeVar("T")


class _ClientTimerHandle:
    def __init__(self, timer: "ClientTimer") -> None:
        self._timer = timer

    def cancel(self) -> None:
        if self._timer.pending is self:
            self._timer.pending = None
            self._timer.delay_ms = None


class ClientTimer:
    """Timer service for sessions whose clock lives in the client.

    schedule_once() does not start anything. The session's epoch and
    next_delay_ms are returned to the client, which sends a tick command
    with that epoch once the delay has passed. ReaderSession.timer_fired()
    drops ticks whose epoch is stale.
    """

    def __init__(self) -> None:
        self.pending: Optional[_ClientTimerHandle] = None
        self.delay_ms: Optional[float] = None

    def schedule_once(self, delay_ms: float, callback: Callable[[], None]) -> _ClientTimerHandle:
        handle = _ClientTimerHandle(self)
        self.pending = handle
        self.delay_ms = delay_ms
        return handle


class _LastView:
    """Frame sink that keeps only the most recent FrameView."""

    def __init__(self) -> None:
        self.view: Optional[FrameView] = None

    def __call__(self, view: FrameView) -> None:
        self.view = view


@dataclass
class StoredSession:
    """A ReaderSession plus the bookkeeping the API needs.

    RULES:
    - id: UUID4 hex string, unique and immutable after creation
    - view: FrameView from the most recent event
    - created_at / updated_at: epoch timestamps; updated_at drives expiry
    """

    id: str
    session: ReaderSession
    sink: _LastView
    timer: ClientTimer
    created_at: float
    updated_at: float
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def view(self) -> FrameView:
        if self.sink.view is None:
            return self.session.view()
        return self.sink.view


class SessionStore:
    """Thread-safe in-memory store for reader sessions.

    WHY: Concurrent requests may target the same or different sessions.
    A central store with locking keeps the dict consistent and makes sure a
    single ReaderSession never handles two commands at once.

    HOW: Sessions are stored in a plain dict keyed by ID under self._lock.
    apply() runs a callable against one session while holding that
    session's lock and refreshes its idle timestamp.

    RULES:
    - create_session() builds and starts the session before it becomes visible
    - get_session() returns None for missing IDs (no exceptions)
    - apply() returns None for missing IDs, otherwise the callable's result
    - cleanup_expired() removes sessions idle for longer than the TTL
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_sessions: int = 100,
    ) -> None:
        self._sessions: Dict[str, StoredSession] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions

    def create_session(
        self,
        tokens: Sequence[str],
        config: ReaderConfig,
        start_token: int = 0,
    ) -> StoredSession:
        """Create and start a session over ``tokens``.

        Raises:
            NoContentError: If tokens is empty.
            ValueError: If the store already holds max_sessions sessions.
        """
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise ValueError(
                    "Maximum number of sessions ({}) reached".format(self.max_sessions)
                )

        sink = _LastView()
        timer = ClientTimer()
        session = ReaderSession(tokens, config, timer, sink, start_token=start_token)
        session.start()

        now = time.time()
        stored = StoredSession(
            id=uuid.uuid4().hex,
            session=session,
            sink=sink,
            timer=timer,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._sessions[stored.id] = stored

        logger.info("Created session %s (%d tokens, %d frames)",
                    stored.id, len(session.tokens), len(session.index))
        return stored

    def get_session(self, session_id: str) -> Optional[StoredSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self) -> List[StoredSession]:
        """Return all sessions, oldest first."""
        with self._lock:
            return sorted(self._sessions.values(), key=lambda s: s.created_at)

    def apply(
        self,
        session_id: str,
        command: Callable[[ReaderSession], T],
    ) -> Optional[T]:
        """Run ``command`` on a session under its lock.

        Exceptions raised by the command propagate to the caller.
        """
        stored = self.get_session(session_id)
        if stored is None:
            return None
        with stored.lock:
            result = command(stored.session)
            stored.updated_at = time.time()
        return result

    def delete_session(self, session_id: str) -> bool:
        """Stop and remove a session. Returns False if it did not exist."""
        with self._lock:
            stored = self._sessions.pop(session_id, None)

        if stored is None:
            return False

        with stored.lock:
            stored.session.stop()
        logger.info("Deleted session %s", session_id)
        return True

    def clear(self) -> None:
        """Remove every session."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for stored in sessions:
            with stored.lock:
                stored.session.stop()

    def cleanup_expired(self) -> int:
        """Remove sessions that have been idle for longer than the TTL.

        Returns:
            The number of removed sessions.
        """
        now = time.time()
        expired: List[StoredSession] = []

        with self._lock:
            for session_id, stored in list(self._sessions.items()):
                if now - stored.updated_at > self._ttl_seconds:
                    expired.append(self._sessions.pop(session_id))

        for stored in expired:
            with stored.lock:
                stored.session.stop()
            logger.info("Expired session %s (idle %.0fs)", stored.id, now - stored.updated_at)

        return len(expired)
