"""
Session Service

Process-local registry of live CaseSessions for the HTTP layer.  Holds
the case repository, the shared ranking engine, the attempt store and
the clock every session ticks from.

Sessions nobody has looked up for SESSION_IDLE_SECONDS clock ticks are
closed and dropped, so abandoned tabs do not keep ticking forever.

In a multi-worker deployment the registry and attempt store would move
to shared storage; a single process is enough for teaching use.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from aiie import config
from aiie.core.cases import CaseRecord, CaseRepository, load_library
from aiie.core.evaluation import SessionMode
from aiie.core.gamification import calculate_streak
from aiie.core.ranking import AppropriatenessEngine
from aiie.core.session import (
    AttemptRecord,
    CaseSession,
    Clock,
    InMemoryAttemptStore,
    ManualClock,
)

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Unknown or already-deleted session id."""


class SessionService:
    """Creates, looks up and tears down learner sessions."""

    def __init__(
        self,
        repository: Optional[CaseRepository] = None,
        engine: Optional[AppropriatenessEngine] = None,
        clock: Optional[Clock] = None,
        attempt_store: Optional[InMemoryAttemptStore] = None,
        idle_timeout_seconds: Optional[int] = None,
    ):
        self.repository = repository or load_library()
        self.engine = engine or AppropriatenessEngine()
        self.clock = clock or ManualClock()
        self.attempt_store = attempt_store or InMemoryAttemptStore()
        self.idle_timeout_seconds = (
            config.SESSION_IDLE_SECONDS if idle_timeout_seconds is None else idle_timeout_seconds
        )
        self._sessions: Dict[str, CaseSession] = {}
        self._idle: Dict[str, int] = {}
        self._sweeper = self.clock.subscribe(self._on_tick)

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    def get_case(self, case_id: str) -> CaseRecord:
        return self.repository.get_case(case_id)

    def streak_for(self, user_id: str) -> int:
        today = datetime.now(timezone.utc).date()
        return calculate_streak(self.attempt_store.activity_dates(user_id), today=today)

    def create_session(
        self,
        case_id: str,
        user_id: str,
        mode: SessionMode = SessionMode.LEARNING,
    ) -> CaseSession:
        """
        Open a case for a learner and start the attempt.

        Raises:
            CaseNotFoundError: unknown case id
        """
        mode = SessionMode(mode)
        case = self.repository.get_case(case_id)
        session = CaseSession(
            case,
            user_id,
            mode=mode,
            clock=self.clock,
            engine=self.engine,
            attempt_sink=self.attempt_store,
            streak_days=self.streak_for(user_id),
        )
        session.start()
        self._sessions[session.session_id] = session
        self._idle[session.session_id] = 0
        logger.info(f"SessionService: opened {session.session_id} ({case_id}, {mode.value})")
        return session

    def get_session(self, session_id: str) -> CaseSession:
        try:
            session = self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None
        self._idle[session_id] = 0
        return session

    def close_session(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        self._idle.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.close()

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
        self._idle.clear()

    def _on_tick(self) -> None:
        if self.idle_timeout_seconds <= 0:
            return
        expired = []
        for session_id in self._idle:
            self._idle[session_id] += 1
            if self._idle[session_id] >= self.idle_timeout_seconds:
                expired.append(session_id)
        for session_id in expired:
            logger.info(f"SessionService: evicting idle session {session_id}")
            self.close_session(session_id)

    def attempts_for(self, user_id: str) -> List[AttemptRecord]:
        return self.attempt_store.for_user(user_id)
