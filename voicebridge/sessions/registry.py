"""
SessionRegistry: at most one session per scope, whatever its mode.

The lock covers the scope -> session map only. Buffers and attribution live
inside each Session with their own locks.
"""
from __future__ import annotations

import logging
import threading
import time

from voicebridge.audio.accumulator import Clock
from voicebridge.sessions.models import ControlStatus, SessionMode, StartResult, StopResult
from voicebridge.sessions.session import Session

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[str, Session] = {}

    def start(self, scope_id: str, origin_channel: str | None, mode: SessionMode) -> StartResult:
        """Register a new session. ALREADY_ACTIVE (existing session untouched) if one exists."""
        with self._lock:
            existing = self._sessions.get(scope_id)
            if existing is not None:
                return StartResult(ControlStatus.ALREADY_ACTIVE, existing)
            session = Session(scope_id, mode, origin_channel, clock=self._clock)
            self._sessions[scope_id] = session
        logger.info("Started %s session for scope %s", mode.value, scope_id)
        return StartResult(ControlStatus.STARTED, session)

    def stop(self, scope_id: str) -> StopResult:
        """Unregister and move the session to FINALIZING. NO_SESSION when none exists."""
        with self._lock:
            session = self._sessions.pop(scope_id, None)
        if session is None:
            return StopResult(ControlStatus.NO_SESSION)
        session.begin_finalizing()
        logger.info("Stopped %s session for scope %s", session.mode.value, scope_id)
        return StopResult(ControlStatus.STOPPED, session)

    def get(self, scope_id: str) -> Session | None:
        with self._lock:
            return self._sessions.get(scope_id)

    def is_active(self, scope_id: str) -> bool:
        with self._lock:
            return scope_id in self._sessions

    def active_mode(self, scope_id: str) -> SessionMode | None:
        with self._lock:
            session = self._sessions.get(scope_id)
            return session.mode if session is not None else None

    def scopes(self) -> list[str]:
        with self._lock:
            return list(self._sessions)
