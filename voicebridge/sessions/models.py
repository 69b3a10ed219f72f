"""
Session vocabulary: modes, lifecycle states and control outcomes.

Lifecycle: Idle (not registered) -> ACTIVE -> FINALIZING -> CLOSED (Idle again).
Control outcomes (already active, no session) are values callers branch on, not
exceptions. Only an illegal lifecycle transition raises.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from voicebridge.sessions.session import Session


class SessionMode(str, Enum):
    CAPTURING = "capturing"  # record per-speaker audio, transcribe + summarize on stop
    TRANSLATING = "translating"  # live per-utterance recognize + translate


class SessionState(str, Enum):
    ACTIVE = "active"
    FINALIZING = "finalizing"
    CLOSED = "closed"


class ControlStatus(str, Enum):
    STARTED = "started"
    ALREADY_ACTIVE = "already_active"
    STOPPED = "stopped"
    NO_SESSION = "no_session"


class IllegalTransition(Exception):
    """Lifecycle transition not allowed from the session's current state."""

    def __init__(self, scope_id: str, current: SessionState, attempted: str) -> None:
        super().__init__(f"Session {scope_id}: cannot {attempted} while {current.value}")
        self.scope_id = scope_id
        self.current = current
        self.attempted = attempted


@dataclass
class StartResult:
    status: ControlStatus
    session: "Session | None" = None  # new session, or the existing one when already active

    @property
    def ok(self) -> bool:
        return self.status is ControlStatus.STARTED


@dataclass
class StopResult:
    status: ControlStatus
    session: "Session | None" = None  # caller must finalize it exactly once

    @property
    def ok(self) -> bool:
        return self.status is ControlStatus.STOPPED
