"""
Session: one capture or translation session for one scope (guild-like).

Owns its SpeakerAttributor and AudioAccumulator; each has its own lock, so frame
ingestion for this session never contends with registry calls for other scopes.
"""
from __future__ import annotations

import itertools
import logging
import threading
import time
from datetime import datetime

from voicebridge.audio.accumulator import AudioAccumulator, Clock
from voicebridge.audio.attributor import SpeakerAttributor
from voicebridge.sessions.models import IllegalTransition, SessionMode, SessionState

logger = logging.getLogger(__name__)

# Monotonic across the process; lets presenters tell results of a stopped session apart
_generation_counter = itertools.count(1)


class Session:
    def __init__(
        self,
        scope_id: str,
        mode: SessionMode,
        origin_channel: str | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self.scope_id = scope_id
        self.mode = mode
        self.origin_channel = origin_channel
        self.start_time = datetime.now()
        self.generation = next(_generation_counter)
        self.attributor = SpeakerAttributor()
        self.accumulator = AudioAccumulator(clock=clock)
        self._state = SessionState.ACTIVE
        self._state_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Session(scope={self.scope_id!r}, mode={self.mode.value}, state={self._state.value})"

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    def begin_finalizing(self) -> None:
        """ACTIVE -> FINALIZING. Called by the registry when the session is stopped."""
        with self._state_lock:
            if self._state is not SessionState.ACTIVE:
                raise IllegalTransition(self.scope_id, self._state, "stop")
            self._state = SessionState.FINALIZING

    def finalize(self, output_dir: str, errors: list[str] | None = None) -> list[str]:
        """
        FINALIZING -> CLOSED. Capturing: write one artifact per speaker and return the
        paths; per-speaker write failures go to errors. Translating: drop pending
        buffers, return []. Blocking file I/O.
        """
        with self._state_lock:
            if self._state is not SessionState.FINALIZING:
                raise IllegalTransition(self.scope_id, self._state, "finalize")
            try:
                return self.accumulator.finalize_all(
                    self.mode, self.scope_id, self.start_time, output_dir, errors
                )
            finally:
                self._state = SessionState.CLOSED
