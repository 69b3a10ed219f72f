"""
SpeakerAttributor: maps ephemeral transport stream ids (SSRC-like) to speaker ids.

Last write wins; no expiry. Stream ids are not reused across sessions, so stale
entries are harmless for the lifetime of one session.
"""
from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class SpeakerAttributor:
    """Thread-safe stream id -> speaker id map. Called from transport callbacks."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._map: dict[int, str] = {}

    def attribute(self, stream_id: int, speaker_id: str) -> None:
        """Unconditional overwrite."""
        with self._lock:
            previous = self._map.get(stream_id)
            self._map[stream_id] = speaker_id
        if previous != speaker_id:
            logger.debug("Stream %s -> speaker %s (was %s)", stream_id, speaker_id, previous)

    def lookup(self, stream_id: int) -> str | None:
        with self._lock:
            return self._map.get(stream_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._map)
