"""
AudioAccumulator: per-speaker PCM buffers for one session.

- append() is the hot path (transport callback): O(1) amortized, chunk list; each frame is
  copied once so the caller may reuse its array.
- flush() takes and clears a buffer in one critical section, so an append racing a
  flush lands either in the flushed window or in the next one, never both or neither.
- A buffer is created lazily on the first frame for a speaker and destroyed on flush.
- One lock per accumulator (per session): sessions never contend with each other.
"""
from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Iterable

import numpy as np

from voicebridge.audio.recorder import write_artifacts
from voicebridge.sessions.models import SessionMode

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

_EMPTY = np.zeros(0, dtype=np.int16)


def _as_int16(samples: Iterable[int] | np.ndarray) -> np.ndarray:
    # Always a private copy: transports may reuse their decode buffer
    return np.array(samples, dtype=np.int16, copy=True)


class SpeakerBuffer:
    """Ordered int16 samples for one speaker. Not thread-safe; guarded by AudioAccumulator."""

    def __init__(self, owner: str, now: float) -> None:
        self.owner = owner
        self.last_activity = now
        self.speaking = False
        self._chunks: list[np.ndarray] = []
        self._count = 0

    @property
    def sample_count(self) -> int:
        return self._count

    def add(self, samples: np.ndarray, now: float) -> None:
        if len(samples):
            self._chunks.append(samples)
            self._count += len(samples)
        self.last_activity = now
        self.speaking = True

    def take(self) -> np.ndarray:
        if not self._chunks:
            out = _EMPTY
        elif len(self._chunks) == 1:
            out = self._chunks[0]
        else:
            out = np.concatenate(self._chunks)
        self._chunks = []
        self._count = 0
        self.speaking = False
        return out


class AudioAccumulator:
    """Speaker id -> SpeakerBuffer. All mutation under one short-lived lock."""

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._buffers: dict[str, SpeakerBuffer] = {}

    def append(self, speaker_id: str, samples: Iterable[int] | np.ndarray) -> None:
        """Append samples; updates last activity and marks the speaker as speaking."""
        chunk = _as_int16(samples)
        now = self._clock()
        with self._lock:
            buf = self._buffers.get(speaker_id)
            if buf is None:
                buf = self._buffers[speaker_id] = SpeakerBuffer(speaker_id, now)
            buf.add(chunk, now)

    def mark_silence(self, speaker_id: str) -> None:
        """speaking=False; samples and last activity are untouched."""
        with self._lock:
            buf = self._buffers.get(speaker_id)
            if buf is not None:
                buf.speaking = False

    def flush(self, speaker_id: str) -> np.ndarray:
        """Take and clear the speaker's samples. Empty array when no buffer exists."""
        with self._lock:
            buf = self._buffers.pop(speaker_id, None)
            if buf is None:
                return _EMPTY
            return buf.take()

    def flush_where(self, predicate: Callable[[SpeakerBuffer, float], bool]) -> list[tuple[str, np.ndarray]]:
        """
        Evaluate predicate(buffer, now) and flush every match in the same critical
        section, so readiness cannot go stale between check and take.
        """
        ready: list[tuple[str, np.ndarray]] = []
        now = self._clock()
        with self._lock:
            for speaker_id in [s for s, b in self._buffers.items() if predicate(b, now)]:
                ready.append((speaker_id, self._buffers.pop(speaker_id).take()))
        return ready

    def drain(self) -> dict[str, np.ndarray]:
        """Take every non-empty buffer and clear the accumulator."""
        with self._lock:
            buffers, self._buffers = self._buffers, {}
        out: dict[str, np.ndarray] = {}
        for speaker_id, buf in buffers.items():
            samples = buf.take()
            if len(samples):
                out[speaker_id] = samples
        return out

    def finalize_all(
        self,
        mode: SessionMode,
        scope_id: str,
        start_time: datetime,
        output_dir: str,
        errors: list[str] | None = None,
    ) -> list[str]:
        """
        CAPTURING: one WAV artifact per non-empty buffer, paths returned; write
        failures go to errors. TRANSLATING: buffers drained and dropped, nothing written.
        Blocking file I/O; run in executor from async code.
        """
        buffers = self.drain()
        if mode is SessionMode.TRANSLATING:
            if buffers:
                logger.debug("Discarded %d pending buffers for scope %s", len(buffers), scope_id)
            return []
        return write_artifacts(buffers, scope_id, start_time, output_dir, errors)

    def sample_count(self, speaker_id: str) -> int:
        with self._lock:
            buf = self._buffers.get(speaker_id)
            return buf.sample_count if buf is not None else 0

    def is_speaking(self, speaker_id: str) -> bool:
        with self._lock:
            buf = self._buffers.get(speaker_id)
            return buf.speaking if buf is not None else False

    def speakers(self) -> list[str]:
        with self._lock:
            return list(self._buffers)
