"""
SegmentationEngine: decides which speaker buffers hold a complete utterance.

A buffer is ready when BOTH hold:
- no new audio for longer than the silence threshold (the speaker paused);
- at least the minimum number of samples (shorter fragments are useless to ASR).

A buffer below the minimum never becomes ready from silence alone: it keeps growing
until more audio pushes it over the minimum, or the session ends. An optional hard
cap (max_samples > 0) forces a flush for continuous talkers.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from voicebridge.audio.accumulator import AudioAccumulator, SpeakerBuffer
from voicebridge.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class Utterance:
    """One contiguous audio segment from one speaker; created at flush, consumed once."""

    speaker_id: str
    samples: np.ndarray  # int16 @ capture rate
    language_hint: str | None = None
    scope_id: str | None = None
    generation: int = 0
    created_at: float = field(default_factory=time.time)

    @property
    def sample_count(self) -> int:
        return len(self.samples)


class SegmentationEngine:
    def __init__(
        self,
        silence_ms: int | None = None,
        min_samples: int | None = None,
        max_samples: int | None = None,
    ) -> None:
        settings = get_settings()
        self.silence_ms = silence_ms if silence_ms is not None else settings.SILENCE_THRESHOLD_MS
        self.min_samples = min_samples if min_samples is not None else settings.MIN_UTTERANCE_SAMPLES
        self.max_samples = max_samples if max_samples is not None else settings.MAX_UTTERANCE_SAMPLES

    def should_flush(self, sample_count: int, last_activity: float, now: float) -> bool:
        """Strictly more than silence_ms elapsed AND sample_count >= min_samples."""
        if sample_count == 0:
            return False
        elapsed_ms = (now - last_activity) * 1000.0
        if elapsed_ms <= self.silence_ms:
            return False
        return sample_count >= self.min_samples

    def over_capacity(self, sample_count: int) -> bool:
        return self.max_samples > 0 and sample_count >= self.max_samples

    def is_ready(self, buffer: SpeakerBuffer, now: float) -> bool:
        return self.should_flush(buffer.sample_count, buffer.last_activity, now) or self.over_capacity(
            buffer.sample_count
        )

    def sweep(
        self,
        accumulator: AudioAccumulator,
        language_hint: Callable[[str], str | None] | None = None,
        scope_id: str | None = None,
        generation: int = 0,
    ) -> list[Utterance]:
        """Flush every ready buffer and wrap each as an Utterance."""
        utterances: list[Utterance] = []
        for speaker_id, samples in accumulator.flush_where(self.is_ready):
            if self.over_capacity(len(samples)):
                logger.info("Forced flush for speaker %s at %d samples (cap)", speaker_id, len(samples))
            hint = language_hint(speaker_id) if language_hint else None
            utterances.append(
                Utterance(
                    speaker_id=speaker_id,
                    samples=samples,
                    language_hint=hint,
                    scope_id=scope_id,
                    generation=generation,
                )
            )
        return utterances
