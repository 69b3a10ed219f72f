"""
SpeechRecognizer: abstract interface for Whisper-compatible recognition.

Implementations: LocalWhisperRecognizer (faster-whisper).
All run heavy work in executor to avoid blocking the event loop.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import numpy as np


class RecognitionError(Exception):
    """Recognizer failed on one utterance. Isolated to that utterance."""


@dataclass
class RecognitionResult:
    """Result of one recognize call."""

    text: str
    language: str | None = None  # detected language code, lowercase, region-free

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


class SpeechRecognizer(ABC):
    """
    Abstract recognizer. Accepts float32 mono audio (normalized [-1, 1]) at 16kHz.
    recognize() is async; implementations may run sync work in executor.
    """

    @abstractmethod
    async def recognize(self, audio: "np.ndarray", language: str | None = None) -> RecognitionResult:
        """
        Transcribe one utterance.
        - language: hint (e.g. "ja"); None = auto-detect.
        Raises RecognitionError on engine failure. Must not block event loop.
        """
        ...

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """Expected sample rate (e.g. 16000)."""
        ...
