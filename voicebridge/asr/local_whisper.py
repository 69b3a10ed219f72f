"""
LocalWhisperRecognizer: Whisper-compatible recognition using faster-whisper.

- Model loaded ONCE at startup (singleton, injected at construction).
- Greedy decode (beam size from settings), no previous-text conditioning.
- Audio: float32 mono [-1, 1] @ 16kHz; conversion happens in the pipeline.
- Runs in executor so event loop stays responsive.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import numpy as np

from voicebridge.asr.base import RecognitionError, RecognitionResult, SpeechRecognizer
from voicebridge.audio.dsp import detect_language_local
from voicebridge.config import get_settings

logger = logging.getLogger(__name__)

# Type for shared WhisperModel (loaded at startup)
WhisperModelT = Any


class LocalWhisperRecognizer(SpeechRecognizer):
    """
    Local Whisper via faster-whisper. Uses shared model (singleton).
    recognize() is async; heavy work runs in executor.
    """

    def __init__(self, model: WhisperModelT | None = None, beam_size: int | None = None) -> None:
        """
        model: shared WhisperModel instance (loaded at app startup).
        If None, every result is empty (ASR_BACKEND=none).
        """
        self._model = model
        self._beam_size = beam_size if beam_size is not None else get_settings().LOCAL_WHISPER_BEAM_SIZE

    def _recognize_sync(self, audio: np.ndarray, language: str | None) -> RecognitionResult:
        if self._model is None or audio.size == 0:
            return RecognitionResult(text="", language=language)

        try:
            segments, info = self._model.transcribe(
                audio,
                language=language or None,
                beam_size=self._beam_size,
                condition_on_previous_text=False,
            )
            # segments is a lazy generator; decoding happens while iterating
            parts = [(seg.text or "").strip() for seg in segments]
        except Exception as e:
            raise RecognitionError(f"whisper failed: {e}") from e

        text = " ".join(p for p in parts if p).strip()
        detected = getattr(info, "language", None) or language
        if not detected and text:
            detected = detect_language_local(text)
        return RecognitionResult(text=text, language=detected.lower() if detected else None)

    async def recognize(self, audio: np.ndarray, language: str | None = None) -> RecognitionResult:
        """Run _recognize_sync in executor so event loop is not blocked."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._recognize_sync, audio, language)

    @property
    def sample_rate(self) -> int:
        return get_settings().RECOGNIZER_SAMPLE_RATE
