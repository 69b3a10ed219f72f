"""Shared fakes and fixtures: injectable clock, recognizer, translator, summarizer, presenter."""
from __future__ import annotations

import numpy as np
import pytest

from voicebridge.asr.base import RecognitionError, RecognitionResult, SpeechRecognizer
from voicebridge.config import Settings
from voicebridge.pipeline.presenter import CaptureReport, Presenter, UtteranceResult
from voicebridge.services.preferences import PreferenceStore


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


class FakeRecognizer(SpeechRecognizer):
    """Returns queued texts in order (or a fixed text); records every call."""

    def __init__(self, text: str = "hello", language: str | None = "en") -> None:
        self.text = text
        self.language = language
        self.calls: list[tuple[np.ndarray, str | None]] = []
        self.fail_on: set[int] = set()  # 1-based call numbers that raise

    async def recognize(self, audio: np.ndarray, language: str | None = None) -> RecognitionResult:
        self.calls.append((audio, language))
        if len(self.calls) in self.fail_on:
            raise RecognitionError("model failure")
        return RecognitionResult(text=self.text, language=language or self.language)

    @property
    def sample_rate(self) -> int:
        return 16000


class FakeTranslator:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        self.calls.append((text, source_lang, target_lang))
        if self.error is not None:
            raise self.error
        return f"{text} [{target_lang}]"


class FakeSummarizer:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.transcripts: list[str] = []

    async def summarize(self, transcript: str) -> str:
        self.transcripts.append(transcript)
        if self.error is not None:
            raise self.error
        return "MINUTES"


class RecordingPresenter(Presenter):
    def __init__(self) -> None:
        self.utterances: list[UtteranceResult] = []
        self.reports: list[CaptureReport] = []
        self.messages: list[tuple[str, str]] = []

    async def present_utterance(self, result: UtteranceResult) -> None:
        self.utterances.append(result)

    async def present_report(self, report: CaptureReport) -> None:
        self.reports.append(report)

    async def present_message(self, scope_id: str, message: str) -> None:
        self.messages.append((scope_id, message))


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment's .env file."""
    return Settings(_env_file=None, **overrides)


def loud_samples(n: int, amplitude: int = 8000) -> np.ndarray:
    """Square wave int16, well above the hallucination RMS threshold."""
    wave = np.full(n, amplitude, dtype=np.int16)
    wave[::2] = -amplitude
    return wave


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(
        RECORD_DIR=str(tmp_path / "recordings"),
        PREFERENCES_FILE=str(tmp_path / "user_settings.json"),
        SWEEP_INTERVAL_MS=10,
    )


@pytest.fixture
def preferences(settings) -> PreferenceStore:
    return PreferenceStore(settings.PREFERENCES_FILE)


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()
