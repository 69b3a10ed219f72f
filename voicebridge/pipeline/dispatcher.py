"""
PipelineDispatcher: per-utterance processing and capture finalization.

Translating sessions: a sweep loop runs every SWEEP_INTERVAL_MS while the session is
active; each ready utterance becomes its own task:
    decimate 48k->16k -> float32 -> recognize -> hallucination filter -> translate -> present
Any exception is caught at the task boundary, so one utterance never affects another,
the sweep loop, or ingestion.

Tasks are tracked per scope and bounded by a semaphore. Stopping a session ends the
sweep loop but lets in-flight utterances finish; results carry the session generation.
shutdown() cancels whatever is left.

Capturing sessions: finalize_capture() transcribes each artifact independently,
labels lines with the speaker's display name and hands the transcript to the
summarizer. A failed artifact is recorded and skipped; a failed summary degrades
to the raw transcript.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Protocol

import numpy as np

from voicebridge.asr.base import RecognitionError, SpeechRecognizer
from voicebridge.audio.dsp import compute_rms, decimate, duration_ms, is_likely_hallucination, pcm_to_float32
from voicebridge.audio.recorder import read_wav_sync, remove_artifact, speaker_from_artifact
from voicebridge.audio.segmentation import SegmentationEngine, Utterance
from voicebridge.config import Settings, get_settings
from voicebridge.pipeline.presenter import CaptureReport, Presenter, UtteranceResult
from voicebridge.services.preferences import PreferenceStore
from voicebridge.services.summarizer import SummarizationError
from voicebridge.services.translator import QuotaExceeded, TranslationError
from voicebridge.sessions.models import SessionMode
from voicebridge.sessions.session import Session

logger = logging.getLogger(__name__)

SpeakerNameResolver = Callable[[str], str]


class TranslationService(Protocol):
    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        ...


class SummarizationService(Protocol):
    async def summarize(self, transcript: str) -> str:
        ...


def default_speaker_name(speaker_id: str) -> str:
    return f"User {speaker_id}"


def label_transcript(name: str, text: str) -> str:
    """Prefix every non-empty line with "[name]: "."""
    return "\n".join(f"[{name}]: {line}" for line in text.splitlines() if line.strip())


class PipelineDispatcher:
    def __init__(
        self,
        recognizer: SpeechRecognizer,
        translator: TranslationService | None,
        summarizer: SummarizationService | None,
        preferences: PreferenceStore,
        presenter: Presenter,
        segmentation: SegmentationEngine | None = None,
        settings: Settings | None = None,
        speaker_name: SpeakerNameResolver = default_speaker_name,
    ) -> None:
        self._settings = settings or get_settings()
        self._recognizer = recognizer
        self._translator = translator
        self._summarizer = summarizer
        self._preferences = preferences
        self._presenter = presenter
        s = self._settings
        self._segmentation = segmentation or SegmentationEngine(
            s.SILENCE_THRESHOLD_MS, s.MIN_UTTERANCE_SAMPLES, s.MAX_UTTERANCE_SAMPLES
        )
        self._speaker_name = speaker_name
        self._semaphore = asyncio.Semaphore(max(1, self._settings.MAX_CONCURRENT_UTTERANCES))
        self._tasks: dict[str, set[asyncio.Task]] = {}

    @property
    def presenter(self) -> Presenter:
        return self._presenter

    # --- Translating: per-utterance tasks ---

    def _language_hint(self, speaker_id: str) -> str | None:
        pref = self._preferences.get(speaker_id)
        return pref.source_lang if pref is not None else None

    def _to_recognizer_input(self, samples: np.ndarray) -> np.ndarray:
        """int16 @ capture rate -> float32 @ recognizer rate."""
        rate = self._settings.CAPTURE_SAMPLE_RATE
        target = self._settings.RECOGNIZER_SAMPLE_RATE
        if rate != target:
            samples = decimate(samples, rate, target)
        return pcm_to_float32(samples)

    async def process_utterance(self, utterance: Utterance, mode: SessionMode) -> UtteranceResult | None:
        """
        Run one utterance through the pipeline and present the result.
        Returns None when nothing is presented (no preference, empty, filtered, failed recognition).
        """
        scope_id = utterance.scope_id or ""
        speaker_id = utterance.speaker_id
        pref = self._preferences.get(speaker_id)
        if mode is SessionMode.TRANSLATING and pref is None and not self._settings.TRANSCRIBE_WITHOUT_PREFERENCE:
            logger.info("Skipping speaker %s - no language preference", speaker_id)
            return None
        if utterance.sample_count == 0:
            return None

        total_start = time.perf_counter()
        audio = self._to_recognizer_input(utterance.samples)
        convert_ms = (time.perf_counter() - total_start) * 1000

        hint = utterance.language_hint or (pref.source_lang if pref is not None else None)
        recognize_start = time.perf_counter()
        try:
            recognized = await self._recognizer.recognize(audio, hint)
        except RecognitionError as e:
            logger.error("Transcription failed for speaker %s in %s: %s", speaker_id, scope_id, e)
            return None
        recognize_ms = (time.perf_counter() - recognize_start) * 1000

        text = recognized.text.strip()
        if not text:
            return None
        audio_ms = duration_ms(len(audio), self._settings.RECOGNIZER_SAMPLE_RATE)
        if is_likely_hallucination(
            text,
            audio_ms,
            compute_rms(audio),
            self._settings.HALLUCINATION_MAX_DURATION_MS,
            self._settings.HALLUCINATION_RMS_THRESHOLD,
        ):
            logger.debug("Discarded likely hallucination from %s: %r (%d ms)", speaker_id, text, audio_ms)
            return None

        result = UtteranceResult(
            scope_id=scope_id,
            speaker_id=speaker_id,
            generation=utterance.generation,
            transcript=text,
            language=recognized.language or hint,
        )
        translate_ms = 0.0
        if mode is SessionMode.TRANSLATING and pref is not None and self._translator is not None:
            result.source_lang = pref.source_lang
            result.target_lang = pref.target_lang
            translate_start = time.perf_counter()
            try:
                result.translation = await self._translator.translate(text, pref.source_lang, pref.target_lang)
            except QuotaExceeded as e:
                logger.error("Translation quota exhausted for %s: %s", scope_id, e)
                result.error = f"Translation unavailable: {e}"
                result.degraded = True
            except TranslationError as e:
                logger.error("Translation failed for speaker %s in %s: %s", speaker_id, scope_id, e)
                result.error = f"Translation failed: {e}"
                result.degraded = True
            translate_ms = (time.perf_counter() - translate_start) * 1000

        logger.info(
            "Utterance timings for %s: convert %.1f ms, recognize %.1f ms, translate %.1f ms, total %.1f ms",
            speaker_id,
            convert_ms,
            recognize_ms,
            translate_ms,
            (time.perf_counter() - total_start) * 1000,
        )
        await self._presenter.present_utterance(result)
        return result

    async def _run_utterance(self, utterance: Utterance, mode: SessionMode) -> None:
        async with self._semaphore:
            try:
                await self.process_utterance(utterance, mode)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Utterance from speaker %s failed", utterance.speaker_id)

    def dispatch(self, session: Session, utterances: list[Utterance]) -> list[asyncio.Task]:
        """Spawn one tracked task per utterance."""
        scope_id = session.scope_id
        tasks = self._tasks.setdefault(scope_id, set())
        spawned = []
        for utterance in utterances:
            task = asyncio.create_task(self._run_utterance(utterance, session.mode))
            tasks.add(task)
            task.add_done_callback(lambda t, scope_id=scope_id: self._forget(scope_id, t))
            spawned.append(task)
        return spawned

    def _forget(self, scope_id: str, task: asyncio.Task) -> None:
        tasks = self._tasks.get(scope_id)
        if tasks is None:
            return
        tasks.discard(task)
        if not tasks:
            del self._tasks[scope_id]

    def sweep_once(self, session: Session) -> list[asyncio.Task]:
        utterances = self._segmentation.sweep(
            session.accumulator,
            language_hint=self._language_hint,
            scope_id=session.scope_id,
            generation=session.generation,
        )
        if not utterances:
            return []
        logger.debug("Sweep of %s produced %d utterances", session.scope_id, len(utterances))
        return self.dispatch(session, utterances)

    async def run_sweeps(self, session: Session) -> None:
        """Sweep loop for one translating session; returns once the session leaves ACTIVE."""
        interval = self._settings.SWEEP_INTERVAL_MS / 1000.0
        logger.info("Sweep loop started for %s (every %d ms)", session.scope_id, self._settings.SWEEP_INTERVAL_MS)
        while session.is_active:
            try:
                self.sweep_once(session)
            except Exception:
                logger.exception("Sweep failed for %s", session.scope_id)
            await asyncio.sleep(interval)
        logger.info("Sweep loop ended for %s", session.scope_id)

    def pending(self, scope_id: str) -> int:
        return len(self._tasks.get(scope_id, ()))

    def active_scopes(self) -> list[str]:
        """Scopes with at least one in-flight utterance task."""
        return list(self._tasks)

    async def shutdown(self) -> None:
        """Cancel all remaining utterance tasks."""
        tasks = [t for group in self._tasks.values() for t in group]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d pending utterance tasks", len(tasks))
        self._tasks.clear()

    # --- Capturing: artifacts -> transcript -> minutes ---

    def _capture_language(self, speaker_id: str | None) -> str | None:
        if speaker_id is not None:
            pref = self._preferences.get(speaker_id)
            if pref is not None:
                return pref.source_lang
        return self._settings.CAPTURE_LANGUAGE or None

    async def transcribe_artifact(self, path: str, language: str | None) -> str:
        loop = asyncio.get_running_loop()
        samples, rate = await loop.run_in_executor(None, read_wav_sync, path)
        if rate == self._settings.CAPTURE_SAMPLE_RATE:
            samples = decimate(samples, rate, self._settings.RECOGNIZER_SAMPLE_RATE)
        elif rate != self._settings.RECOGNIZER_SAMPLE_RATE:
            raise ValueError(f"Unsupported sample rate: {rate}")
        result = await self._recognizer.recognize(pcm_to_float32(samples), language)
        return result.text.strip()

    async def finalize_capture(self, scope_id: str, artifacts: list[str]) -> CaptureReport:
        """Transcribe artifacts one by one, label by speaker, then summarize."""
        report = CaptureReport(scope_id=scope_id, artifacts=list(artifacts))
        blocks: list[str] = []
        names: dict[str, str] = {}
        for path in artifacts:
            speaker_id = speaker_from_artifact(path)
            if speaker_id is None:
                name = "Unknown Speaker"
            else:
                if speaker_id not in names:
                    names[speaker_id] = self._speaker_name(speaker_id)
                name = names[speaker_id]
            logger.info("Transcribing artifact %s", path)
            try:
                text = await self.transcribe_artifact(path, self._capture_language(speaker_id))
            except (RecognitionError, ValueError, OSError, EOFError) as e:
                logger.error("Failed to transcribe artifact %s: %s", path, e)
                report.errors.append(f"File {path}: {e}")
                continue
            if text:
                blocks.append(label_transcript(name, text))
            remove_artifact(path)

        report.transcript = "\n\n".join(blocks)
        if not report.has_transcript:
            return report

        logger.info("Summarizing capture for %s (%d chars)", scope_id, len(report.transcript))
        if self._summarizer is None:
            report.degraded = True
            report.errors.append("Summarization unavailable")
            return report
        try:
            report.minutes = await self._summarizer.summarize(report.transcript)
        except SummarizationError as e:
            logger.warning("Summarization failed for %s: %s", scope_id, e)
            report.degraded = True
            report.errors.append(str(e))
        return report
