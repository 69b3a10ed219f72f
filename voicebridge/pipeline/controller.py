"""
SessionController: start / stop orchestration on top of the registry and dispatcher.

start: register the session; translating sessions get a sweep loop task.
stop:  unregister (-> FINALIZING), end the sweep loop, finalize buffers in an
       executor (-> CLOSED), then for capture sessions transcribe + summarize.
Every outcome is also reported to the presenter as a user-visible message.
"""
from __future__ import annotations

import asyncio
import logging

from voicebridge.config import Settings, get_settings
from voicebridge.pipeline.dispatcher import PipelineDispatcher
from voicebridge.pipeline.presenter import CaptureReport
from voicebridge.sessions.models import ControlStatus, SessionMode, StartResult, StopResult
from voicebridge.sessions.registry import SessionRegistry
from voicebridge.transport.ingest import VoiceIngestor

logger = logging.getLogger(__name__)

RAW_TRANSCRIPT_LIMIT = 1900

MSG_CAPTURE_STARTED = "🔴 **Recording started!**\nStop the recording to generate meeting minutes."
MSG_TRANSLATE_STARTED = "🌐 **Translation started!**\nSet your language pair to have your speech translated."
MSG_ALREADY_ACTIVE = "❌ A {mode} session is already active here"
MSG_CAPTURE_STOPPED = "🛑 **Recording stopped!**\nProcessing audio files and generating meeting minutes..."
MSG_TRANSLATE_STOPPED = "✅ **Translation stopped!**"
MSG_NO_SESSION = "❌ No active session"
MSG_NO_AUDIO = "⚠️ **No audio detected** or transcription failed. Meeting minutes cannot be generated."
MSG_AUDIO_FAILED = "❌ **Audio processing failed.** Meeting minutes cannot be generated.\n\nError: {error}"
MSG_FINALIZE_FAILED = "❌ **Failed to finalize the session**\n\nError: {error}"
MSG_MINUTES = "✅ **Meeting Minutes Generated**\n\n{minutes}"
MSG_SUMMARY_FAILED = (
    "⚠️ **Transcription completed but summarization failed**\n\n"
    "**Raw Transcription:**\n```\n{transcript}\n```\n\nError: {error}"
)


def report_message(report: CaptureReport) -> str:
    if not report.has_transcript:
        if report.errors:
            return MSG_AUDIO_FAILED.format(error=report.errors[-1])
        return MSG_NO_AUDIO
    if report.minutes is not None:
        return MSG_MINUTES.format(minutes=report.minutes)
    error = report.errors[-1] if report.errors else "unknown error"
    return MSG_SUMMARY_FAILED.format(transcript=report.transcript[:RAW_TRANSCRIPT_LIMIT], error=error)


class SessionController:
    def __init__(
        self,
        registry: SessionRegistry,
        dispatcher: PipelineDispatcher,
        settings: Settings | None = None,
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._settings = settings or get_settings()
        self._sweeps: dict[str, asyncio.Task] = {}

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    def ingestor(self, scope_id: str) -> VoiceIngestor:
        """A fresh ingestor per transport connection; it looks the session up per event."""
        return VoiceIngestor(self._registry, scope_id)

    async def start(self, scope_id: str, mode: SessionMode, origin_channel: str | None = None) -> StartResult:
        presenter = self._dispatcher.presenter
        result = self._registry.start(scope_id, origin_channel, mode)
        if result.status is ControlStatus.ALREADY_ACTIVE:
            active = result.session.mode.value if result.session is not None else "session"
            await presenter.present_message(scope_id, MSG_ALREADY_ACTIVE.format(mode=active))
            return result

        if mode is SessionMode.TRANSLATING:
            self._sweeps[scope_id] = asyncio.create_task(self._dispatcher.run_sweeps(result.session))
            await presenter.present_message(scope_id, MSG_TRANSLATE_STARTED)
        else:
            await presenter.present_message(scope_id, MSG_CAPTURE_STARTED)
        return result

    async def stop(self, scope_id: str) -> tuple[StopResult, CaptureReport | None]:
        """Stop and finalize. The report is None for translating sessions and NO_SESSION."""
        presenter = self._dispatcher.presenter
        result = self._registry.stop(scope_id)
        if result.status is ControlStatus.NO_SESSION:
            await presenter.present_message(scope_id, MSG_NO_SESSION)
            return result, None

        session = result.session
        sweep = self._sweeps.pop(scope_id, None)
        if sweep is not None:
            sweep.cancel()
            await asyncio.gather(sweep, return_exceptions=True)

        loop = asyncio.get_running_loop()
        write_errors: list[str] = []
        try:
            artifacts = await loop.run_in_executor(
                None, session.finalize, self._settings.RECORD_DIR, write_errors
            )
        except Exception as e:
            logger.exception("Finalizing session %s failed", scope_id)
            await presenter.present_message(scope_id, MSG_FINALIZE_FAILED.format(error=e))
            if session.mode is SessionMode.TRANSLATING:
                return result, None
            report = CaptureReport(scope_id=scope_id, errors=write_errors + [str(e)], degraded=True)
            await presenter.present_report(report)
            return result, report

        if session.mode is SessionMode.TRANSLATING:
            await presenter.present_message(scope_id, MSG_TRANSLATE_STOPPED)
            return result, None

        await presenter.present_message(scope_id, MSG_CAPTURE_STOPPED)
        report = await self._dispatcher.finalize_capture(scope_id, artifacts)
        if write_errors:
            report.errors[:0] = write_errors
            report.degraded = True
        await presenter.present_report(report)
        await presenter.present_message(scope_id, report_message(report))
        return result, report

    async def shutdown(self) -> None:
        """Stop every active session, then cancel leftover utterance tasks."""
        for scope_id in self._registry.scopes():
            try:
                await self.stop(scope_id)
            except Exception:
                logger.exception("Failed to stop session %s during shutdown", scope_id)
        await self._dispatcher.shutdown()
