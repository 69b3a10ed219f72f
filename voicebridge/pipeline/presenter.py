"""
Presenter: where pipeline results and session messages go.

- LoggingPresenter: log lines only (default when nothing is connected).
- WebSocketPresenter: JSON pushed to every socket subscribed to the scope.
  A socket that fails to send is dropped from its scope.
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


@dataclass
class UtteranceResult:
    """One processed utterance of a translating session."""

    scope_id: str
    speaker_id: str
    generation: int
    transcript: str
    language: str | None = None
    translation: str | None = None
    source_lang: str | None = None
    target_lang: str | None = None
    error: str | None = None
    degraded: bool = False  # transcript delivered, translation failed
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))


@dataclass
class CaptureReport:
    """Outcome of finalizing a capture session."""

    scope_id: str
    artifacts: list[str] = field(default_factory=list)
    transcript: str = ""
    minutes: str | None = None
    errors: list[str] = field(default_factory=list)  # one entry per failed artifact or summary
    degraded: bool = False  # summarization failed, raw transcript stands in

    @property
    def has_transcript(self) -> bool:
        return bool(self.transcript.strip())


class Presenter(ABC):
    @abstractmethod
    async def present_utterance(self, result: UtteranceResult) -> None:
        ...

    @abstractmethod
    async def present_report(self, report: CaptureReport) -> None:
        ...

    @abstractmethod
    async def present_message(self, scope_id: str, message: str) -> None:
        """Session-level, user-visible text (started, stopped, failures)."""
        ...


class LoggingPresenter(Presenter):
    async def present_utterance(self, result: UtteranceResult) -> None:
        if result.translation is not None:
            logger.info(
                "[%s] %s (%s): %s -> (%s) %s",
                result.scope_id,
                result.speaker_id,
                (result.source_lang or result.language or "?").upper(),
                result.transcript,
                (result.target_lang or "?").upper(),
                result.translation,
            )
        else:
            logger.info("[%s] %s: %s", result.scope_id, result.speaker_id, result.transcript)
        if result.error:
            logger.warning("[%s] %s: %s", result.scope_id, result.speaker_id, result.error)

    async def present_report(self, report: CaptureReport) -> None:
        logger.info(
            "[%s] capture finalized: %d artifacts, %d chars transcript, %d errors",
            report.scope_id,
            len(report.artifacts),
            len(report.transcript),
            len(report.errors),
        )

    async def present_message(self, scope_id: str, message: str) -> None:
        logger.info("[%s] %s", scope_id, message)


class WebSocketPresenter(LoggingPresenter):
    """Logs like LoggingPresenter, then pushes JSON to subscribed sockets."""

    def __init__(self) -> None:
        self._subscribers: dict[str, set[WebSocket]] = {}

    def subscribe(self, scope_id: str, websocket: WebSocket) -> None:
        self._subscribers.setdefault(scope_id, set()).add(websocket)

    def unsubscribe(self, scope_id: str, websocket: WebSocket) -> None:
        sockets = self._subscribers.get(scope_id)
        if sockets is None:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._subscribers[scope_id]

    async def _broadcast(self, scope_id: str, payload: dict[str, Any]) -> None:
        sockets = list(self._subscribers.get(scope_id, ()))
        if not sockets:
            return
        text = json.dumps(payload, ensure_ascii=False)
        results = await asyncio.gather(*(ws.send_text(text) for ws in sockets), return_exceptions=True)
        for ws, res in zip(sockets, results):
            if isinstance(res, Exception):
                logger.debug("Dropping subscriber of %s: %s", scope_id, res)
                self.unsubscribe(scope_id, ws)

    async def present_utterance(self, result: UtteranceResult) -> None:
        await super().present_utterance(result)
        await self._broadcast(result.scope_id, {"type": "utterance", **asdict(result)})

    async def present_report(self, report: CaptureReport) -> None:
        await super().present_report(report)
        payload = asdict(report)
        await self._broadcast(report.scope_id, {"type": "capture_report", **payload})

    async def present_message(self, scope_id: str, message: str) -> None:
        await super().present_message(scope_id, message)
        await self._broadcast(scope_id, {"type": "message", "scope_id": scope_id, "text": message})
