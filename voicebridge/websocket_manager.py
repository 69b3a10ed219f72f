"""
TransportSocket: one WebSocket = one voice transport feed for a scope.

Client sends JSON transport events (see voicebridge.transport.events).
Server pushes pipeline results and session messages for the same scope:
{ "type": "utterance" | "capture_report" | "message" | "error", ... }

Malformed events are answered with an error message and otherwise ignored;
the feed stays open.
"""
from __future__ import annotations

import json
import logging

from fastapi import WebSocket, WebSocketDisconnect

from voicebridge.pipeline.presenter import WebSocketPresenter
from voicebridge.transport.events import EventParseError, parse_event
from voicebridge.transport.ingest import VoiceIngestor

logger = logging.getLogger(__name__)


class TransportSocket:
    def __init__(self, websocket: WebSocket, ingestor: VoiceIngestor, presenter: WebSocketPresenter) -> None:
        self._ws = websocket
        self._ingestor = ingestor
        self._presenter = presenter
        self._closed = False
        self.events_handled = 0

    async def _send_error(self, detail: str) -> None:
        if self._closed:
            return
        try:
            await self._ws.send_text(json.dumps({"type": "error", "detail": detail}))
        except Exception:
            self._closed = True

    async def _handle_text(self, text: str) -> None:
        try:
            event = parse_event(json.loads(text))
        except (EventParseError, ValueError) as e:
            logger.debug("Rejected transport event for %s: %s", self._ingestor.scope_id, e)
            await self._send_error(str(e))
            return
        self._ingestor.handle(event)
        self.events_handled += 1

    async def run(self) -> None:
        """Receive events until the client disconnects."""
        scope_id = self._ingestor.scope_id
        self._presenter.subscribe(scope_id, self._ws)
        logger.info("Transport feed connected for %s", scope_id)
        try:
            while True:
                text = await self._ws.receive_text()
                await self._handle_text(text)
        except WebSocketDisconnect:
            pass
        finally:
            self._closed = True
            self._presenter.unsubscribe(scope_id, self._ws)
            logger.info("Transport feed closed for %s (%d events)", scope_id, self.events_handled)
