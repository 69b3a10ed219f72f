"""
VoiceIngestor: reacts to transport events for one scope.

Runs on the transport callback path: no awaits, no I/O, short locks only.
Frames for unmapped streams are dropped (audio before the first speaking-state
event is lost). Events for a scope with no active session are ignored.
"""
from __future__ import annotations

import logging

from voicebridge.sessions.registry import SessionRegistry
from voicebridge.transport.events import AttributionEvent, AudioTickEvent, DisconnectEvent, TransportEvent

logger = logging.getLogger(__name__)


class VoiceIngestor:
    def __init__(self, registry: SessionRegistry, scope_id: str) -> None:
        self._registry = registry
        self._scope_id = scope_id
        self.dropped_frames = 0

    @property
    def scope_id(self) -> str:
        return self._scope_id

    def handle(self, event: TransportEvent) -> None:
        session = self._registry.get(self._scope_id)
        if session is None:
            return
        if isinstance(event, AttributionEvent):
            session.attributor.attribute(event.stream_id, event.speaker_id)
        elif isinstance(event, AudioTickEvent):
            for stream_id, samples in event.frames.items():
                speaker_id = session.attributor.lookup(stream_id)
                if speaker_id is None:
                    if samples is not None and len(samples):
                        self.dropped_frames += 1
                        logger.debug("No speaker mapping for stream %s, dropping frame", stream_id)
                    continue
                if samples is None or len(samples) == 0:
                    session.accumulator.mark_silence(speaker_id)
                else:
                    session.accumulator.append(speaker_id, samples)
        elif isinstance(event, DisconnectEvent):
            session.accumulator.mark_silence(event.speaker_id)
            logger.debug("Speaker %s disconnected from scope %s", event.speaker_id, self._scope_id)
        else:
            raise TypeError(f"Unhandled transport event: {type(event).__name__}")
