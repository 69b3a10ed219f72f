"""Voice transport: event variants and the ingestion path."""
from .events import (
    AttributionEvent,
    AudioTickEvent,
    DisconnectEvent,
    EventParseError,
    TransportEvent,
    parse_event,
)
from .ingest import VoiceIngestor

__all__ = [
    "AttributionEvent",
    "AudioTickEvent",
    "DisconnectEvent",
    "EventParseError",
    "TransportEvent",
    "VoiceIngestor",
    "parse_event",
]
