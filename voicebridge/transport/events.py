"""
Voice transport events, as a closed set of variants.

- AttributionEvent: a stream id now belongs to a speaker (speaking-state update).
- AudioTickEvent: one transport tick; per stream id either decoded PCM or None (silence).
- DisconnectEvent: a speaker left the voice channel.

Wire form (WebSocket JSON):
  {"type": "speaking", "stream_id": 1234, "speaker_id": "42"}
  {"type": "tick", "frames": {"1234": "<base64 PCM16LE mono>", "5678": null}}
  {"type": "disconnect", "speaker_id": "42"}
"""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Union

import numpy as np


@dataclass(frozen=True)
class AttributionEvent:
    stream_id: int
    speaker_id: str


@dataclass(frozen=True)
class AudioTickEvent:
    # stream id -> int16 samples, or None when the stream carried no audio this tick
    frames: dict[int, np.ndarray | None] = field(default_factory=dict)


@dataclass(frozen=True)
class DisconnectEvent:
    speaker_id: str


TransportEvent = Union[AttributionEvent, AudioTickEvent, DisconnectEvent]


class EventParseError(ValueError):
    """Payload is not a well-formed transport event."""


def decode_pcm(data: str) -> np.ndarray:
    """Base64 PCM16LE -> int16 samples. Odd trailing byte is a malformed frame."""
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, TypeError, ValueError) as e:
        raise EventParseError(f"invalid base64 audio: {e}") from e
    if len(raw) % 2 != 0:
        raise EventParseError(f"PCM length {len(raw)} not divisible by 2")
    return np.frombuffer(raw, dtype="<i2").astype(np.int16)


def encode_pcm(samples: np.ndarray) -> str:
    return base64.b64encode(np.asarray(samples, dtype="<i2").tobytes()).decode("ascii")


def _stream_id(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise EventParseError(f"invalid stream_id: {value!r}") from e


def _speaker_id(value: Any) -> str:
    if value is None or str(value).strip() == "":
        raise EventParseError("speaker_id is required")
    return str(value).strip()


def parse_event(payload: dict[str, Any]) -> TransportEvent:
    """Build a TransportEvent from its JSON form. Raises EventParseError."""
    if not isinstance(payload, dict):
        raise EventParseError("event must be a JSON object")
    kind = payload.get("type")
    if kind == "speaking":
        return AttributionEvent(_stream_id(payload.get("stream_id")), _speaker_id(payload.get("speaker_id")))
    if kind == "tick":
        raw_frames = payload.get("frames") or {}
        if not isinstance(raw_frames, dict):
            raise EventParseError("tick frames must be an object")
        frames: dict[int, np.ndarray | None] = {}
        for sid, data in raw_frames.items():
            frames[_stream_id(sid)] = decode_pcm(data) if data else None
        return AudioTickEvent(frames)
    if kind == "disconnect":
        return DisconnectEvent(_speaker_id(payload.get("speaker_id")))
    raise EventParseError(f"unknown event type: {kind!r}")
