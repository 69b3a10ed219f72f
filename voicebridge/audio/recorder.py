"""
Capture artifacts: one WAV per speaker per capture session.

- Format is fixed: mono, 16-bit PCM, 48kHz.
- Name: {scope_id}_{speaker_id}_{YYYYMMDD_HHMMSS}.wav (session start time), so the
  speaker can be read back from the filename when the transcript is assembled.
- One open, one header, one write, one close per file.
- Artifacts are temporary: deleted once transcribed.
"""
from __future__ import annotations

import logging
import os
import wave
from datetime import datetime

import numpy as np

logger = logging.getLogger(__name__)

# PCM contract: signed int16, little-endian, mono, 48kHz
SAMPLE_RATE = 48000
SAMPLE_WIDTH = 2
NCHANNELS = 1

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def artifact_basename(scope_id: str, speaker_id: str, start_time: datetime) -> str:
    return f"{scope_id}_{speaker_id}_{start_time.strftime(TIMESTAMP_FORMAT)}"


def speaker_from_artifact(path: str) -> str | None:
    """Second underscore-separated field of the file stem, or None when absent."""
    stem = os.path.splitext(os.path.basename(path))[0]
    parts = stem.split("_")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def write_wav_sync(samples: np.ndarray, out_path: str, sample_rate: int = SAMPLE_RATE) -> None:
    """Write int16 samples to WAV. Blocking; run in executor from async code."""
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    pcm = np.asarray(samples, dtype="<i2").tobytes()
    with wave.open(out_path, "wb") as wav:
        wav.setnchannels(NCHANNELS)
        wav.setsampwidth(SAMPLE_WIDTH)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)


def read_wav_sync(path: str) -> tuple[np.ndarray, int]:
    """Read a mono 16-bit WAV. Returns (int16 samples, sample_rate). ValueError on a bad file."""
    try:
        wav = wave.open(path, "rb")
    except (wave.Error, EOFError) as e:
        raise ValueError(f"{path}: not a readable WAV file: {e}") from e
    with wav:
        if wav.getsampwidth() != SAMPLE_WIDTH:
            raise ValueError(f"{path}: expected 16-bit PCM, got {wav.getsampwidth() * 8}-bit")
        if wav.getnchannels() != NCHANNELS:
            raise ValueError(f"{path}: expected mono, got {wav.getnchannels()} channels")
        sample_rate = wav.getframerate()
        frames = wav.readframes(wav.getnframes())
    return np.frombuffer(frames, dtype="<i2").astype(np.int16), sample_rate


def write_artifacts(
    buffers: dict[str, np.ndarray],
    scope_id: str,
    start_time: datetime,
    output_dir: str,
    errors: list[str] | None = None,
) -> list[str]:
    """
    Write one artifact per non-empty buffer. Returns paths in speaker order.
    A failed write is logged, appended to errors and skipped; the rest are still written.
    """
    paths: list[str] = []
    for speaker_id in sorted(buffers):
        samples = buffers[speaker_id]
        if len(samples) == 0:
            continue
        path = os.path.join(output_dir, artifact_basename(scope_id, speaker_id, start_time) + ".wav")
        try:
            write_wav_sync(samples, path)
        except (OSError, wave.Error) as e:
            logger.error("Failed to save audio for speaker %s in %s: %s", speaker_id, scope_id, e)
            if errors is not None:
                errors.append(f"Speaker {speaker_id}: failed to save audio: {e}")
            continue
        paths.append(path)
    if paths:
        logger.info("Saved %d audio artifacts for scope %s", len(paths), scope_id)
    return paths


def remove_artifact(path: str) -> bool:
    try:
        os.remove(path)
        return True
    except OSError as e:
        logger.warning("Failed to remove temporary artifact %s: %s", path, e)
        return False
