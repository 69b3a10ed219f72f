"""
Signal helpers for the utterance pipeline.

- PCM int16 <-> float32 [-1, 1] conversion.
- 48kHz -> 16kHz decimation: keeps every 3rd sample, no low-pass filter. Lossy on
  purpose; good enough for speech recognition input, not for playback.
- RMS energy and the hallucination filter: Whisper tends to emit stock phrases
  ("thank you for watching", "お疲れ様でした") on short or near-silent audio.
- Script-based language fallback when the recognizer reports no language.
"""
from __future__ import annotations

import re

import numpy as np

# Whitespace and sentence punctuation stripped before phrase matching
_NORMALIZE_RE = re.compile(r"[\s。、！!？?.,，]+")

# Closed set of known spurious recognizer outputs (already normalized)
HALLUCINATION_PHRASES: tuple[str, ...] = (
    "お疲れ様でした",
    "おつかれさまでした",
    "ご視聴ありがとうございました",
    "ごしちょうありがとうございました",
    "thankyouforwatching",
    "thanksforwatching",
)


def pcm_to_float32(samples: np.ndarray) -> np.ndarray:
    """Convert int16 PCM samples to float32 [-1.0, 1.0)."""
    samples = np.asarray(samples, dtype=np.int16)
    return samples.astype(np.float32) / 32768.0


def decimate(audio: np.ndarray, source_rate: int = 48000, target_rate: int = 16000) -> np.ndarray:
    """Take every Nth sample (N = source_rate // target_rate). No anti-aliasing."""
    if source_rate == target_rate:
        return audio
    if source_rate % target_rate != 0:
        raise ValueError(f"Cannot decimate {source_rate}Hz to {target_rate}Hz (not an integer factor)")
    return audio[:: source_rate // target_rate]


def compute_rms(audio: np.ndarray) -> float:
    """Root-mean-square of float samples; 0.0 for empty input."""
    if len(audio) == 0:
        return 0.0
    audio = np.asarray(audio, dtype=np.float32)
    return float(np.sqrt(np.mean(audio ** 2)))


def duration_ms(num_samples: int, sample_rate: int) -> int:
    return int(num_samples * 1000 / sample_rate)


def normalize_phrase(text: str) -> str:
    return _NORMALIZE_RE.sub("", text or "").lower()


def is_likely_hallucination(
    text: str,
    duration_ms: int,
    rms: float,
    max_duration_ms: int = 1200,
    rms_threshold: float = 0.01,
) -> bool:
    """
    True when the audio is short or quiet AND the text contains a known filler phrase.
    Long, loud audio is never rejected, whatever it says.
    """
    short_audio = duration_ms < max_duration_ms
    low_energy = rms < rms_threshold
    if not (short_audio or low_energy):
        return False
    normalized = normalize_phrase(text)
    return any(phrase in normalized for phrase in HALLUCINATION_PHRASES)


def detect_language_local(text: str) -> str:
    """Kana/kanji share above 10% -> "ja", anything else -> "en"."""
    japanese = 0
    total = 0
    for c in text or "":
        total += 1
        # hiragana, katakana, CJK unified ideographs
        if "\u3040" <= c <= "\u309f" or "\u30a0" <= c <= "\u30ff" or "\u4e00" <= c <= "\u9fff":
            japanese += 1
    if total > 0 and japanese * 10 > total:
        return "ja"
    return "en"
