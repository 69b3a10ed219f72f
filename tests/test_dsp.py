"""Unit tests for DSP helpers: conversion, decimation, hallucination filter, language fallback."""
from __future__ import annotations

import numpy as np
import pytest

from voicebridge.audio.dsp import (
    compute_rms,
    decimate,
    detect_language_local,
    duration_ms,
    is_likely_hallucination,
    normalize_phrase,
    pcm_to_float32,
)


def test_pcm_to_float32_range() -> None:
    out = pcm_to_float32(np.array([-32768, 0, 16384], dtype=np.int16))
    assert out.dtype == np.float32
    assert list(out) == [-1.0, 0.0, 0.5]


def test_decimate_keeps_every_third_sample() -> None:
    audio = np.arange(9, dtype=np.int16)
    assert list(decimate(audio, 48000, 16000)) == [0, 3, 6]
    assert decimate(audio, 16000, 16000) is audio


def test_decimate_rejects_non_integer_factor() -> None:
    with pytest.raises(ValueError):
        decimate(np.zeros(10), 44100, 16000)


def test_rms_and_duration() -> None:
    assert compute_rms(np.zeros(0, dtype=np.float32)) == 0.0
    assert compute_rms(np.full(100, 0.5, dtype=np.float32)) == pytest.approx(0.5)
    assert duration_ms(16000, 16000) == 1000
    assert duration_ms(24000, 48000) == 500


def test_normalize_phrase_strips_space_and_punctuation() -> None:
    assert normalize_phrase(" Thank you for watching! ") == "thankyouforwatching"
    assert normalize_phrase("お疲れ様でした。") == "お疲れ様でした"


def test_hallucination_on_short_audio() -> None:
    assert is_likely_hallucination("お疲れ様でした。", duration_ms=800, rms=0.2)
    assert is_likely_hallucination("Thank you for watching.", duration_ms=800, rms=0.2)


def test_hallucination_on_quiet_audio() -> None:
    assert is_likely_hallucination("ご視聴ありがとうございました", duration_ms=5000, rms=0.001)


def test_long_loud_audio_is_never_rejected() -> None:
    assert not is_likely_hallucination("お疲れ様でした", duration_ms=5000, rms=0.2)


def test_genuine_text_on_short_audio_is_kept() -> None:
    assert not is_likely_hallucination("はい、わかりました", duration_ms=500, rms=0.001)


def test_detect_language_local() -> None:
    assert detect_language_local("今日はいい天気ですね") == "ja"
    assert detect_language_local("hello world") == "en"
    assert detect_language_local("") == "en"
    # one kana in a long English sentence stays below 10%
    assert detect_language_local("this is a fairly long english sentence あ") == "en"
