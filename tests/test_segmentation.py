"""Unit tests for SpeakerAttributor and SegmentationEngine readiness."""
from __future__ import annotations

import numpy as np

from voicebridge.audio.accumulator import AudioAccumulator
from voicebridge.audio.attributor import SpeakerAttributor
from voicebridge.audio.segmentation import SegmentationEngine

from conftest import FakeClock


def _engine(max_samples: int = 0) -> SegmentationEngine:
    return SegmentationEngine(silence_ms=1500, min_samples=24000, max_samples=max_samples)


def test_attribution_last_write_wins() -> None:
    attributor = SpeakerAttributor()
    attributor.attribute(1234, "alice")
    attributor.attribute(1234, "bob")
    assert attributor.lookup(1234) == "bob"
    assert len(attributor) == 1


def test_unmapped_stream_lookup_is_none() -> None:
    assert SpeakerAttributor().lookup(99) is None


def test_should_flush_false_at_or_below_threshold() -> None:
    """Elapsed <= silence threshold never flushes, whatever the sample count."""
    engine = _engine()
    for count in (0, 1, 24000, 10**7):
        assert not engine.should_flush(count, last_activity=10.0, now=10.0)
        assert not engine.should_flush(count, last_activity=10.0, now=11.5)


def test_should_flush_needs_silence_and_minimum() -> None:
    engine = _engine()
    assert engine.should_flush(24000, last_activity=10.0, now=11.6)
    assert not engine.should_flush(23999, last_activity=10.0, now=11.6)
    assert not engine.should_flush(23999, last_activity=10.0, now=10.0 + 3600)
    assert not engine.should_flush(0, last_activity=10.0, now=20.0)


def test_short_buffer_stays_after_silence() -> None:
    """16000 samples, 1600 ms of silence: not ready, buffer untouched."""
    clock = FakeClock()
    acc = AudioAccumulator(clock=clock)
    acc.append("a", np.ones(16000, dtype=np.int16))
    clock.advance_ms(1600)
    assert _engine().sweep(acc) == []
    assert acc.sample_count("a") == 16000


def test_long_buffer_flushes_after_silence() -> None:
    """30000 samples, 1600 ms of silence: ready, exactly 30000 samples, buffer empty."""
    clock = FakeClock()
    acc = AudioAccumulator(clock=clock)
    acc.append("a", np.arange(30000, dtype=np.int16))
    clock.advance_ms(1600)
    utterances = _engine().sweep(acc, scope_id="g1", generation=7)
    assert len(utterances) == 1
    u = utterances[0]
    assert (u.speaker_id, u.sample_count, u.scope_id, u.generation) == ("a", 30000, "g1", 7)
    assert np.array_equal(u.samples, np.arange(30000, dtype=np.int16))
    assert acc.sample_count("a") == 0


def test_sweep_only_takes_ready_speakers() -> None:
    clock = FakeClock()
    acc = AudioAccumulator(clock=clock)
    acc.append("quiet", np.ones(30000, dtype=np.int16))
    clock.advance_ms(1000)
    acc.append("talking", np.ones(30000, dtype=np.int16))
    clock.advance_ms(600)
    utterances = _engine().sweep(acc, language_hint=lambda s: "ja" if s == "quiet" else None)
    assert [(u.speaker_id, u.language_hint) for u in utterances] == [("quiet", "ja")]
    assert acc.sample_count("talking") == 30000


def test_cap_forces_flush_while_talking() -> None:
    clock = FakeClock()
    acc = AudioAccumulator(clock=clock)
    acc.append("a", np.ones(48000, dtype=np.int16))
    assert [u.sample_count for u in _engine(max_samples=48000).sweep(acc)] == [48000]
    acc.append("a", np.ones(48000, dtype=np.int16))
    assert _engine().sweep(acc) == []  # no cap by default
