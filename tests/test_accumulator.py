"""Unit tests for SpeakerBuffer / AudioAccumulator (append, flush, finalize)."""
from __future__ import annotations

import os
import threading
from datetime import datetime

import numpy as np

from voicebridge.audio.accumulator import AudioAccumulator
from voicebridge.audio.recorder import read_wav_sync
from voicebridge.sessions.models import SessionMode

from conftest import FakeClock


def _chunk(start: int, n: int) -> np.ndarray:
    return np.arange(start, start + n, dtype=np.int16)


def test_appends_sum_and_preserve_order() -> None:
    acc = AudioAccumulator(clock=FakeClock())
    sizes = [960, 480, 1, 3000, 960]
    start = 0
    for n in sizes:
        acc.append("a", _chunk(start, n))
        start += n
    assert acc.sample_count("a") == sum(sizes)
    out = acc.flush("a")
    assert len(out) == sum(sizes)
    assert np.array_equal(out, np.arange(0, sum(sizes), dtype=np.int16))


def test_append_keeps_samples_when_caller_reuses_array() -> None:
    acc = AudioAccumulator(clock=FakeClock())
    frame = np.ones(4, dtype=np.int16)
    acc.append("a", frame)
    frame[:] = 7
    acc.append("a", frame)
    frame[:] = 9
    assert list(acc.flush("a")) == [1, 1, 1, 1, 7, 7, 7, 7]


def test_flush_empties_buffer() -> None:
    acc = AudioAccumulator(clock=FakeClock())
    acc.append("a", _chunk(0, 100))
    assert len(acc.flush("a")) == 100
    assert acc.sample_count("a") == 0
    assert len(acc.flush("a")) == 0
    assert acc.speakers() == []


def test_flush_absent_buffer_returns_empty() -> None:
    acc = AudioAccumulator(clock=FakeClock())
    out = acc.flush("nobody")
    assert out.dtype == np.int16
    assert len(out) == 0


def test_append_updates_activity_and_speaking() -> None:
    clock = FakeClock()
    acc = AudioAccumulator(clock=clock)
    acc.append("a", [1, 2, 3])
    clock.advance_ms(700)
    acc.append("a", [4])
    ready = acc.flush_where(lambda buf, now: buf.last_activity == now)
    assert [(s, list(x)) for s, x in ready] == [("a", [1, 2, 3, 4])]


def test_mark_silence_keeps_samples() -> None:
    acc = AudioAccumulator(clock=FakeClock())
    acc.append("a", _chunk(0, 50))
    assert acc.is_speaking("a")
    acc.mark_silence("a")
    assert not acc.is_speaking("a")
    assert acc.sample_count("a") == 50
    acc.mark_silence("unknown")  # no buffer: no-op


def test_concurrent_append_and_flush_lose_nothing() -> None:
    """Every appended sample ends up in exactly one flush."""
    acc = AudioAccumulator()
    n_threads, per_thread, chunk = 4, 200, 10
    flushed: list[np.ndarray] = []
    done = threading.Event()

    def writer() -> None:
        for _ in range(per_thread):
            acc.append("a", np.ones(chunk, dtype=np.int16))

    def flusher() -> None:
        while not done.is_set():
            flushed.append(acc.flush("a"))

    threads = [threading.Thread(target=writer) for _ in range(n_threads)]
    f = threading.Thread(target=flusher)
    f.start()
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    done.set()
    f.join()
    flushed.append(acc.flush("a"))
    assert sum(len(x) for x in flushed) == n_threads * per_thread * chunk


def test_finalize_translating_drains_without_artifacts(tmp_path) -> None:
    acc = AudioAccumulator(clock=FakeClock())
    acc.append("a", _chunk(0, 10))
    paths = acc.finalize_all(SessionMode.TRANSLATING, "g1", datetime(2024, 1, 2, 3, 4, 5), str(tmp_path))
    assert paths == []
    assert list(tmp_path.iterdir()) == []
    assert acc.speakers() == []


def test_finalize_capturing_writes_one_artifact_per_speaker(tmp_path) -> None:
    acc = AudioAccumulator(clock=FakeClock())
    acc.append("200", _chunk(0, 480))
    acc.append("100", _chunk(0, 960))
    paths = acc.finalize_all(SessionMode.CAPTURING, "g1", datetime(2024, 1, 2, 3, 4, 5), str(tmp_path))
    names = [os.path.basename(p) for p in paths]
    assert names == ["g1_100_20240102_030405.wav", "g1_200_20240102_030405.wav"]
    samples, rate = read_wav_sync(paths[0])
    assert rate == 48000
    assert np.array_equal(samples, _chunk(0, 960))


def test_finalize_with_no_buffers_returns_empty(tmp_path) -> None:
    acc = AudioAccumulator(clock=FakeClock())
    assert acc.finalize_all(SessionMode.CAPTURING, "g1", datetime.now(), str(tmp_path)) == []
