"""Audio: speaker attribution, per-speaker buffers, segmentation, DSP helpers, artifacts."""
from .accumulator import AudioAccumulator, SpeakerBuffer
from .attributor import SpeakerAttributor
from .dsp import decimate, detect_language_local, is_likely_hallucination, pcm_to_float32
from .recorder import read_wav_sync, speaker_from_artifact, write_artifacts
from .segmentation import SegmentationEngine, Utterance

__all__ = [
    "AudioAccumulator",
    "SpeakerAttributor",
    "SpeakerBuffer",
    "SegmentationEngine",
    "Utterance",
    "decimate",
    "detect_language_local",
    "is_likely_hallucination",
    "pcm_to_float32",
    "read_wav_sync",
    "speaker_from_artifact",
    "write_artifacts",
]
