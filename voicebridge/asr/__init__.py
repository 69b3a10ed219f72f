"""ASR: swappable Whisper-compatible recognizers."""
from .base import RecognitionError, RecognitionResult, SpeechRecognizer
from .local_whisper import LocalWhisperRecognizer

__all__ = [
    "LocalWhisperRecognizer",
    "RecognitionError",
    "RecognitionResult",
    "SpeechRecognizer",
]
