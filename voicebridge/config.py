"""Application configuration. Loads from env vars."""
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """App settings. Override via environment variables."""

    # Audio: transport delivers PCM 16-bit mono @ 48kHz; recognizer expects 16kHz
    CAPTURE_SAMPLE_RATE: int = 48000
    RECOGNIZER_SAMPLE_RATE: int = 16000

    # Segmentation: periodic sweep over translating sessions
    SWEEP_INTERVAL_MS: int = 500
    SILENCE_THRESHOLD_MS: int = 1500  # speaker pause before a buffer may flush
    MIN_UTTERANCE_SAMPLES: int = 24000  # 0.5s @ 48kHz; shorter buffers keep accumulating
    MAX_UTTERANCE_SAMPLES: int = 0  # hard cap with forced flush; 0 = no cap

    # Hallucination filter: short or quiet audio + known filler phrase -> discard
    HALLUCINATION_MAX_DURATION_MS: int = 1200
    HALLUCINATION_RMS_THRESHOLD: float = 0.01

    # Pipeline
    MAX_CONCURRENT_UTTERANCES: int = 4
    # Speakers without a language preference: false = skip entirely, true = transcript only
    TRANSCRIBE_WITHOUT_PREFERENCE: bool = False

    # ASR backend: "local" (faster-whisper) | "none" (no model; every result is empty)
    ASR_BACKEND: Literal["local", "none"] = "local"
    LOCAL_WHISPER_MODEL: str = "base"  # base | small | medium | large-v3
    LOCAL_WHISPER_DEVICE: Literal["cpu", "cuda"] = "cpu"
    LOCAL_WHISPER_COMPUTE_TYPE: Literal["int8", "float16"] = "int8"
    LOCAL_WHISPER_BEAM_SIZE: int = 1  # greedy
    # Capture transcription language when the speaker has no preference ("" = auto-detect)
    CAPTURE_LANGUAGE: str = ""

    # Translation: DeepL. Keys ending in ":fx" use the free API host.
    DEEPL_API_KEY: str = ""
    TRANSLATE_MAX_ATTEMPTS: int = 3
    TRANSLATE_BACKOFF_MS: int = 200  # delay = attempt * base
    TRANSLATE_TIMEOUT_SECONDS: float = 30.0
    TRANSLATE_MAX_CHARS: int = 2000

    # Summarization: OpenAI-compatible chat completions (meeting minutes)
    SUMMARY_API_KEY: str = ""
    SUMMARY_API_URL: str = "https://api.z.ai/api/paas/v4/chat/completions"
    SUMMARY_MODEL: str = "glm-4.7-flash"
    SUMMARY_MAX_TOKENS: int = 4096
    SUMMARY_TEMPERATURE: float = 0.7
    SUMMARY_TIMEOUT_SECONDS: float = 120.0

    # Storage
    RECORD_DIR: str = "./recordings"  # capture artifacts (temporary, deleted after transcription)
    PREFERENCES_FILE: str = "./user_settings.json"

    # Languages accepted for preferences. Comma-separated.
    SUPPORTED_LANGUAGES: str = "ja,ko,en"

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path = also log to file (empty = console only).
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def supported_languages(self) -> list[str]:
        return [c.strip().lower() for c in self.SUPPORTED_LANGUAGES.split(",") if c.strip()]


def get_settings() -> Settings:
    return Settings()
