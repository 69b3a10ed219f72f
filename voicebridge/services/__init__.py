"""External services: translation, summarization, language preferences."""
from .preferences import LanguagePreference, PreferenceStore, language_name
from .summarizer import ChatSummarizer, SummarizationError
from .translator import (
    BadRequest,
    DeepLTranslator,
    QuotaExceeded,
    RateLimited,
    TransientUnavailable,
    TranslationError,
)

__all__ = [
    "BadRequest",
    "ChatSummarizer",
    "DeepLTranslator",
    "LanguagePreference",
    "PreferenceStore",
    "QuotaExceeded",
    "RateLimited",
    "SummarizationError",
    "TransientUnavailable",
    "TranslationError",
    "language_name",
]
